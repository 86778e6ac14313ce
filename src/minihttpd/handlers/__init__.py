"""
Endpoint handlers.

    root, echo, user_agent   Stateless functions of the request
    FileHandler              Upload/download under a root directory
"""

from .endpoints import root, echo, user_agent, ECHO_PREFIX
from .files import FileHandler

__all__ = ["root", "echo", "user_agent", "ECHO_PREFIX", "FileHandler"]
