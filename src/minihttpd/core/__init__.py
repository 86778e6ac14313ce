"""
Core networking: the listener, per-connection buffered I/O, worker threads.
"""

from .connection import Connection, ConnectionState, LineTooLong
from .socket_server import SocketServer
from .thread_pool import ThreadPool

__all__ = ["Connection", "ConnectionState", "LineTooLong", "SocketServer", "ThreadPool"]
