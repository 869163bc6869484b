"""
=============================================================================
CORE COMPONENTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ SocketServer   listening socket, accept loop, signal handling       │
    │      │                                                               │
    │      ▼ one Connection per client                                     │
    │ ThreadPool     bounded workers; each runs one connection at a time  │
    │      │                                                               │
    │      ▼                                                               │
    │ Connection     request framing, timeouts, keep-alive, close         │
    ├─────────────────────────────────────────────────────────────────────┤
    │ ShadowWriter   hides a 404 from the real response writer            │
    │ WriterPool     reusable ShadowWriters shared by all workers         │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .shadow import ShadowWriter, WriterState
from .writer_pool import WriterPool, UnpooledWriterPool, default_pool, init_pool
from .thread_pool import ThreadPool
from .connection import Connection, ConnectionState, RequestTooLarge
from .socket_server import SocketServer

__all__ = [
    "ShadowWriter",
    "WriterState",
    "WriterPool",
    "UnpooledWriterPool",
    "default_pool",
    "init_pool",
    "ThreadPool",
    "Connection",
    "ConnectionState",
    "RequestTooLarge",
    "SocketServer",
]
