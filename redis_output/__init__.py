"""
Redis output transport: deliver formatted log lines to a Redis list with
pipelined ``RPUSH`` commands.
"""

from .config import OutputConfig
from .connection import Connection
from .errors import (
    ConnectError,
    HandshakeError,
    ProtocolError,
    ServerError,
    TransportError,
    TransportTimeout,
    WriteError,
)
from .output import RedisOutput

__all__ = [
    "RedisOutput",
    "OutputConfig",
    "Connection",
    "TransportError",
    "ConnectError",
    "HandshakeError",
    "TransportTimeout",
    "WriteError",
    "ProtocolError",
    "ServerError",
]
__version__ = "0.1.0"
