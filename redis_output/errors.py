"""
Exceptions raised while delivering lines to the Redis server.
"""


class TransportError(Exception):
    """Base class for every failure of a connect or flush attempt."""


class ConnectError(TransportError):
    """The TCP connection to the server could not be established."""


class HandshakeError(TransportError):
    """``AUTH`` or ``SELECT`` was rejected or answered with something unexpected."""


class TransportTimeout(TransportError):
    """The operation did not finish before its deadline."""


class WriteError(TransportError):
    """Writing to the socket failed or the peer went away."""


class ProtocolError(TransportError):
    """A reply did not match what the command expects, or was missing."""


class ServerError(ProtocolError):
    """
    The server answered with an explicit error reply.

    ``reply`` holds the error line without its trailing CRLF.
    """

    def __init__(self, reply: str) -> None:
        super().__init__(f"redis server returned an error: {reply}")
        self.reply = reply
