"""
The single outbound connection to the Redis server and its handshake.
"""

import socket
from typing import Any, Optional

from .config import OutputConfig
from .errors import (
    ConnectError,
    HandshakeError,
    ProtocolError,
    TransportError,
    WriteError,
)
from .protocol import describe_reply, encode_auth, encode_select, is_positive_reply
from .utils import Deadline


class Connection:
    """
    Lazily established, authenticated and database-selected socket.

    The connection is either absent or ready; a half-finished handshake is
    never kept. All blocking calls take their timeout from a :class:`Deadline`.
    """

    def __init__(self, config: OutputConfig, logger: Any) -> None:
        self.config = config
        self.log = logger
        self._sock: Optional[socket.socket] = None
        self._buffer = b""

        self._select_frame = encode_select(config.database)
        self._auth_frame = encode_auth(config.password) if config.password else None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def new_deadline(self) -> Deadline:
        return Deadline(
            self.config.timeout,
            f"connection to redis database {self.config.address}",
        )

    def connect(self, deadline: Optional[Deadline] = None) -> socket.socket:
        """
        Return the ready socket, opening and handshaking a new one if needed.

        An existing connection is returned unchanged. Otherwise the socket is
        opened, ``AUTH`` is sent when a password is configured, then ``SELECT``.
        If any step fails the socket is closed before the error propagates.

        :param deadline: Deadline shared with the caller's operation; a fresh
            one of ``config.timeout`` seconds is used when omitted.
        :returns: The connected socket.
        :raises ConnectError: when the server cannot be reached.
        :raises HandshakeError: when ``AUTH`` or ``SELECT`` is not accepted.
        :raises TransportTimeout: when the deadline passes.
        """
        if self._sock is not None:
            return self._sock

        if deadline is None:
            deadline = self.new_deadline()

        address = self.config.address
        self.log.info(f"connect to redis server {address}")

        try:
            sock = socket.create_connection(
                (self.config.host, self.config.port), timeout=deadline.remaining()
            )
        except socket.timeout:
            raise deadline.timeout_error("connect") from None
        except OSError as ex:
            raise ConnectError(f"unable to connect to redis server {address} - {ex}") from ex

        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError as ex:
            sock.close()
            raise ConnectError(f"unable to set up socket to redis server {address} - {ex}") from ex
        self._sock = sock
        self._buffer = b""
        self.log.info(f"connected to redis server {address}")

        try:
            if self._auth_frame is not None:
                self.log.info(f"send auth to redis server {address}")
                self._handshake(self._auth_frame, "auth at redis database", deadline)

            self.log.info(f"select database {self.config.database} on redis server {address}")
            self._handshake(self._select_frame, "select redis database", deadline)
        except TransportError:
            self.reset()
            raise

        self.log.info(
            f"successfully selected database {self.config.database} on redis server {address}"
        )
        return sock

    def reset(self) -> None:
        """Close and forget the socket, if there is one."""
        if self._sock is None:
            return
        try:
            self._sock.close()
        except OSError:
            pass
        self._sock = None
        self._buffer = b""

    def write(self, data: bytes, deadline: Deadline) -> None:
        """
        Write *data* completely, looping over partial sends.

        :raises WriteError: when the socket reports an error.
        :raises TransportTimeout: when the deadline passes mid-write.
        """
        sock = self._require_socket()
        view = memoryview(data)
        offset = 0
        while offset < len(view):
            try:
                sock.settimeout(deadline.remaining())
                written = sock.send(view[offset:])
            except socket.timeout:
                raise deadline.timeout_error("write") from None
            except OSError as ex:
                raise WriteError(f"system write error: {ex}") from ex
            if written == 0:
                raise WriteError(f"system write error: connection to {self.config.address} closed")
            offset += written

    def read_line(self, deadline: Deadline) -> bytes:
        """
        Read one CRLF terminated reply line.

        :returns: The line including its CRLF.
        :raises ProtocolError: when the server closes the connection first.
        :raises TransportTimeout: when the deadline passes.
        """
        sock = self._require_socket()
        while b"\r\n" not in self._buffer:
            try:
                sock.settimeout(deadline.remaining())
                chunk = sock.recv(4096)
            except socket.timeout:
                raise deadline.timeout_error("waiting for reply") from None
            except OSError as ex:
                raise ProtocolError(
                    f"no response from redis server {self.config.address}: {ex}"
                ) from ex
            if not chunk:
                raise ProtocolError(f"no response from redis server {self.config.address}")
            self._buffer += chunk

        end = self._buffer.index(b"\r\n") + 2
        line, self._buffer = self._buffer[:end], self._buffer[end:]
        return line

    def _handshake(self, frame: bytes, action: str, deadline: Deadline) -> None:
        self.write(frame, deadline)
        try:
            reply = self.read_line(deadline)
        except ProtocolError as ex:
            raise HandshakeError(f"unable to {action}: {ex}") from ex
        if not is_positive_reply(reply):
            raise HandshakeError(f"unable to {action}: {describe_reply(reply)}")

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise ConnectError(f"not connected to redis server {self.config.address}")
        return self._sock
