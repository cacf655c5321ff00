"""
Pipelined delivery of log lines to a Redis list via ``RPUSH``.
"""

from typing import Any, List, Optional, Sequence, Union

from loguru import logger as default_logger

from .config import OutputConfig
from .connection import Connection
from .errors import ProtocolError, ServerError, TransportError
from .protocol import describe_reply, encode_rpush, is_error_reply, is_positive_reply
from .utils import Deadline


class RedisOutput:
    """
    Ship already formatted lines to a Redis list.

    Lines are buffered as encoded ``RPUSH`` frames and written in one
    pipelined batch once ``bulk`` of them are queued. A failed batch drops
    only the most recently queued frame, since the caller presents that line
    again later; the rest stay queued for the next attempt.

    ``True`` from :meth:`submit` means the line was buffered or delivered,
    not necessarily that it reached the server.

    Example::

        output = RedisOutput(key="logs", bulk=2)
        output.submit("a")   # buffered
        output.submit("b")   # both lines sent in one write
    """

    def __init__(
        self,
        config: Optional[OutputConfig] = None,
        logger: Any = None,
        **options: Any,
    ) -> None:
        """
        :param config: Validated configuration. When omitted, *options* are
            validated into an :class:`OutputConfig`.
        :param logger: Logging collaborator with ``debug``, ``info`` and
            ``error`` methods; defaults to loguru's logger.
        :raises pydantic.ValidationError: when *options* are invalid.
        """
        if config is None:
            config = OutputConfig(**options)
        elif options:
            raise TypeError("pass either a config or keyword options, not both")

        self.config = config
        self._log = logger if logger is not None else default_logger.bind(component="redis_output")
        self._connection = Connection(config, self._log)
        self._pipeline: List[bytes] = []

        self._log.info(f"{type(self).__name__} initialized")

    @property
    def log(self) -> Any:
        return self._log

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def pending(self) -> int:
        """Number of frames buffered and not yet acknowledged."""
        return len(self._pipeline)

    def submit(self, line: Union[str, bytes]) -> bool:
        """
        Queue *line* and flush the queue once it holds ``bulk`` frames.

        :param line: One formatted log line.
        :returns: ``True`` when the line is buffered or the batch was
            delivered, ``False`` when the flush failed.
        """
        self._pipeline.append(encode_rpush(self.config.key, line))

        if len(self._pipeline) < self.config.bulk:
            return True

        if self.flush(self._pipeline):
            self._pipeline.clear()
            return True

        # The caller submits this line again later, so it is dropped here.
        self._pipeline.pop()
        return False

    push = submit

    def flush_pending(self) -> bool:
        """
        Send whatever is buffered, even if fewer than ``bulk`` frames.

        Unlike :meth:`submit`, a failure keeps every buffered frame, since no
        caller holds those lines any more.

        :returns: ``True`` when the queue is empty afterwards.
        """
        if not self._pipeline:
            return True

        if self.flush(self._pipeline):
            self._pipeline.clear()
            return True
        return False

    def flush(self, frames: Sequence[bytes]) -> bool:
        """
        Send *frames* in one write and check one reply per frame.

        The whole exchange, including connecting, runs under a single
        deadline of ``config.timeout`` seconds. Any failure is logged and the
        connection is discarded so the next attempt starts a new handshake.

        :param frames: Encoded command frames, in the order they must apply.
        :returns: ``True`` only when every reply was accepted.
        """
        deadline = self._connection.new_deadline()
        try:
            self._exchange(frames, deadline)
        except TransportError as ex:
            self._log.error(str(ex))
            self._connection.reset()
            return False
        return True

    def close(self) -> None:
        """Drop the connection. Buffered frames are kept but not sent."""
        self._connection.reset()

    def __enter__(self) -> "RedisOutput":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _exchange(self, frames: Sequence[bytes], deadline: Deadline) -> None:
        self._connection.connect(deadline)

        data = b"".join(frames)
        if self.config.debug:
            self._log.debug(
                f"sending to redis server {self.config.address}: "
                f"{data.decode('utf-8', errors='replace')!r}"
            )
        self._connection.write(data, deadline)

        for _ in frames:
            reply = self._connection.read_line(deadline)
            if is_positive_reply(reply):
                continue
            if is_error_reply(reply):
                raise ServerError(describe_reply(reply))
            raise ProtocolError(f"unknown response from redis server: {describe_reply(reply)}")
