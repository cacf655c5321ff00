import socket
from typing import List, Tuple

import pytest

from redis_output import OutputConfig, RedisOutput

from .fake_server import FakeRedisServer


class RecordingLogger:
    """Collects ``(level, message)`` pairs instead of writing them anywhere."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, str]] = []

    def _record(self, level, message, *args, **kwargs):
        self.records.append((level, message))

    def debug(self, message, *args, **kwargs):
        self._record("debug", message)

    def info(self, message, *args, **kwargs):
        self._record("info", message)

    def warning(self, message, *args, **kwargs):
        self._record("warning", message)

    def error(self, message, *args, **kwargs):
        self._record("error", message)

    def messages(self, level: str) -> List[str]:
        return [message for lvl, message in self.records if lvl == level]


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def server():
    srv = FakeRedisServer().start()
    yield srv
    srv.stop()


@pytest.fixture
def make_server():
    started = []

    def factory(**kwargs):
        srv = FakeRedisServer(**kwargs).start()
        started.append(srv)
        return srv

    yield factory
    for srv in started:
        srv.stop()


@pytest.fixture
def make_output(recording_logger):
    outputs = []

    def factory(srv, **options):
        options.setdefault("key", "logs")
        options.setdefault("timeout", 2)
        config = OutputConfig(host=srv.host, port=srv.port, **options)
        output = RedisOutput(config, logger=recording_logger)
        outputs.append(output)
        return output

    yield factory
    for output in outputs:
        output.close()


@pytest.fixture
def closed_port():
    """A local port nothing listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
