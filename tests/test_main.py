"""Tests for the command-line driver."""

import io

import pytest

from redis_output.main import UsageError, drain, main, parse_args, ship


class FlakyOutput:
    """Fails the first *failures* submits, then accepts everything."""

    def __init__(self, failures, logger):
        self.failures = failures
        self.log = logger
        self.accepted = []
        self.attempts = 0

    def submit(self, line):
        self.attempts += 1
        if self.failures:
            self.failures -= 1
            return False
        self.accepted.append(line)
        return True


def test_parse_args():
    args = parse_args(["--key", "logs", "--port", "6380", "--bulk", "10", "--retry-interval", "0.5"])
    assert args["output"] == {"key": "logs", "port": "6380", "bulk": "10"}
    assert args["retry_interval"] == 0.5
    assert args["max_retries"] is None
    assert args["debug"] is False


def test_parse_args_debug_enables_dump():
    args = parse_args(["--debug", "--key", "logs"])
    assert args["debug"] is True
    assert args["output"]["debug"] == "true"


@pytest.mark.parametrize(
    "argv",
    [["--nope"], ["--key"], ["--key", "logs", "--max-retries", "many"]],
)
def test_parse_args_rejects_bad_input(argv):
    with pytest.raises(UsageError):
        parse_args(argv)


def test_ship_presents_failed_line_again(recording_logger):
    output = FlakyOutput(2, recording_logger)
    sleeps = []

    assert ship(output, io.StringIO("one\ntwo\n"), 0.25, sleep=sleeps.append)
    assert output.accepted == ["one", "two"]
    assert output.attempts == 4
    assert sleeps == [0.25, 0.25]


def test_ship_gives_up_after_max_retries(recording_logger):
    output = FlakyOutput(10, recording_logger)

    assert not ship(output, io.StringIO("one\n"), 0, max_retries=2, sleep=lambda s: None)
    assert output.attempts == 3
    assert recording_logger.messages("error") == ["giving up on line after 2 retries"]


def test_main_ships_stdin(server):
    argv = ["--host", server.host, "--port", str(server.port), "--key", "app", "--bulk", "2"]
    status = main(argv, io.StringIO("a\nb\nc\nd\n"))

    assert status == 0
    assert server.lists[b"app"] == [b"a", b"b", b"c", b"d"]


def test_main_requires_key(capsys):
    assert main([], io.StringIO("")) == 2
    assert "invalid options" in capsys.readouterr().err


def test_main_rejects_unknown_option(capsys):
    assert main(["--key", "logs", "--verbose"], io.StringIO("")) == 2
    assert "unknown option: --verbose" in capsys.readouterr().err


def test_main_reports_undelivered_lines(closed_port):
    argv = ["--port", str(closed_port), "--key", "logs", "--max-retries", "0"]
    assert main(argv, io.StringIO("a\n")) == 1


def test_main_sends_partial_batch_at_end_of_input(server):
    argv = ["--host", server.host, "--port", str(server.port), "--key", "app", "--bulk", "2"]
    status = main(argv, io.StringIO("a\nb\nc\n"))

    assert status == 0
    assert server.lists[b"app"] == [b"a", b"b", b"c"]


def test_main_fails_when_buffered_lines_stay_unsent(closed_port):
    argv = ["--port", str(closed_port), "--key", "logs", "--bulk", "5", "--max-retries", "1",
            "--retry-interval", "0"]
    assert main(argv, io.StringIO("a\nb\n")) == 1


def test_drain_retries_until_flushed(recording_logger):
    class SlowQueue:
        log = recording_logger
        pending = 2

        def __init__(self):
            self.calls = 0

        def flush_pending(self):
            self.calls += 1
            return self.calls == 3

    queue = SlowQueue()
    sleeps = []
    assert drain(queue, 0.1, sleep=sleeps.append)
    assert queue.calls == 3
    assert sleeps == [0.1, 0.1]
