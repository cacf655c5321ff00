"""
Command-line driver: ship lines read from stdin to a Redis list.
"""

import sys
import time
from typing import Any, Dict, List, Optional, TextIO

from loguru import logger
from pydantic import ValidationError

from .output import RedisOutput

USAGE = (
    "usage: redis-output --key KEY [--host HOST] [--port PORT] [--timeout SECONDS]\n"
    "                    [--database N] [--password PASSWORD] [--bulk N]\n"
    "                    [--retry-interval SECONDS] [--max-retries N] [--debug]\n"
)

_OUTPUT_OPTIONS = {
    "--host": "host",
    "--port": "port",
    "--timeout": "timeout",
    "--database": "database",
    "--password": "password",
    "--key": "key",
    "--bulk": "bulk",
}


class UsageError(Exception):
    """Invalid command-line arguments."""


def parse_args(argv: List[str]) -> Dict[str, Any]:
    """
    Parse driver command-line arguments.

    Values of output options are left as strings; :class:`OutputConfig`
    converts and validates them.

    :param argv: Arguments without the program name.
    :returns: Dict with ``output`` (options for :class:`RedisOutput`),
        ``retry_interval``, ``max_retries`` (``None`` for unlimited) and ``debug``.
    :raises UsageError: on unknown options or missing values.
    """
    output: Dict[str, str] = {}
    retry_interval = 1.0
    max_retries: Optional[int] = None
    debug = False

    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--debug":
            debug = True
            i += 1
            continue
        if arg not in _OUTPUT_OPTIONS and arg not in ("--retry-interval", "--max-retries"):
            raise UsageError(f"unknown option: {arg}")
        if i + 1 >= len(argv):
            raise UsageError(f"option {arg} requires a value")

        value = argv[i + 1]
        if arg == "--retry-interval":
            try:
                retry_interval = float(value)
            except ValueError:
                raise UsageError(f"invalid --retry-interval: {value}") from None
        elif arg == "--max-retries":
            try:
                max_retries = int(value)
            except ValueError:
                raise UsageError(f"invalid --max-retries: {value}") from None
        else:
            output[_OUTPUT_OPTIONS[arg]] = value
        i += 2

    if debug:
        output["debug"] = "true"

    return {
        "output": output,
        "retry_interval": retry_interval,
        "max_retries": max_retries,
        "debug": debug,
    }


def configure_logging(debug: bool) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if debug else "INFO",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {message}",
    )


def ship(
    output: RedisOutput,
    lines: TextIO,
    retry_interval: float,
    max_retries: Optional[int] = None,
    sleep=time.sleep,
) -> bool:
    """
    Submit every line of *lines*, presenting a failed line again until accepted.

    :param output: Output the lines are submitted to.
    :param lines: Iterable of text lines; the trailing newline is stripped.
    :param retry_interval: Seconds to wait before presenting a failed line again.
    :param max_retries: Give up after this many failed attempts of one line;
        ``None`` retries forever.
    :param sleep: Sleep function, replaceable in tests.
    :returns: ``True`` when every line was accepted.
    """
    for raw in lines:
        line = raw.rstrip("\r\n")
        failures = 0
        while not output.submit(line):
            failures += 1
            if max_retries is not None and failures > max_retries:
                output.log.error(f"giving up on line after {max_retries} retries")
                return False
            sleep(retry_interval)
    return True


def drain(
    output: RedisOutput,
    retry_interval: float,
    max_retries: Optional[int] = None,
    sleep=time.sleep,
) -> bool:
    """
    Flush the lines still buffered at end of input, retrying like :func:`ship`.

    :returns: ``True`` when nothing is left buffered.
    """
    failures = 0
    while not output.flush_pending():
        failures += 1
        if max_retries is not None and failures > max_retries:
            output.log.error(
                f"giving up on {output.pending} buffered lines after {max_retries} retries"
            )
            return False
        sleep(retry_interval)
    return True


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None) -> int:
    """Entry point of the ``redis-output`` command."""
    if argv is None:
        argv = sys.argv[1:]
    if stdin is None:
        stdin = sys.stdin

    try:
        args = parse_args(argv)
    except UsageError as ex:
        sys.stderr.write(f"{ex}\n{USAGE}")
        return 2

    configure_logging(args["debug"])

    try:
        output = RedisOutput(**args["output"])
    except ValidationError as ex:
        sys.stderr.write(f"invalid options: {ex}\n{USAGE}")
        return 2

    with output:
        ok = ship(output, stdin, args["retry_interval"], args["max_retries"])
        ok = drain(output, args["retry_interval"], args["max_retries"]) and ok

    if output.pending:
        logger.warning(f"{output.pending} buffered lines were not sent before exit")
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
