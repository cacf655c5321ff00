"""
Utilities for building and checking Redis Serialization Protocol (RESP) frames.
"""

import re
from typing import Union

Arg = Union[str, bytes, int]

# Replies accepted for SELECT, AUTH and RPUSH: an integer or a plain +OK.
_POSITIVE_REPLY = re.compile(rb"^(:\d+|\+OK)")


def _to_bytes(value: Arg) -> bytes:
    if isinstance(value, bytes):
        return value
    # lone surrogates from surrogateescape-decoded input map back to their raw bytes
    return str(value).encode("utf-8", errors="surrogateescape")


def encode_command(*args: Arg) -> bytes:
    """
    Encode a command as a RESP array of bulk strings.

    Lengths are byte lengths of the UTF-8 encoded element, so non-ASCII
    payloads are framed correctly.

    :param args: Command name followed by its arguments.
    :returns: The complete frame, e.g. ``b"*2\\r\\n$6\\r\\nSELECT\\r\\n$1\\r\\n0\\r\\n"``.
    """
    parts = [b"*%d\r\n" % len(args)]
    for arg in args:
        data = _to_bytes(arg)
        parts.append(b"$%d\r\n" % len(data))
        parts.append(data)
        parts.append(b"\r\n")
    return b"".join(parts)


def encode_select(database: int) -> bytes:
    """Return the frame for ``SELECT <database>``."""
    return encode_command("SELECT", database)


def encode_auth(password: Union[str, bytes]) -> bytes:
    """Return the frame for ``AUTH <password>``."""
    return encode_command("AUTH", password)


def encode_rpush(key: Union[str, bytes], line: Union[str, bytes]) -> bytes:
    """Return the frame for ``RPUSH <key> <line>``."""
    return encode_command("RPUSH", key, line)


def is_positive_reply(reply: bytes) -> bool:
    """
    Check a single reply line against the replies a log push accepts.

    :param reply: One raw reply line, with or without the trailing CRLF.
    :returns: ``True`` for ``:<n>`` and ``+OK`` replies.
    """
    return _POSITIVE_REPLY.match(reply) is not None


def is_error_reply(reply: bytes) -> bool:
    """Return ``True`` when *reply* is a RESP error line (``-ERR ...``, ``-WRONGTYPE ...``)."""
    return reply.startswith(b"-")


def describe_reply(reply: bytes) -> str:
    """
    Render a reply line for log messages.

    :param reply: Raw reply bytes.
    :returns: The reply decoded leniently, without the trailing CRLF.
    """
    return reply.rstrip(b"\r\n").decode("utf-8", errors="replace")
