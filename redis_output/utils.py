"""
General-purpose helpers used by the transport.
"""

import time
from typing import Optional

from .errors import TransportTimeout


class Deadline:
    """
    A point in monotonic time by which an operation must finish.

    Every blocking socket call of a flush takes its timeout from
    :meth:`remaining`, so connect, handshake, write and reads together never
    run longer than the budget given at construction.
    """

    def __init__(self, seconds: float, description: str = "operation") -> None:
        self.seconds = seconds
        self.description = description
        self._expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        """
        Return the seconds left before the deadline.

        :raises TransportTimeout: when the deadline has already passed.
        """
        left = self._expires_at - time.monotonic()
        if left <= 0:
            raise self.timeout_error()
        return left

    def expired(self) -> bool:
        return time.monotonic() >= self._expires_at

    def timeout_error(self, detail: Optional[str] = None) -> TransportTimeout:
        message = f"{self.description} timed out after {self.seconds:g} seconds"
        if detail:
            message = f"{message} ({detail})"
        return TransportTimeout(message)
