"""Latest-request-wins bookkeeping for overlapping fetches."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")


class RequestSequencer:
    """Monotonic ticket counter.

    Each fetch takes a ticket before awaiting the backend. When the response
    arrives it is applied only if no newer ticket has been issued since, so a
    slow stale response cannot overwrite fresher state.
    """

    def __init__(self) -> None:
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def next(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, ticket: int) -> bool:
        return ticket == self._latest

    def apply(self, ticket: int, update: Callable[[], T]) -> T | None:
        """Run ``update`` only for the current ticket; stale tickets are dropped."""
        if not self.is_current(ticket):
            return None
        return update()
