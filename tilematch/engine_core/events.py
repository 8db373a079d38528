"""
Event channels - Explicit subscribe/emit plumbing for collaborators.

A channel delivers payloads synchronously, in subscription order,
on the engine's event loop. Subscribers that raise are logged and
skipped so one bad listener cannot break the game state machine.
"""

from __future__ import annotations
from typing import Callable, Generic, TypeVar
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventChannel(Generic[T]):
    """
    A named stream of discrete events.

    Usage:
        unsubscribe = engine.matched.subscribe(lambda pair: wiggle(pair))
        ...
        unsubscribe()
    """

    def __init__(self, name: str):
        self.name = name
        self._subscribers: list[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register a callback; returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, payload: T) -> None:
        for callback in list(self._subscribers):
            try:
                callback(payload)
            except Exception:
                logger.exception("Subscriber to %s failed", self.name)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
