from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class _Subscription:
    __slots__ = ("listener", "once")

    def __init__(self, listener: Listener, once: bool):
        self.listener = listener
        self.once = once


class EventEmitter:
    """
    Synchronous in-process event emitter, registered as the ``event`` service.

    Listeners run in subscription order on the emitting call stack. Exceptions
    raised by a listener propagate to the emitter.
    """

    def __init__(self):
        self._subscriptions: dict[str, list[_Subscription]] = defaultdict(list)

    def on(self, event: str, listener: Listener) -> EventEmitter:
        self._subscriptions[event].append(_Subscription(listener, once=False))
        return self

    def once(self, event: str, listener: Listener) -> EventEmitter:
        self._subscriptions[event].append(_Subscription(listener, once=True))
        return self

    def off(self, event: str, listener: Listener) -> EventEmitter:
        self._subscriptions[event] = [s for s in self._subscriptions[event] if s.listener is not listener]
        return self

    def emit(self, event: str, *args: Any) -> bool:
        subscriptions = list(self._subscriptions.get(event, ()))
        if not subscriptions:
            return False

        logger.debug("emitting %s to %d listener(s)", event, len(subscriptions))
        self._subscriptions[event] = [s for s in self._subscriptions[event] if not s.once]

        for subscription in subscriptions:
            subscription.listener(*args)

        return True

    def listeners(self, event: str) -> list[Listener]:
        return [s.listener for s in self._subscriptions.get(event, ())]

    def listener_count(self, event: str) -> int:
        return len(self._subscriptions.get(event, ()))
