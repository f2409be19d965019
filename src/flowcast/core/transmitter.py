# src/flowcast/core/transmitter.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List

from flowcast.core import log
from flowcast.core.metrics import gauge_set, inc

Listener = Callable[[Any], None]


@dataclass
class Subscription:
    """Handle returned by Transmitter.subscribe()."""
    transmitter: "Transmitter"
    listener: Listener

    def dispose(self) -> None:
        self.transmitter.unsubscribe(self.listener)


class Transmitter:
    """Plain fan-out channel: no topics, no ordering between listeners."""

    def __init__(self, name: str = "flowcast.transmitter"):
        self.name = name
        self.l = log.get(name)
        self._subs: List[Listener] = []

    def __len__(self) -> int:
        return len(self._subs)

    def subscribe(self, listener: Listener) -> Subscription:
        self._subs.append(listener)
        self.l.debug("subscribed fn=%s", getattr(listener, "__name__", str(listener)))
        gauge_set("transmitter_subscribers", float(len(self._subs)), transmitter=self.name)
        return Subscription(self, listener)

    def unsubscribe(self, listener: Listener) -> None:
        # unknown listeners are ignored
        try:
            self._subs.remove(listener)
        except ValueError:
            return
        gauge_set("transmitter_subscribers", float(len(self._subs)), transmitter=self.name)

    def push(self, value: Any) -> None:
        inc("transmitter_push_total", 1, transmitter=self.name)
        for fn in list(self._subs):
            fn(value)


def transmitter(name: str = "flowcast.transmitter") -> Transmitter:
    return Transmitter(name)
