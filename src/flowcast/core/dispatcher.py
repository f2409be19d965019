# src/flowcast/core/dispatcher.py
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Optional

from flowcast.core import log
from flowcast.core.invariant import (
    CircularDependencyError,
    DispatchStateError,
    ReentrantDispatchError,
    UnknownTokenError,
    invariant,
)
from flowcast.core.metrics import Timer, gauge_set, inc

Token = str
Callback = Callable[[Any], None]

_PREFIX = "ID_"


def _fn_name(fn: Callable) -> str:
    return getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or repr(fn)


class Dispatcher:
    """
    Broadcasts payloads to every registered callback.

    Differs from a topic pub/sub in two ways:
    1) callbacks do not subscribe to anything: every payload reaches all of them
    2) a callback may defer part or all of its work until other callbacks
       have handled the same payload, via wait_for()

    The registry is snapshotted when a dispatch starts. A callback registered
    during a dispatch runs from the next dispatch on; one unregistered during a
    dispatch still receives the current payload.
    """

    def __init__(self, name: str = "flowcast.dispatcher", *, production: Optional[bool] = None):
        self.name = name
        self.production = production
        self.l = log.get(name)
        self._last_id = 1
        self._callbacks: Dict[Token, Callback] = {}
        self._is_dispatching = False
        self._is_pending: Dict[Token, bool] = {}
        self._is_handled: Dict[Token, bool] = {}
        self._pending_payload: Any = None
        self._snapshot: Optional[Dict[Token, Callback]] = None

    def __len__(self) -> int:
        return len(self._callbacks)

    def __contains__(self, token: object) -> bool:
        return token in self._callbacks

    def _check(self, condition: Any, fmt: str, *args: Any, **kw: Any) -> None:
        invariant(condition, fmt, *args, production=self.production, **kw)

    # -------------------- registry --------------------
    def register(self, callback: Callback) -> Token:
        """Register a callback for every future payload; returns the token used by wait_for()."""
        if not callable(callback):
            raise TypeError(f"callback must be callable, got {type(callback).__name__}")
        token = f"{_PREFIX}{self._last_id}"
        self._last_id += 1
        self._callbacks[token] = callback
        self.l.debug("register token=%s fn=%s", token, _fn_name(callback))
        gauge_set("dispatcher_callbacks", float(len(self._callbacks)), dispatcher=self.name)
        return token

    def unregister(self, token: Token) -> None:
        self._check(
            token in self._callbacks,
            "Dispatcher.unregister(...): `%s` does not map to a registered callback.",
            token,
            error=UnknownTokenError,
            token=token,
        )
        del self._callbacks[token]
        self.l.debug("unregister token=%s", token)
        gauge_set("dispatcher_callbacks", float(len(self._callbacks)), dispatcher=self.name)

    def is_dispatching(self) -> bool:
        return self._is_dispatching

    # -------------------- dispatch --------------------
    def wait_for(self, tokens: Iterable[Token]) -> None:
        """Run the callbacks for ``tokens`` (if not already run) before returning.

        Only valid from inside a callback of the dispatch in progress.
        """
        self._check(
            self._is_dispatching,
            "Dispatcher.wait_for(...): Must be invoked while dispatching.",
            error=DispatchStateError,
        )
        if isinstance(tokens, str):
            raise TypeError("wait_for() expects a sequence of tokens, not a single str")

        for token in tokens:
            if self._is_pending.get(token):
                # started but not finished: it is further up this call stack
                self._check(
                    self._is_handled.get(token),
                    "Dispatcher.wait_for(...): Circular dependency detected while waiting for `%s`.",
                    token,
                    error=CircularDependencyError,
                    token=token,
                )
                continue
            self._check(
                token in self._snapshot,
                "Dispatcher.wait_for(...): `%s` does not map to a registered callback.",
                token,
                error=UnknownTokenError,
                token=token,
            )
            self._invoke_callback(token)

    def dispatch(self, payload: Any) -> None:
        """Send ``payload`` to every registered callback exactly once."""
        self._check(
            not self._is_dispatching,
            "Dispatcher.dispatch(...): Cannot dispatch in the middle of a dispatch.",
            error=ReentrantDispatchError,
        )
        self._start_dispatching(payload)
        try:
            with Timer("dispatch_ms", dispatcher=self.name):
                for token in self._snapshot:
                    # already started through a wait_for() chain of an earlier callback
                    if self._is_pending[token]:
                        continue
                    self._invoke_callback(token)
        except Exception as e:
            inc("dispatch_error_total", 1, dispatcher=self.name)
            self.l.error("dispatch aborted dispatcher=%s err=%s", self.name, e, exc_info=True)
            raise
        finally:
            self._stop_dispatching()
            inc("dispatch_total", 1, dispatcher=self.name)

    # -------------------- internals --------------------
    def _invoke_callback(self, token: Token) -> None:
        self._is_pending[token] = True
        callback = self._snapshot[token]
        # labelled per dispatcher, not per token
        with Timer("callback_ms", dispatcher=self.name):
            callback(self._pending_payload)
        self._is_handled[token] = True

    def _start_dispatching(self, payload: Any) -> None:
        self._snapshot = dict(self._callbacks)
        self._is_pending = {token: False for token in self._snapshot}
        self._is_handled = {token: False for token in self._snapshot}
        self._pending_payload = payload
        self._is_dispatching = True
        self.l.debug("dispatch start dispatcher=%s callbacks=%d", self.name, len(self._snapshot))

    def _stop_dispatching(self) -> None:
        self._pending_payload = None
        self._snapshot = None
        self._is_dispatching = False
