"""Fail-fast precondition guard used by the dispatcher.

Two message modes:

- development (default): the formatted message, ``%s`` placeholders filled
  from the positional arguments in order
- production: a generic message only; the error class and attributes are kept
  so callers can still tell failures apart

The mode is a flag (``configure(production=...)`` or the per-call
``production=`` argument), never read from the environment here.
"""
from __future__ import annotations

import re
from typing import Any, Optional, Type

GENERIC_MESSAGE = (
    "Minified exception occurred; use the non-minified dev environment "
    "for the full error message and additional helpful warnings."
)
_PLACEHOLDER = re.compile("%s")

_production = False


class InvariantViolation(Exception):
    """Base class of every guard failure. Extra keyword attributes are set on the instance."""
    def __init__(self, message: str, **attrs: Any):
        super().__init__(message)
        self.message = message
        for k, v in attrs.items():
            setattr(self, k, v)


class ReentrantDispatchError(InvariantViolation, RuntimeError):
    """dispatch() called while another dispatch is in progress."""


class DispatchStateError(InvariantViolation, RuntimeError):
    """Operation only valid during a dispatch was called outside one."""


class UnknownTokenError(InvariantViolation, ValueError):
    token: Optional[str] = None


class CircularDependencyError(InvariantViolation, RuntimeError):
    token: Optional[str] = None


def configure(*, production: bool) -> None:
    global _production
    _production = bool(production)


def is_production() -> bool:
    return _production


def _format(fmt: str, args: tuple) -> str:
    it = iter(args)
    return _PLACEHOLDER.sub(lambda _m: str(next(it, None)), fmt)


def invariant(
    condition: Any,
    fmt: Optional[str] = None,
    *args: Any,
    error: Type[InvariantViolation] = InvariantViolation,
    production: Optional[bool] = None,
    **attrs: Any,
) -> None:
    """Raise ``error`` unless ``condition`` is truthy.

    In development mode a missing ``fmt`` is itself a bug and raises even when
    the condition holds.
    """
    prod = _production if production is None else production
    if not prod and fmt is None:
        raise InvariantViolation("invariant requires an error message argument")

    if condition:
        return

    if prod or fmt is None:
        message = GENERIC_MESSAGE
    else:
        message = "Invariant Violation: " + _format(fmt, args)
    raise error(message, **attrs)
