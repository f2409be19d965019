import pytest

from flowcast.core import invariant as inv
from flowcast.core.invariant import (
    GENERIC_MESSAGE,
    CircularDependencyError,
    InvariantViolation,
    invariant,
)


def test_true_condition_passes_false_raises():
    invariant(True, "invariant message")
    with pytest.raises(InvariantViolation, match="invariant message"):
        invariant(False, "invariant message")


def test_placeholders_are_filled_in_order():
    with pytest.raises(InvariantViolation) as ei:
        invariant(False, "`%s` then `%s`", "a", 2)
    assert str(ei.value) == "Invariant Violation: `a` then `2`"


def test_development_requires_message():
    with pytest.raises(InvariantViolation, match="(?i)requires an error"):
        invariant(True)
    with pytest.raises(InvariantViolation, match="(?i)requires an error"):
        invariant(False)


def test_production_allows_missing_message():
    inv.configure(production=True)
    assert inv.is_production()
    invariant(True)
    with pytest.raises(InvariantViolation, match="(?i)use the non-minified dev environment"):
        invariant(False)


def test_production_hides_formatted_detail():
    with pytest.raises(InvariantViolation) as ei:
        invariant(False, "secret `%s`", "x", production=True)
    assert str(ei.value) == GENERIC_MESSAGE


def test_per_call_flag_overrides_module_flag():
    inv.configure(production=True)
    with pytest.raises(InvariantViolation, match="Invariant Violation: detail"):
        invariant(False, "detail", production=False)


def test_error_class_and_attributes():
    with pytest.raises(CircularDependencyError) as ei:
        invariant(False, "loop on `%s`", "ID_3", error=CircularDependencyError, token="ID_3")
    assert ei.value.token == "ID_3"
    assert isinstance(ei.value, RuntimeError)
    assert isinstance(ei.value, InvariantViolation)
