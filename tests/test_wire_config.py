import textwrap

import pytest

import wiring_targets
from flowcast.wire_config import build_from_dict, build_from_yaml


@pytest.fixture(autouse=True)
def _clear_calls():
    wiring_targets.CALLS.clear()
    yield
    wiring_targets.CALLS.clear()


def test_build_from_yaml_orders_by_wait_for(tmp_path):
    cfg = tmp_path / "wiring.yaml"
    cfg.write_text(textwrap.dedent("""
        dispatcher:
          name: wired
        callbacks:
          - name: total
            target: wiring_targets:on_total
            wait_for: [price, qty]
          - name: price
            target: wiring_targets:on_price
          - name: qty
            target: wiring_targets.on_qty
          - name: audit
            target: wiring_targets:Audit.record
    """), encoding="utf-8")

    dispatcher, tokens = build_from_yaml(str(cfg))
    assert dispatcher.name == "wired"
    assert list(tokens) == ["total", "price", "qty", "audit"]
    assert tokens["total"] == "ID_1"

    dispatcher.dispatch({"p": 1})
    assert [name for name, _ in wiring_targets.CALLS] == ["price", "qty", "total", "audit"]
    assert all(p == {"p": 1} for _, p in wiring_targets.CALLS)


def test_production_flag_is_passed_through():
    dispatcher, _ = build_from_dict({"dispatcher": {"production": True}})
    assert dispatcher.production is True


def test_unknown_dependency_rejected():
    with pytest.raises(ValueError, match="unknown callbacks"):
        build_from_dict({"callbacks": [
            {"name": "a", "target": "wiring_targets:on_price", "wait_for": ["nope"]},
        ]})


def test_duplicate_names_rejected():
    with pytest.raises(ValueError, match="duplicate"):
        build_from_dict({"callbacks": [
            {"name": "a", "target": "wiring_targets:on_price"},
            {"name": "a", "target": "wiring_targets:on_qty"},
        ]})


def test_bad_target_rejected():
    with pytest.raises(ValueError, match="bad callback target"):
        build_from_dict({"callbacks": [{"name": "a", "target": "on_price"}]})


def test_empty_file_gives_empty_dispatcher(tmp_path):
    cfg = tmp_path / "empty.yaml"
    cfg.write_text("", encoding="utf-8")
    dispatcher, tokens = build_from_yaml(str(cfg))
    assert tokens == {}
    assert len(dispatcher) == 0


def test_wait_for_must_be_a_list():
    with pytest.raises(ValueError, match="wait_for must be a list"):
        build_from_dict({"callbacks": [
            {"name": "total", "target": "wiring_targets:on_total", "wait_for": "price"},
            {"name": "price", "target": "wiring_targets:on_price"},
        ]})
