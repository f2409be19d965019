# src/flowcast/wire_config.py
from __future__ import annotations

import functools
import importlib
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import yaml

from flowcast.core import log
from flowcast.core.dispatcher import Callback, Dispatcher, Token

l = log.get("flowcast.wire")


def _imp(target: str) -> Callable:
    """Resolve "pkg.mod:attr" or "pkg.mod.attr"."""
    if ":" in target:
        module, attr = target.split(":", 1)
    else:
        module, _, attr = target.rpartition(".")
    if not module or not attr:
        raise ValueError(f"bad callback target {target!r}")
    obj: Any = importlib.import_module(module)
    for part in attr.split("."):
        obj = getattr(obj, part)
    return obj


def _after(dispatcher: Dispatcher, deps: List[Token], fn: Callback) -> Callback:
    @functools.wraps(fn)
    def run(payload: Any) -> None:
        dispatcher.wait_for(deps)
        fn(payload)
    return run


def build_from_dict(data: Dict[str, Any]) -> Tuple[Dispatcher, Dict[str, Token]]:
    disp_cfg = data.get("dispatcher") or {}
    dispatcher = Dispatcher(
        name=str(disp_cfg.get("name", "flowcast.dispatcher")),
        production=disp_cfg.get("production"),
    )

    entries = data.get("callbacks") or []
    names = [e["name"] for e in entries]
    dupes = {n for n in names if names.count(n) > 1}
    if dupes:
        raise ValueError(f"duplicate callback names: {sorted(dupes)}")
    for e in entries:
        if isinstance(e.get("wait_for"), str):
            raise ValueError(f"callback {e['name']!r}: wait_for must be a list")
        missing = [d for d in e.get("wait_for") or [] if d not in names]
        if missing:
            raise ValueError(f"callback {e['name']!r} waits for unknown callbacks {missing}")

    # wait_for may name a callback declared further down, so the token lists
    # handed to the wrappers are filled once everything is registered
    tokens: Dict[str, Token] = {}
    deferred: List[Tuple[List[Token], List[str]]] = []
    for e in entries:
        fn = _imp(e["target"])
        deps = list(e.get("wait_for") or [])
        if deps:
            dep_tokens: List[Token] = []
            deferred.append((dep_tokens, deps))
            fn = _after(dispatcher, dep_tokens, fn)
        tokens[e["name"]] = dispatcher.register(fn)
        l.info("wired callback name=%s target=%s token=%s", e["name"], e["target"], tokens[e["name"]])

    for dep_tokens, deps in deferred:
        dep_tokens.extend(tokens[d] for d in deps)

    return dispatcher, tokens


def build_from_yaml(yaml_path: str) -> Tuple[Dispatcher, Dict[str, Token]]:
    """Read a wiring file and return the dispatcher plus {callback name: token}."""
    data = yaml.safe_load(Path(yaml_path).read_text(encoding="utf-8")) or {}
    return build_from_dict(data)
