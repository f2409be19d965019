# src/flowcast/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from flowcast.core import invariant, log

_TRUE = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    log_level: str = "INFO"
    log_json: bool = False
    production: bool = False
    metrics_interval: float = 5.0

    def apply(self) -> None:
        """Push the settings into logging and the invariant guard."""
        log.setup(self.log_level, self.log_json, force=True)
        invariant.configure(production=self.production)


def _flag(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in _TRUE


_ENV = {
    "log_level": ("LOG_LEVEL", str),
    "log_json": ("LOG_JSON", _flag),
    "production": ("FLOWCAST_PRODUCTION", _flag),
    "metrics_interval": ("METRICS_INTERVAL", float),
}


def load_settings(path: Optional[str] = None) -> Settings:
    """YAML file (optional) first, then LOG_LEVEL / LOG_JSON / FLOWCAST_PRODUCTION / METRICS_INTERVAL."""
    load_dotenv()
    data: Dict[str, Any] = {}
    if path:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"settings file {path} must contain a mapping")

    known = {f.name for f in fields(Settings)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"unknown settings keys: {sorted(unknown)}")

    values: Dict[str, Any] = {}
    for key in known:
        env_name, conv = _ENV[key]
        raw = os.getenv(env_name)
        if raw is not None:
            values[key] = conv(raw)
        elif key in data:
            values[key] = conv(data[key])
    return Settings(**values)
