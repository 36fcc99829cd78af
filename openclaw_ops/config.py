from __future__ import annotations

import json
import os
import warnings
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from .fs_paths import expand_home

DEFAULT_CONFIG_PATH = Path("~/.config/openclaw-ops/config.json").expanduser()
DEFAULT_WORKSPACE = "~/.openclaw/workspace"

CONFIG_ENV_OVERRIDES = {
    "enabled": "OPENCLAW_OPS_ENABLED",
    "workspace_path": "OPENCLAW_OPS_WORKSPACE",
    "observer_max_events": "OPENCLAW_OPS_OBSERVER_MAX_EVENTS",
    "cmd_timeout_ms": "OPENCLAW_OPS_CMD_TIMEOUT_MS",
    "openclaw_bin": "OPENCLAW_OPS_OPENCLAW_BIN",
    "openclaw_home": "OPENCLAW_OPS_OPENCLAW_HOME",
}

# Host plugin configs use camelCase keys.
PLUGIN_CONFIG_ALIASES = {
    "workspacePath": "workspace_path",
    "observerMaxEvents": "observer_max_events",
    "cmdTimeoutMs": "cmd_timeout_ms",
    "openclawBin": "openclaw_bin",
    "openclawHome": "openclaw_home",
}

_INT_KEYS = {"observer_max_events", "cmd_timeout_ms"}
_BOOL_KEYS = {"enabled"}


def get_config_path(path: Path | None = None) -> Path:
    candidate = path or Path(os.getenv("OPENCLAW_OPS_CONFIG", DEFAULT_CONFIG_PATH))
    return candidate.expanduser()


def read_config_file(path: Path | None = None) -> dict[str, Any]:
    config_path = get_config_path(path)
    if not config_path.exists():
        return {}
    raw = config_path.read_text()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid config json") from exc
    if not isinstance(data, dict):
        raise ValueError("config must be an object")
    return data


def get_env_overrides() -> dict[str, str]:
    return {
        key: os.environ[env_var]
        for key, env_var in CONFIG_ENV_OVERRIDES.items()
        if env_var in os.environ
    }


@dataclass
class OpsConfig:
    enabled: bool = True
    workspace_path: str = DEFAULT_WORKSPACE
    observer_max_events: int = 5000
    cmd_timeout_ms: int = 120_000
    openclaw_bin: str = "openclaw"
    openclaw_home: str = "~/.openclaw"

    @property
    def workspace(self) -> Path:
        return expand_home(self.workspace_path)

    @property
    def home(self) -> Path:
        return expand_home(self.openclaw_home)

    @property
    def cmd_timeout_s(self) -> float:
        return self.cmd_timeout_ms / 1000

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    if value.lower() in {"1", "true", "yes", "on"}:
        return True
    if value.lower() in {"0", "false", "off", "no"}:
        return False
    return default


def _parse_int(value: object, default: int, *, key: str) -> int:
    if value is None:
        return default
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default


def _coerce_bool(value: object, default: bool, *, key: str) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return _parse_bool(value, default)
    warnings.warn(f"Invalid bool for {key}: {value!r}", RuntimeWarning, stacklevel=2)
    return default


def load_config(
    path: Path | None = None, plugin_config: dict[str, Any] | None = None
) -> OpsConfig:
    """Build the effective config: file, then host plugin config, then env.

    A malformed config file warns and is ignored; ``openclaw-ops config``
    reports it as an error instead.
    """

    cfg = OpsConfig()
    try:
        data = read_config_file(path)
    except ValueError as exc:
        warnings.warn(
            f"Ignoring config file {get_config_path(path)}: {exc}", RuntimeWarning, stacklevel=2
        )
        data = {}
    cfg = _apply_dict(cfg, data)
    if plugin_config:
        cfg = _apply_dict(cfg, plugin_config)
    return _apply_dict(cfg, get_env_overrides())


def _apply_dict(cfg: OpsConfig, data: dict[str, Any]) -> OpsConfig:
    for raw_key, value in data.items():
        key = PLUGIN_CONFIG_ALIASES.get(raw_key, raw_key)
        if not hasattr(cfg, key):
            continue
        if key in _INT_KEYS:
            setattr(cfg, key, _parse_int(value, getattr(cfg, key), key=key))
            continue
        if key in _BOOL_KEYS:
            setattr(cfg, key, _coerce_bool(value, getattr(cfg, key), key=key))
            continue
        if value is None:
            continue
        setattr(cfg, key, str(value))
    return cfg
