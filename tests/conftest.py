from __future__ import annotations

from pathlib import Path

import pytest

from openclaw_ops.config import CONFIG_ENV_OVERRIDES
from openclaw_ops.host import LocalHost
from openclaw_ops.observer import register_observer_commands


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("OPENCLAW_OPS_CONFIG", str(tmp_path / "missing-config.json"))
    for env_var in CONFIG_ENV_OVERRIDES.values():
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def host(workspace: Path) -> LocalHost:
    host = LocalHost()
    register_observer_commands(host, workspace)
    return host
