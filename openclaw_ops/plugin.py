from __future__ import annotations

import logging
from pathlib import Path

from .commands.cron_cmds import register_cron_commands
from .commands.health_cmds import register_health_commands
from .commands.limits_cmds import register_limits_commands
from .commands.release_cmds import register_release_commands
from .commands.services_cmds import register_services_commands
from .commands.skills_cmds import register_skills_commands
from .config import OpsConfig, load_config
from .host import PluginHost
from .observer import SessionObserver, register_observer_commands

logger = logging.getLogger(__name__)


def register(host: PluginHost, *, config_path: Path | None = None) -> SessionObserver | None:
    """Plugin entry point: wire every command group into ``host``.

    Returns the session observer, or None when the plugin is disabled.
    """

    cfg = load_config(config_path, plugin_config=host.plugin_config)
    if not cfg.enabled:
        logger.info("openclaw-ops disabled by config")
        return None
    return register_all(host, cfg)


def register_all(host: PluginHost, cfg: OpsConfig) -> SessionObserver:
    register_cron_commands(host, cfg)
    register_limits_commands(host, cfg)
    register_health_commands(host, cfg)
    register_skills_commands(host, cfg)
    register_release_commands(host, cfg)
    register_services_commands(host, cfg)
    return register_observer_commands(host, cfg.workspace, max_events=cfg.observer_max_events)
