from __future__ import annotations

import re
from pathlib import Path

from ..config import OpsConfig
from ..fs_paths import newest_entry, tail_lines
from ..host import CommandContext, CommandReply, CommandSpec, PluginHost
from ..observer.aggregate import parse_int_prefix, parse_limit
from ..shell import safe_exec
from .health_cmds import check_gateway_status
from .skills_cmds import scan_installed_plugins

DEFAULT_PROFILE = "default"
PROFILE_DIR_PREFIX = ".openclaw-"
DEFAULT_LOG_SERVICE = "gateway"
LOGS_DEFAULT_LINES = 50
LOGS_MAX_LINES = 200
MAX_UNIT_LINES = 25
MAX_PLUGIN_LINES = 80

_SERVICE_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def discover_profiles(openclaw_home: Path) -> list[str]:
    """``default`` plus every ``~/.openclaw-<name>`` sibling of the home dir."""

    profiles = [DEFAULT_PROFILE]
    try:
        entries = sorted(openclaw_home.parent.iterdir())
    except OSError:
        return profiles
    for entry in entries:
        name = entry.name
        if not name.startswith(PROFILE_DIR_PREFIX) or len(name) == len(PROFILE_DIR_PREFIX):
            continue
        try:
            if entry.is_dir():
                profiles.append(name[len(PROFILE_DIR_PREFIX) :])
        except OSError:
            continue
    return profiles


def services_report(cfg: OpsConfig) -> str:
    lines = ["Services Status", "", "PROFILES"]
    for profile in discover_profiles(cfg.home):
        status = check_gateway_status(cfg.openclaw_bin, profile)
        details = []
        if status.pid is not None:
            details.append(f"PID {status.pid}")
        if status.uptime:
            details.append(f"up {status.uptime}")
        suffix = f" ({', '.join(details)})" if details else ""
        state = "running" if status.running else "not running"
        lines.append(f"- {profile}: {state}{suffix}")

    lines += ["", "SYSTEMD USER UNITS"]
    units = safe_exec(
        ["systemctl", "--user", "list-units", "openclaw*", "--all", "--no-pager", "--plain"],
        timeout_s=cfg.cmd_timeout_s,
    )
    if units:
        lines.append("```text")
        lines.extend(units.splitlines()[:MAX_UNIT_LINES])
        lines.append("```")
    else:
        lines.append("(none found or systemctl not available)")
    return "\n".join(lines)


def parse_logs_args(raw: str | None) -> tuple[str, int]:
    """``[service] [n]``; a lone number is a line count for the gateway log."""

    parts = (raw or "").split()
    if not parts:
        return DEFAULT_LOG_SERVICE, LOGS_DEFAULT_LINES
    if len(parts) == 1 and parts[0].isdigit():
        return DEFAULT_LOG_SERVICE, parse_limit(parts[0], LOGS_DEFAULT_LINES, LOGS_MAX_LINES)
    count = LOGS_DEFAULT_LINES
    if len(parts) > 1 and parse_int_prefix(parts[1]) is not None:
        count = parse_limit(parts[1], LOGS_DEFAULT_LINES, LOGS_MAX_LINES)
    return parts[0], count


def logs_report(cfg: OpsConfig, args: str | None) -> str:
    service, count = parse_logs_args(args)
    if not _SERVICE_RE.match(service):
        return f"Logs: invalid service name {service!r}"

    logs_dir = cfg.home / "logs"
    log_path = newest_entry(
        logs_dir, lambda entry: entry.suffix == ".log" and entry.name.startswith(service)
    )
    if log_path is None:
        return f"Logs: {service}\n\nNo log file found for {service} in {logs_dir}"
    try:
        tail = tail_lines(log_path, count)
    except OSError as exc:
        return f"Logs: {service}\n\nFailed to read {log_path}: {exc}"
    lines = [f"Logs: {service} (last {len(tail)} lines of {log_path.name})", "", "```text"]
    lines.append("\n".join(tail) or "(empty)")
    lines.append("```")
    return "\n".join(lines)


def plugins_report(cfg: OpsConfig) -> str:
    out = safe_exec([cfg.openclaw_bin, "plugins", "list"], timeout_s=cfg.cmd_timeout_s)
    if out:
        lines = ["Plugins Dashboard", "", "```text"]
        lines.extend(out.splitlines()[:MAX_PLUGIN_LINES])
        lines.append("```")
        return "\n".join(lines)

    lines = [
        "Plugins Dashboard (local scan)",
        "",
        f"Failed to run: {cfg.openclaw_bin} plugins list",
        "",
    ]
    plugins = scan_installed_plugins(cfg.workspace)
    if not plugins:
        lines.append("No openclaw-* plugins found in workspace.")
    for plugin in plugins:
        lines.append(f"- {plugin.name} v{plugin.version} ({len(plugin.commands)} commands)")
    return "\n".join(lines)


def register_services_commands(host: PluginHost, cfg: OpsConfig) -> None:
    async def services_handler(ctx: CommandContext) -> CommandReply:
        return {"text": services_report(cfg)}

    async def logs_handler(ctx: CommandContext) -> CommandReply:
        return {"text": logs_report(cfg, ctx.args)}

    async def plugins_handler(ctx: CommandContext) -> CommandReply:
        return {"text": plugins_report(cfg)}

    host.register_command(
        CommandSpec(
            name="services",
            description="Show gateway status for every OpenClaw profile and its systemd units",
            handler=services_handler,
        )
    )
    host.register_command(
        CommandSpec(
            name="logs",
            description="Tail a service log. Usage: /logs [service] [lines]",
            usage="/logs [service] [lines]",
            accepts_args=True,
            handler=logs_handler,
        )
    )
    host.register_command(
        CommandSpec(
            name="plugins",
            description="Show the installed plugins dashboard",
            handler=plugins_handler,
        )
    )
