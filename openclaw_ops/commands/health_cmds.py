from __future__ import annotations

import os
import re
import shutil
import time
from dataclasses import dataclass
from pathlib import Path

from ..config import OpsConfig
from ..fs_paths import format_bytes, newest_entry
from ..host import CommandContext, CommandReply, CommandSpec, PluginHost
from ..shell import run_cmd
from .limits_cmds import active_cooldowns, read_ratelimit_state

MAX_ERROR_LINES = 5
GATEWAY_STATUS_TIMEOUT_S = 10.0

_PID_RE = re.compile(r"PID[:\s]+(\d+)", re.IGNORECASE)
_UPTIME_RE = re.compile(r"uptime[:\s]+(.+?)(?:\n|$)", re.IGNORECASE)
_ERROR_RE = re.compile(r"\b(error|fatal|exception)\b", re.IGNORECASE)


@dataclass(frozen=True)
class GatewayStatus:
    running: bool
    pid: int | None = None
    uptime: str | None = None


def check_gateway_status(openclaw_bin: str = "openclaw", profile: str = "default") -> GatewayStatus:
    profile_args = [] if profile == "default" else ["--profile", profile]
    result = run_cmd(
        [openclaw_bin, *profile_args, "gateway", "status"], timeout_s=GATEWAY_STATUS_TIMEOUT_S
    )
    running = result.code == 0 and "running" in result.out.lower()
    pid_match = _PID_RE.search(result.out)
    uptime_match = _UPTIME_RE.search(result.out)
    return GatewayStatus(
        running=running,
        pid=int(pid_match.group(1)) if pid_match else None,
        uptime=uptime_match.group(1).strip() if uptime_match else None,
    )


def _read_meminfo(path: Path = Path("/proc/meminfo")) -> dict[str, int]:
    meminfo: dict[str, int] = {}
    try:
        raw = path.read_text()
    except OSError:
        return meminfo
    for line in raw.splitlines():
        key, _, rest = line.partition(":")
        fields = rest.split()
        if fields and fields[0].isdigit():
            meminfo[key.strip()] = int(fields[0]) * 1024
    return meminfo


def system_resources() -> dict[str, str]:
    try:
        load1, load5, load15 = os.getloadavg()
        cpu = f"{load1:.2f}, {load5:.2f}, {load15:.2f}"
    except OSError:
        cpu = "N/A"

    meminfo = _read_meminfo()
    total = meminfo.get("MemTotal", 0)
    if total:
        used = total - meminfo.get("MemAvailable", 0)
        memory = f"{format_bytes(used)} / {format_bytes(total)} ({used / total * 100:.1f}%)"
    else:
        memory = "N/A"

    try:
        usage = shutil.disk_usage("/")
        pct = usage.used / usage.total * 100 if usage.total else 0.0
        disk = f"{pct:.0f}% used ({format_bytes(usage.used)} / {format_bytes(usage.total)})"
    except OSError:
        disk = "N/A"
    return {"cpu": cpu, "memory": memory, "disk": disk}


def recent_errors(logs_dir: Path, limit: int = MAX_ERROR_LINES) -> tuple[Path | None, list[str]]:
    """Return the newest ``*.log`` under ``logs_dir`` and its last error lines."""

    newest = newest_entry(logs_dir, lambda entry: entry.suffix == ".log")
    if newest is None:
        return None, []
    try:
        raw = newest.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return newest, []
    errors = [line.rstrip() for line in raw.splitlines() if _ERROR_RE.search(line)]
    return newest, errors[-limit:]


def health_report(cfg: OpsConfig) -> str:
    lines = ["System Health", "", "GATEWAY"]
    gateway = check_gateway_status(cfg.openclaw_bin)
    lines.append(f"- Status: {'running' if gateway.running else 'not running'}")
    if gateway.pid is not None:
        lines.append(f"- PID: {gateway.pid}")
    if gateway.uptime:
        lines.append(f"- Uptime: {gateway.uptime}")

    resources = system_resources()
    lines += ["", "RESOURCES"]
    lines.append(f"- CPU load: {resources['cpu']}")
    lines.append(f"- Memory: {resources['memory']}")
    lines.append(f"- Disk: {resources['disk']}")

    lines += ["", "COOLDOWNS"]
    try:
        state = read_ratelimit_state(cfg.workspace)
    except ValueError:
        lines.append("- Failed to read local cooldown state.")
    else:
        active = active_cooldowns(state or {}, int(time.time()))
        if active:
            lines.append(f"- {len(active)} model(s) cooling down (see /limits)")
        else:
            lines.append("- None active.")

    lines += ["", "ERRORS"]
    log_path, errors = recent_errors(cfg.home / "logs")
    if log_path is None:
        lines.append("- No log files found.")
    elif not errors:
        lines.append(f"- No recent errors in {log_path.name}")
    else:
        lines.append(f"Last {len(errors)} from {log_path.name}:")
        lines.append("```text")
        lines.extend(errors)
        lines.append("```")
    return "\n".join(lines)


def register_health_commands(host: PluginHost, cfg: OpsConfig) -> None:
    async def health_handler(ctx: CommandContext) -> CommandReply:
        return {"text": health_report(cfg)}

    host.register_command(
        CommandSpec(
            name="health",
            description="Quick system health: gateway, resources, cooldowns, recent errors",
            handler=health_handler,
        )
    )
