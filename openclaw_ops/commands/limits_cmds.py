from __future__ import annotations

import datetime as dt
import json
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..config import OpsConfig
from ..host import CommandContext, CommandReply, CommandSpec, PluginHost
from ..shell import safe_exec

logger = logging.getLogger(__name__)

RATELIMIT_STATE = Path("memory") / "model-ratelimits.json"
MAX_EXPIRY_LINES = 120
MAX_COOLDOWNS = 50
MODEL_COLUMN_MAX = 42

_BULLET_RE = re.compile(r"^\s*-\s+")


@dataclass(frozen=True)
class Cooldown:
    model: str
    last_hit_at: int | None
    next_available_at: int
    reason: str | None = None


@dataclass(frozen=True)
class ModelsStatus:
    header: list[str]
    expiry: list[str]


def parse_models_status(output: str) -> ModelsStatus:
    """Pull the config header and the OAuth/token expiry bullets from CLI output."""

    lines = output.splitlines()
    header = []
    for prefix in ("Default", "Fallbacks"):
        match = next((line for line in lines if line.startswith(prefix)), "")
        if match:
            header.append(match)

    expiry: list[str] = []
    start = next((i for i, line in enumerate(lines) if line.strip() == "OAuth/token status"), None)
    if start is not None:
        for line in lines[start + 1 :]:
            if line.strip() and not line.startswith(("-", " ", "\t")):
                break
            if not line.strip():
                continue
            if _BULLET_RE.match(line):
                expiry.append(line)
    return ModelsStatus(header=header, expiry=expiry)


def read_ratelimit_state(workspace: Path) -> dict[str, Any] | None:
    """Return the failover state file, or None when it was never written.

    Raises ``ValueError`` for unreadable or malformed state.
    """

    path = workspace / RATELIMIT_STATE
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"invalid rate-limit state: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("rate-limit state must be an object")
    return data


def active_cooldowns(state: dict[str, Any], now: int | None = None) -> list[Cooldown]:
    now = int(time.time()) if now is None else now
    limited = state.get("limited") or {}
    if not isinstance(limited, dict):
        return []
    active = []
    for model, entry in limited.items():
        if not isinstance(entry, dict):
            continue
        next_at = entry.get("nextAvailableAt")
        if not isinstance(next_at, int | float) or isinstance(next_at, bool) or next_at <= now:
            continue
        last_hit = entry.get("lastHitAt")
        active.append(
            Cooldown(
                model=str(model),
                last_hit_at=int(last_hit) if isinstance(last_hit, int | float) else None,
                next_available_at=int(next_at),
                reason=entry.get("reason"),
            )
        )
    active.sort(key=lambda c: c.next_available_at)
    return active[:MAX_COOLDOWNS]


def format_cooldowns(cooldowns: list[Cooldown], now: int) -> list[str]:
    width = min(MODEL_COLUMN_MAX, max(len(c.model) for c in cooldowns))
    lines = ["```text", f"{'MODEL':<{width}}  UNTIL (UTC)           ETA"]
    for cooldown in cooldowns:
        eta_min = max(0, round((cooldown.next_available_at - now) / 60))
        try:
            until = dt.datetime.fromtimestamp(cooldown.next_available_at, dt.UTC)
        except (OverflowError, OSError, ValueError):
            until_iso = "?"
        else:
            until_iso = until.strftime("%Y-%m-%dT%H:%M:%SZ")
        lines.append(f"{cooldown.model:<{width}}  {until_iso}  ~{eta_min}m")
    lines.append("```")
    return lines


def cooldown_section(workspace: Path, now: int | None = None) -> list[str]:
    now = int(time.time()) if now is None else now
    try:
        state = read_ratelimit_state(workspace)
    except ValueError as exc:
        logger.warning("rate-limit state read failed", exc_info=exc)
        return ["Failed to read local cooldown state."]
    if state is None:
        return ["None recorded yet. (Shows up after first 429/quota event via model-failover.)"]
    active = active_cooldowns(state, now)
    if not active:
        return ["None active."]
    return format_cooldowns(active, now)


def limits_report(cfg: OpsConfig, now: int | None = None) -> str:
    out = safe_exec([cfg.openclaw_bin, "models", "status"], timeout_s=cfg.cmd_timeout_s)
    if not out:
        return f"Failed to run: {cfg.openclaw_bin} models status"
    status = parse_models_status(out)

    lines = ["Limits"]
    if status.header:
        lines += ["", "CONFIG", "```text", *status.header, "```"]

    lines += ["", "AUTH EXPIRY (hard stop)"]
    if status.expiry:
        lines.append("```text")
        lines.extend(status.expiry[:MAX_EXPIRY_LINES])
        if len(status.expiry) > MAX_EXPIRY_LINES:
            lines.append("... (truncated)")
        lines.append("```")
    else:
        lines.append("(not found in CLI output)")

    lines += ["", "RATE LIMIT COOLDOWNS (observed)"]
    lines.extend(cooldown_section(cfg.workspace, now))

    lines += [
        "",
        "NOTE",
        "OpenClaw does not expose per-model token remaining, quota counters, "
        "or official reset timestamps via CLI/API today.",
        "This command reports provider auth expiry and observed cooldown windows "
        "from local failover state.",
    ]
    return "\n".join(lines)


def register_limits_commands(host: PluginHost, cfg: OpsConfig) -> None:
    async def limits_handler(ctx: CommandContext) -> CommandReply:
        return {"text": limits_report(cfg)}

    host.register_command(
        CommandSpec(
            name="limits",
            description="Show model/provider auth expiries and status (best-effort)",
            handler=limits_handler,
        )
    )
