from __future__ import annotations

import datetime as dt
from pathlib import Path

from ..config import OpsConfig
from ..fs_paths import latest_file
from ..host import CommandContext, CommandReply, CommandSpec, PluginHost
from ..shell import run_cmd, safe_exec

PRIVACY_REPORT_PREFIX = "github-privacy-scan_"
MAX_CRON_JOBS = 50
MAX_TIMER_LINES = 25
PRIVACY_TAIL_LINES = 30


def crontab_jobs(crontab: str) -> list[str]:
    jobs = []
    for line in crontab.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            jobs.append(line)
    return jobs


def _mtime_iso(path: Path) -> str:
    try:
        stamp = dt.datetime.fromtimestamp(path.stat().st_mtime, dt.UTC)
    except (OSError, OverflowError, ValueError):
        return "?"
    return stamp.isoformat(timespec="seconds").replace("+00:00", "Z")


def _list_scripts(scripts_dir: Path) -> list[Path] | None:
    """Return the sorted `*.sh` files, or None when the directory is unreadable."""

    try:
        entries = list(scripts_dir.iterdir())
    except OSError:
        return None
    scripts = []
    for entry in entries:
        try:
            if entry.is_file() and entry.suffix == ".sh":
                scripts.append(entry)
        except OSError:
            continue
    return sorted(scripts)


def cron_dashboard(workspace: Path, timeout_s: float) -> str:
    cron_dir = workspace / "cron"
    scripts_dir = cron_dir / "scripts"
    reports_dir = cron_dir / "reports"
    lines = ["Cron dashboard", "", "CRONTAB JOBS"]

    jobs = crontab_jobs(safe_exec(["crontab", "-l"], timeout_s=timeout_s))
    if jobs:
        lines.append(f"jobs ({len(jobs)}):")
        lines.append("```text")
        lines.extend(jobs[:MAX_CRON_JOBS])
        if len(jobs) > MAX_CRON_JOBS:
            lines.append("... (truncated)")
        lines.append("```")
    else:
        lines.append("No user crontab entries found (or permission denied).")

    lines += ["", "SYSTEMD USER TIMERS"]
    timers = safe_exec(
        ["systemctl", "--user", "list-timers", "--all", "--no-pager"], timeout_s=timeout_s
    )
    if timers:
        lines.append("```text")
        lines.extend(timers.splitlines()[:MAX_TIMER_LINES])
        lines.append("```")
    else:
        lines.append("(none found or systemctl not available)")

    lines += ["", "SCRIPTS"]
    scripts = _list_scripts(scripts_dir)
    if scripts is None:
        lines.append("(cron/scripts missing)")
    elif not scripts:
        lines.append("(none)")
    else:
        lines.append(f"files ({len(scripts)}):")
        lines.append("```text")
        for script in scripts:
            lines.append(f"{script.name:<28}  mtime={_mtime_iso(script)}")
        lines.append("```")

    lines += ["", "REPORTS"]
    report = latest_file(reports_dir, PRIVACY_REPORT_PREFIX)
    if report is not None:
        lines += ["latest privacy scan:", "```text", str(report), "```"]
    else:
        lines.append("(no privacy scan report yet)")
    return "\n".join(lines)


def privacy_scan(workspace: Path, timeout_s: float) -> str:
    script = workspace / "ops" / "github-privacy-scan.sh"
    if not script.exists():
        return f"privacy scan script not found: {script}"

    # Non-zero exits still carry a useful report tail.
    result = run_cmd(["bash", str(script)], timeout_s=timeout_s)
    report = latest_file(workspace / "cron" / "reports", PRIVACY_REPORT_PREFIX)
    tail = "\n".join(result.out.splitlines()[-PRIVACY_TAIL_LINES:]).strip()

    lines = ["Privacy scan finished."]
    if result.code != 0:
        lines.append(f"Exit code: {result.code}")
    if report is not None:
        lines.append(f"Report: {report}")
    lines += ["", "```text", tail or "(no output)", "```"]
    return "\n".join(lines)


def register_cron_commands(host: PluginHost, cfg: OpsConfig) -> None:
    workspace = cfg.workspace

    async def cron_handler(ctx: CommandContext) -> CommandReply:
        return {"text": cron_dashboard(workspace, cfg.cmd_timeout_s)}

    async def privacy_scan_handler(ctx: CommandContext) -> CommandReply:
        return {"text": privacy_scan(workspace, cfg.cmd_timeout_s)}

    host.register_command(
        CommandSpec(
            name="cron",
            description="Show cron dashboard (crontab + systemd timers + scripts + latest reports)",
            handler=cron_handler,
        )
    )
    host.register_command(
        CommandSpec(
            name="privacy-scan",
            description="Run GitHub privacy scan (safe, report-only)",
            handler=privacy_scan_handler,
        )
    )
