"""Release checklist, staging smoke run and agent handoff log.

All three read from the ``openclaw-ops`` checkout inside the workspace.
"""

from __future__ import annotations

from pathlib import Path

from ..config import OpsConfig
from ..fs_paths import tail_lines
from ..host import CommandContext, CommandReply, CommandSpec, PluginHost
from ..shell import run_cmd

OPS_CHECKOUT = "openclaw-ops"
RELEASE_DOC = Path("RELEASE.md")
SMOKE_SCRIPT = Path("scripts") / "staging-smoke.sh"
HANDOFF_LOG = Path(".ai") / "handoff" / "LOG.md"

MAX_RELEASE_LINES = 120
SMOKE_TAIL_LINES = 40
HANDOFF_TAIL_LINES = 60


def release_report(workspace: Path) -> str:
    path = workspace / OPS_CHECKOUT / RELEASE_DOC
    lines = ["Release / QA", ""]
    try:
        doc = path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        lines.append(f"Missing: {path}")
        return "\n".join(lines)
    lines.append(f"Checklist: {path}")
    lines.append("```md")
    lines.extend(doc[:MAX_RELEASE_LINES])
    if len(doc) > MAX_RELEASE_LINES:
        lines.append("... (truncated)")
    lines.append("```")
    return "\n".join(lines)


def staging_smoke(workspace: Path, timeout_s: float) -> str:
    script = workspace / OPS_CHECKOUT / SMOKE_SCRIPT
    if not script.exists():
        return f"Staging smoke\n\nMissing: {script}"

    result = run_cmd(["bash", str(script)], timeout_s=timeout_s)
    verdict = "PASS" if result.code == 0 else f"FAIL (exit {result.code})"
    tail = "\n".join(result.out.splitlines()[-SMOKE_TAIL_LINES:]).strip()
    return "\n".join(
        [f"Staging smoke: {verdict}", "", "```text", tail or "(no output)", "```"]
    )


def handoff_report(workspace: Path, count: int = HANDOFF_TAIL_LINES) -> str:
    path = workspace / OPS_CHECKOUT / HANDOFF_LOG
    try:
        tail = tail_lines(path, count)
    except OSError:
        return f"Missing: {path}"
    body = "\n".join(tail).strip() or "(empty)"
    return "\n".join([f"handoff (tail): {path}", "", "```md", body, "```"])


def register_release_commands(host: PluginHost, cfg: OpsConfig) -> None:
    workspace = cfg.workspace

    async def release_handler(ctx: CommandContext) -> CommandReply:
        return {"text": release_report(workspace)}

    async def staging_smoke_handler(ctx: CommandContext) -> CommandReply:
        return {"text": staging_smoke(workspace, cfg.cmd_timeout_s)}

    async def handoff_handler(ctx: CommandContext) -> CommandReply:
        return {"text": handoff_report(workspace)}

    host.register_command(
        CommandSpec(
            name="release",
            description="Show the release / QA checklist (openclaw-ops/RELEASE.md)",
            handler=release_handler,
        )
    )
    host.register_command(
        CommandSpec(
            name="staging-smoke",
            description="Run the staging smoke test script and show the result",
            handler=staging_smoke_handler,
        )
    )
    host.register_command(
        CommandSpec(
            name="handoff",
            description="Show the tail of the agent handoff log",
            handler=handoff_handler,
        )
    )
