from pathlib import Path

import pytest

from openclaw_ops.commands import release_cmds
from openclaw_ops.commands.release_cmds import (
    handoff_report,
    register_release_commands,
    release_report,
    staging_smoke,
)
from openclaw_ops.config import OpsConfig
from openclaw_ops.host import LocalHost
from openclaw_ops.shell import CommandResult


def _checkout(workspace: Path) -> Path:
    path = workspace / "openclaw-ops"
    path.mkdir()
    return path


def test_release_report_missing_checklist(workspace: Path) -> None:
    text = release_report(workspace)
    assert text.startswith("Release / QA")
    assert f"Missing: {workspace / 'openclaw-ops' / 'RELEASE.md'}" in text


def test_release_report_truncates_long_checklist(workspace: Path) -> None:
    doc = _checkout(workspace) / "RELEASE.md"
    doc.write_text("".join(f"- [ ] step {i}\n" for i in range(130)))

    text = release_report(workspace)

    assert f"Checklist: {doc}" in text
    assert "```md" in text
    assert "- [ ] step 119" in text
    assert "- [ ] step 120" not in text
    assert "... (truncated)" in text


def test_staging_smoke_missing_script(workspace: Path) -> None:
    text = staging_smoke(workspace, timeout_s=5)
    assert text.startswith("Staging smoke")
    assert "Missing:" in text


def test_staging_smoke_pass_and_fail(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    script = _checkout(workspace) / "scripts" / "staging-smoke.sh"
    script.parent.mkdir()
    script.write_text("#!/bin/bash\n")
    calls: list[list[str]] = []
    results = iter(
        [
            CommandResult(0, "".join(f"check {i} ok\n" for i in range(50))),
            CommandResult(3, "gateway unreachable\n"),
        ]
    )

    def fake_run(cmd: list[str], timeout_s: float = 0) -> CommandResult:
        calls.append(cmd)
        return next(results)

    monkeypatch.setattr(release_cmds, "run_cmd", fake_run)

    passed = staging_smoke(workspace, timeout_s=5)
    assert calls == [["bash", str(script)]]
    assert passed.startswith("Staging smoke: PASS")
    assert "check 49 ok" in passed
    assert "check 9 ok" not in passed

    failed = staging_smoke(workspace, timeout_s=5)
    assert failed.startswith("Staging smoke: FAIL (exit 3)")
    assert "gateway unreachable" in failed


def test_staging_smoke_without_output(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    script = _checkout(workspace) / "scripts" / "staging-smoke.sh"
    script.parent.mkdir()
    script.write_text("")
    monkeypatch.setattr(release_cmds, "run_cmd", lambda cmd, timeout_s=0: CommandResult(0, ""))
    assert "(no output)" in staging_smoke(workspace, timeout_s=5)


def test_handoff_report_tails_log(workspace: Path) -> None:
    log = _checkout(workspace) / ".ai" / "handoff" / "LOG.md"
    log.parent.mkdir(parents=True)
    log.write_text("".join(f"entry {i}\n" for i in range(80)))

    text = handoff_report(workspace)

    assert text.startswith(f"handoff (tail): {log}")
    assert "entry 79" in text
    assert "entry 20" in text
    assert "entry 19\n" not in text


def test_handoff_report_missing_and_empty(workspace: Path) -> None:
    assert handoff_report(workspace).startswith("Missing:")
    log = _checkout(workspace) / ".ai" / "handoff" / "LOG.md"
    log.parent.mkdir(parents=True)
    log.write_text("\n\n")
    assert "(empty)" in handoff_report(workspace)


def test_release_commands_registered(workspace: Path) -> None:
    host = LocalHost()
    register_release_commands(host, OpsConfig(workspace_path=str(workspace)))
    assert set(host.commands) == {"release", "staging-smoke", "handoff"}
    assert host.invoke("release").startswith("Release / QA")
    assert host.invoke("handoff").startswith("Missing:")
