from pathlib import Path

import pytest

from openclaw_ops.commands import cron_cmds
from openclaw_ops.commands.cron_cmds import cron_dashboard, crontab_jobs, privacy_scan
from openclaw_ops.config import OpsConfig
from openclaw_ops.host import LocalHost
from openclaw_ops.shell import CommandResult


@pytest.fixture
def no_system(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cron_cmds, "safe_exec", lambda cmd, timeout_s=0: "")


def test_crontab_jobs_skips_comments_and_blanks() -> None:
    crontab = "# m h dom mon dow command\n\n0 3 * * * /backup.sh\n  # off\n*/5 * * * * ping\n"
    assert crontab_jobs(crontab) == ["0 3 * * * /backup.sh", "*/5 * * * * ping"]


def test_dashboard_on_empty_workspace(workspace: Path, no_system: None) -> None:
    text = cron_dashboard(workspace, timeout_s=1)
    assert text.startswith("Cron dashboard")
    assert "No user crontab entries found (or permission denied)." in text
    assert "(none found or systemctl not available)" in text
    assert "(cron/scripts missing)" in text
    assert "(no privacy scan report yet)" in text


def test_dashboard_lists_scripts_and_latest_report(workspace: Path, no_system: None) -> None:
    scripts = workspace / "cron" / "scripts"
    scripts.mkdir(parents=True)
    (scripts / "backup.sh").write_text("#!/bin/sh\n")
    (scripts / "README.md").write_text("docs\n")
    reports = workspace / "cron" / "reports"
    reports.mkdir()
    (reports / "github-privacy-scan_2026-02-27.md").write_text("ok\n")

    text = cron_dashboard(workspace, timeout_s=1)

    assert "files (1):" in text
    assert "backup.sh" in text
    assert "README.md" not in text
    assert "github-privacy-scan_2026-02-27.md" in text


def test_dashboard_empty_scripts_dir(workspace: Path, no_system: None) -> None:
    (workspace / "cron" / "scripts").mkdir(parents=True)
    assert "(none)" in cron_dashboard(workspace, timeout_s=1)


def test_dashboard_truncates_crontab(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    jobs = "\n".join(f"0 {i % 24} * * * job-{i}" for i in range(60))

    def fake_exec(cmd: list[str], timeout_s: float = 0) -> str:
        if cmd[0] == "crontab":
            return jobs
        return "NEXT LEFT LAST PASSED UNIT\nMon openclaw.timer"

    monkeypatch.setattr(cron_cmds, "safe_exec", fake_exec)
    text = cron_dashboard(workspace, timeout_s=1)
    assert "jobs (60):" in text
    assert "job-49" in text
    assert "job-50" not in text
    assert "... (truncated)" in text
    assert "openclaw.timer" in text


def test_privacy_scan_reports_missing_script(workspace: Path) -> None:
    text = privacy_scan(workspace, timeout_s=1)
    assert text.startswith("privacy scan script not found:")
    assert "github-privacy-scan.sh" in text


def test_privacy_scan_shows_output_tail(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ops = workspace / "ops"
    ops.mkdir()
    (ops / "github-privacy-scan.sh").write_text("#!/bin/sh\n")
    output = "\n".join(f"line {i}" for i in range(40))
    calls: list[list[str]] = []

    def fake_run(cmd: list[str], timeout_s: float = 0) -> CommandResult:
        calls.append(cmd)
        return CommandResult(1, output)

    monkeypatch.setattr(cron_cmds, "run_cmd", fake_run)
    text = privacy_scan(workspace, timeout_s=1)

    assert calls == [["bash", str(ops / "github-privacy-scan.sh")]]
    assert text.startswith("Privacy scan finished.")
    assert "Exit code: 1" in text
    assert "line 39" in text
    assert "line 10\n" in text
    assert "line 9\n" not in text


def test_cron_commands_registered(monkeypatch: pytest.MonkeyPatch, workspace: Path) -> None:
    monkeypatch.setattr(cron_cmds, "safe_exec", lambda cmd, timeout_s=0: "")
    host = LocalHost()
    cron_cmds.register_cron_commands(host, OpsConfig(workspace_path=str(workspace)))
    assert set(host.commands) == {"cron", "privacy-scan"}
    assert "CRONTAB JOBS" in host.invoke("cron")


def test_dashboard_survives_unreadable_scripts_dir(
    workspace: Path, no_system: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    (workspace / "cron" / "scripts").mkdir(parents=True)
    real_iterdir = Path.iterdir

    def iterdir(self: Path):
        if self.name == "scripts":
            raise PermissionError("denied")
        return real_iterdir(self)

    monkeypatch.setattr(Path, "iterdir", iterdir)
    text = cron_dashboard(workspace, timeout_s=1)
    assert "(cron/scripts missing)" in text
    assert "REPORTS" in text


def test_dashboard_survives_unstatable_script(
    workspace: Path, no_system: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    scripts = workspace / "cron" / "scripts"
    scripts.mkdir(parents=True)
    (scripts / "ok.sh").write_text("#!/bin/sh\n")
    (scripts / "locked.sh").write_text("#!/bin/sh\n")
    real_stat = Path.stat

    def stat(self: Path, **kwargs: object):
        if self.name == "locked.sh":
            raise PermissionError("denied")
        return real_stat(self, **kwargs)

    monkeypatch.setattr(Path, "stat", stat)
    text = cron_dashboard(workspace, timeout_s=1)
    assert "ok.sh" in text
    assert "REPORTS" in text
