import json
from pathlib import Path

from helpers import write_events
from typer.testing import CliRunner

from openclaw_ops.cli import app

runner = CliRunner()


def test_root_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("sessions", "activity", "session-tail", "session-clear", "health", "skills"):
        assert name in result.stdout


def test_ingest_then_sessions(workspace: Path) -> None:
    result = runner.invoke(
        app,
        [
            "ingest-message",
            "Hello from the CLI",
            "--session-id",
            "cli-session",
            "--from",
            "alice",
            "--channel",
            "terminal",
            "--workspace",
            str(workspace),
        ],
    )
    assert result.exit_code == 0

    result = runner.invoke(app, ["sessions", "--workspace", str(workspace)])
    assert result.exit_code == 0
    assert "Session: cli-session" in result.stdout
    assert "terminal" in result.stdout


def test_activity_passes_filter_and_limit(workspace: Path) -> None:
    write_events(
        workspace,
        [
            {"ts": "2026-02-27T10:00:00Z", "type": "message", "sessionId": "s1", "preview": "one"},
            {"ts": "2026-02-27T10:01:00Z", "type": "message", "sessionId": "s1", "preview": "two"},
            {"ts": "2026-02-27T10:02:00Z", "type": "message", "sessionId": "s2", "preview": "three"},
        ],
    )
    result = runner.invoke(app, ["activity", "s1", "1", "--workspace", str(workspace)])
    assert result.exit_code == 0
    assert "Activity for session: s1 (last 1)" in result.stdout
    assert "two" in result.stdout
    assert "three" not in result.stdout


def test_session_clear_prompts_and_aborts(workspace: Path) -> None:
    write_events(workspace, [{"ts": "2026-02-27T10:00:00Z", "type": "message"}])
    result = runner.invoke(app, ["session-clear", "--workspace", str(workspace)], input="n\n")
    assert result.exit_code == 1
    assert (workspace / "observer" / "events.jsonl").read_text() != ""


def test_session_clear_with_yes(workspace: Path) -> None:
    write_events(workspace, [{"ts": "2026-02-27T10:00:00Z", "type": "message"}])
    result = runner.invoke(app, ["session-clear", "--yes", "--workspace", str(workspace)])
    assert result.exit_code == 0
    assert "Removed 1 entries" in result.stdout


def test_disabled_plugin_exits_nonzero(tmp_path: Path, workspace: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"enabled": False}))
    result = runner.invoke(
        app, ["sessions", "--config", str(config_path), "--workspace", str(workspace)]
    )
    assert result.exit_code == 1
    assert "disabled" in result.stdout


def test_config_prints_effective_values(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"observer_max_events": 250}))
    result = runner.invoke(app, ["config", "--config", str(config_path)])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["observer_max_events"] == 250


def test_config_rejects_invalid_file(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{nope")
    result = runner.invoke(app, ["config", "--config", str(config_path)])
    assert result.exit_code == 1
    assert "invalid config json" in " ".join(result.stdout.split())


def test_logs_passes_service_and_count(tmp_path: Path, workspace: Path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"openclaw_home": str(tmp_path / "home")}))
    logs = tmp_path / "home" / "logs"
    logs.mkdir(parents=True)
    (logs / "agent.log").write_text("one\ntwo\nthree\n")

    result = runner.invoke(
        app, ["logs", "agent", "2", "--config", str(config_path), "--workspace", str(workspace)]
    )

    assert result.exit_code == 0
    assert "Logs: agent (last 2 lines of agent.log)" in result.stdout
    assert "three" in result.stdout
    assert "one" not in result.stdout
