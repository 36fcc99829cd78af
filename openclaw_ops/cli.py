from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich import print
from rich.console import Console

from .config import get_config_path, load_config, read_config_file
from .host import LocalHost
from .observer.commands import MESSAGE_RECEIVED
from .plugin import register

app = typer.Typer(help="openclaw-ops: operator commands for the OpenClaw gateway")
console = Console(emoji=False, highlight=False)

CONFIG_OPTION = typer.Option(None, "--config", help="Path to config JSON")
WORKSPACE_OPTION = typer.Option(None, "--workspace", help="Workspace directory override")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _host(config: Path | None, workspace: str | None) -> LocalHost:
    plugin_config: dict[str, Any] = {}
    if workspace:
        plugin_config["workspacePath"] = workspace
    host = LocalHost(plugin_config=plugin_config)
    if register(host, config_path=config) is None:
        print("[yellow]openclaw-ops is disabled (enabled=false)[/yellow]")
        raise typer.Exit(code=1)
    return host


def _run(
    name: str,
    args: str = "",
    *,
    config: Path | None,
    workspace: str | None,
    authorized: bool = False,
) -> None:
    host = _host(config, workspace)
    text = host.invoke(name, args, authorized=authorized)
    console.print(text, markup=False, soft_wrap=True)


@app.command()
def sessions(
    limit: Optional[str] = typer.Argument(None, help="Max sessions to show (1-50)"),
    config: Path = CONFIG_OPTION,
    workspace: str = WORKSPACE_OPTION,
) -> None:
    """List recent agent sessions with activity summary."""

    _run("sessions", limit or "", config=config, workspace=workspace)


@app.command()
def activity(
    args: Optional[List[str]] = typer.Argument(
        None, help="[sessionId|limit] [limit]; a lone number is a limit"
    ),
    config: Path = CONFIG_OPTION,
    workspace: str = WORKSPACE_OPTION,
) -> None:
    """Show recent agent activity, optionally for one session."""

    _run("activity", " ".join(args or []), config=config, workspace=workspace)


@app.command("session-tail")
def session_tail(
    limit: Optional[str] = typer.Argument(None, help="Number of events (1-100)"),
    config: Path = CONFIG_OPTION,
    workspace: str = WORKSPACE_OPTION,
) -> None:
    """Tail the most recent events across all sessions."""

    _run("session-tail", limit or "", config=config, workspace=workspace)


@app.command("session-stats")
def session_stats(
    config: Path = CONFIG_OPTION,
    workspace: str = WORKSPACE_OPTION,
) -> None:
    """Aggregate statistics for all observed sessions."""

    _run("session-stats", config=config, workspace=workspace)


@app.command("session-clear")
def session_clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    config: Path = CONFIG_OPTION,
    workspace: str = WORKSPACE_OPTION,
) -> None:
    """Clear the observer event log (destructive)."""

    if not yes and not typer.confirm("Delete every observer event?"):
        print("[yellow]Aborted[/yellow]")
        raise typer.Exit(code=1)
    _run("session-clear", config=config, workspace=workspace, authorized=True)


@app.command("ingest-message")
def ingest_message(
    content: str = typer.Argument(..., help="Message text"),
    session_id: str = typer.Option(None, "--session-id", help="Session identifier"),
    sender: str = typer.Option(None, "--from", help="Sender"),
    channel: str = typer.Option(None, "--channel", help="Channel/provider name"),
    config: Path = CONFIG_OPTION,
    workspace: str = WORKSPACE_OPTION,
) -> None:
    """Feed one inbound message through the message_received hook."""

    host = _host(config, workspace)
    payload = {"content": content, "from": sender}
    ctx = {"sessionId": session_id, "messageProvider": channel}
    host.emit(MESSAGE_RECEIVED, payload, ctx)


def _simple_command(name: str, help_text: str) -> None:
    def command(
        config: Path = CONFIG_OPTION,
        workspace: str = WORKSPACE_OPTION,
    ) -> None:
        _run(name, config=config, workspace=workspace)

    command.__doc__ = help_text
    app.command(name)(command)


_simple_command("cron", "Show cron dashboard (crontab, timers, scripts, reports).")
_simple_command("privacy-scan", "Run the GitHub privacy scan script.")
_simple_command("limits", "Show provider auth expiry and observed cooldowns.")
_simple_command("health", "Show gateway, resources, cooldowns and recent errors.")
_simple_command("skills", "List locally installed OpenClaw plugins and their commands.")
_simple_command("shortcuts", "Flat cheat-sheet of every plugin command.")
_simple_command("release", "Show the release / QA checklist.")
_simple_command("staging-smoke", "Run the staging smoke test script.")
_simple_command("handoff", "Show the tail of the agent handoff log.")
_simple_command("services", "Show gateway status per profile and systemd units.")
_simple_command("plugins", "Show the installed plugins dashboard.")


@app.command()
def logs(
    args: Optional[List[str]] = typer.Argument(
        None, help="[service] [lines]; a lone number is a line count for the gateway log"
    ),
    config: Path = CONFIG_OPTION,
    workspace: str = WORKSPACE_OPTION,
) -> None:
    """Tail the newest log file of a service."""

    _run("logs", " ".join(args or []), config=config, workspace=workspace)


@app.command("config")
def show_config(config: Path = CONFIG_OPTION) -> None:
    """Validate the config file and print the effective configuration."""

    try:
        read_config_file(config)
    except ValueError as exc:
        print(f"[red]Invalid config file {get_config_path(config)}: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    cfg = load_config(config)
    console.print(json.dumps(cfg.to_dict(), indent=2), markup=False, soft_wrap=True)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
