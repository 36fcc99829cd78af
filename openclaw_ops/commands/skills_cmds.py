"""Inventory of locally checked-out OpenClaw plugins.

Plugins are ``openclaw-*`` directories with an ``openclaw.plugin.json``
manifest. Their commands are recovered from ``registerCommand({...})`` blocks
in the TypeScript/JavaScript sources, so nothing has to be loaded or run.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..config import OpsConfig
from ..host import CommandContext, CommandReply, CommandSpec, PluginHost

PLUGIN_PREFIX = "openclaw-"
MANIFEST_NAME = "openclaw.plugin.json"
SELF_PLUGIN = "openclaw-ops"
SKIP_DIRS = {"node_modules", "dist", "out", ".git"}
SOURCE_SUFFIXES = (".ts", ".js")
TEST_SUFFIXES = (".test.ts", ".test.js")

_BLOCK_RE = re.compile(r"registerCommand\s*\(\s*\{([^}]+(?:\{[^}]*\}[^}]*)*)\}")
_NAME_RE = re.compile(r"name\s*:\s*[\"'`]([^\"'`]+)[\"'`]")
_DESC_RE = re.compile(r"description\s*:\s*[\"'`]([^\"'`]+)[\"'`]")
_ARGS_RE = re.compile(r"acceptsArgs\s*:\s*(true|false)")


@dataclass(frozen=True)
class PluginCommand:
    name: str
    description: str
    accepts_args: bool = False


@dataclass
class PluginInfo:
    id: str
    name: str
    version: str
    description: str
    dir_name: str
    dir_path: Path
    commands: list[PluginCommand] = field(default_factory=list)


def _source_files(root: Path) -> list[Path]:
    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in sorted(filenames):
            if filename.endswith(SOURCE_SUFFIXES) and not filename.endswith(TEST_SUFFIXES):
                files.append(Path(dirpath) / filename)
    return files


def extract_commands(source: str) -> list[PluginCommand]:
    commands = []
    for block in _BLOCK_RE.finditer(source):
        body = block.group(1)
        name_match = _NAME_RE.search(body)
        if not name_match:
            continue
        desc_match = _DESC_RE.search(body)
        args_match = _ARGS_RE.search(body)
        commands.append(
            PluginCommand(
                name=name_match.group(1).strip(),
                description=desc_match.group(1).strip() if desc_match else "(no description)",
                accepts_args=bool(args_match and args_match.group(1) == "true"),
            )
        )
    return commands


def extract_commands_from_plugin(plugin_path: Path) -> list[PluginCommand]:
    seen: set[str] = set()
    commands: list[PluginCommand] = []
    for path in _source_files(plugin_path):
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        for command in extract_commands(source):
            if not command.name or command.name in seen:
                continue
            seen.add(command.name)
            commands.append(command)
    return commands


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def scan_installed_plugins(workspace: Path) -> list[PluginInfo]:
    """Find plugins in ``workspace`` and its parent (where dev checkouts live)."""

    roots = [workspace]
    dev_root = workspace.resolve().parent
    if dev_root != workspace.resolve():
        roots.append(dev_root)

    plugins: list[PluginInfo] = []
    seen: set[str] = set()
    for root in roots:
        try:
            entries = sorted(root.iterdir())
        except OSError:
            continue
        for entry in entries:
            if not entry.is_dir() or not entry.name.startswith(PLUGIN_PREFIX):
                continue
            if entry.name in seen or not (entry / MANIFEST_NAME).exists():
                continue
            seen.add(entry.name)
            manifest = _read_json(entry / MANIFEST_NAME)
            version = manifest.get("version") or _read_json(entry / "package.json").get(
                "version", "?"
            )
            plugins.append(
                PluginInfo(
                    id=str(manifest.get("id") or entry.name),
                    name=str(manifest.get("name") or entry.name),
                    version=str(version),
                    description=str(manifest.get("description") or ""),
                    dir_name=entry.name,
                    dir_path=entry,
                    commands=extract_commands_from_plugin(entry),
                )
            )

    plugins.sort(key=lambda p: (p.dir_name != SELF_PLUGIN, p.dir_name.lower()))
    return plugins


def _arg_hint(command: PluginCommand) -> str:
    return " [args]" if command.accepts_args else ""


def skills_report(workspace: Path) -> str:
    plugins = scan_installed_plugins(workspace)
    plural = "" if len(plugins) == 1 else "s"
    lines = [f"Skills ({len(plugins)} plugin{plural} found)", ""]
    if not plugins:
        lines.append("No openclaw-* plugins found in workspace.")
        lines.append(f"Scanned: {workspace}")
        return "\n".join(lines)

    for plugin in plugins:
        lines.append(f"{plugin.name} v{plugin.version}")
        if plugin.description:
            lines.append(f"  {plugin.description}")
        lines.append(f"  Path: {plugin.dir_path}")
        if plugin.commands:
            lines.append(f"  Commands ({len(plugin.commands)}):")
            for command in plugin.commands:
                lines.append(f"    /{command.name}{_arg_hint(command)} — {command.description}")
        else:
            lines.append("  Commands: (none detected in source)")
        lines.append("")

    total = sum(len(p.commands) for p in plugins)
    lines.append(f"Total: {len(plugins)} skills, {total} commands")
    lines.append("Use /shortcuts for a flat command cheat-sheet")
    return "\n".join(lines)


def shortcuts_report(workspace: Path) -> str:
    plugins = scan_installed_plugins(workspace)
    total = sum(len(p.commands) for p in plugins)
    lines = [f"Shortcuts — {total} commands across {len(plugins)} plugins", ""]

    flat = [(command, plugin.id) for plugin in plugins for command in plugin.commands]
    flat.sort(key=lambda pair: pair[0].name)
    lines.append("ALL COMMANDS (A-Z)")
    for command, plugin_id in flat:
        lines.append(f"/{command.name}{_arg_hint(command):<12} {command.description}  [{plugin_id}]")

    lines += ["", "BY PLUGIN"]
    for plugin in plugins:
        if not plugin.commands:
            continue
        lines.append(f"\n{plugin.name} ({plugin.id})")
        for command in plugin.commands:
            lines.append(f"  /{command.name}{_arg_hint(command)} — {command.description}")

    lines += ["", "Use /skills for full plugin details and paths"]
    return "\n".join(lines)


def register_skills_commands(host: PluginHost, cfg: OpsConfig) -> None:
    workspace = cfg.workspace

    async def skills_handler(ctx: CommandContext) -> CommandReply:
        return {"text": skills_report(workspace)}

    async def shortcuts_handler(ctx: CommandContext) -> CommandReply:
        return {"text": shortcuts_report(workspace)}

    host.register_command(
        CommandSpec(
            name="skills",
            description="Show all locally installed OpenClaw plugins (skills) with their commands",
            handler=skills_handler,
        )
    )
    host.register_command(
        CommandSpec(
            name="shortcuts",
            description="Flat cheat-sheet of every command across all installed plugins",
            handler=shortcuts_handler,
        )
    )
