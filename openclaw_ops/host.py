"""Host plugin API.

The gateway hands plugins a host object that can register slash-commands,
subscribe to events and log. ``PluginHost`` describes that capability set;
``LocalHost`` is the in-process adapter used by the CLI and the tests.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, TypedDict

logger = logging.getLogger(__name__)

AUTH_REQUIRED_TEXT = "This command requires authorization."


class CommandReply(TypedDict):
    text: str


@dataclass
class CommandContext:
    args: str = ""
    channel: str | None = None
    sender_id: str | None = None
    is_authorized_sender: bool = False


CommandHandler = Callable[[CommandContext], Awaitable[CommandReply]]
HookHandler = Callable[[Mapping[str, Any], Mapping[str, Any]], Awaitable[None]]


@dataclass
class CommandSpec:
    name: str
    description: str
    handler: CommandHandler
    accepts_args: bool = False
    require_auth: bool = False
    usage: str | None = None


class PluginHost(Protocol):
    plugin_config: dict[str, Any]
    logger: logging.Logger

    def register_command(self, command: CommandSpec) -> None: ...

    def on(self, event: str, handler: HookHandler) -> None: ...


@dataclass
class LocalHost:
    plugin_config: dict[str, Any] = field(default_factory=dict)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("openclaw_ops"))
    commands: dict[str, CommandSpec] = field(default_factory=dict)
    hooks: dict[str, list[HookHandler]] = field(default_factory=dict)

    def register_command(self, command: CommandSpec) -> None:
        if command.name in self.commands:
            logger.warning("command /%s registered twice; keeping the last", command.name)
        self.commands[command.name] = command

    def on(self, event: str, handler: HookHandler) -> None:
        self.hooks.setdefault(event, []).append(handler)

    async def dispatch(self, name: str, ctx: CommandContext) -> str:
        command = self.commands.get(name)
        if command is None:
            raise KeyError(f"Command /{name} not registered")
        if command.require_auth and not ctx.is_authorized_sender:
            return AUTH_REQUIRED_TEXT
        if not command.accepts_args:
            ctx.args = ""
        reply = await command.handler(ctx)
        return reply["text"]

    def invoke(self, name: str, args: str = "", *, authorized: bool = False) -> str:
        ctx = CommandContext(args=args, is_authorized_sender=authorized)
        return asyncio.run(self.dispatch(name, ctx))

    async def fire(
        self, event: str, payload: Mapping[str, Any], ctx: Mapping[str, Any]
    ) -> None:
        for handler in self.hooks.get(event, []):
            await handler(payload, ctx)

    def emit(self, event: str, payload: Mapping[str, Any], ctx: Mapping[str, Any]) -> None:
        asyncio.run(self.fire(event, payload, ctx))
