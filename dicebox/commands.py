"""Slash-command front end: turns chat text like ``/r 2d20kh1+5`` into rolls."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from dicebox.errors import UnknownCommandError
from dicebox.models import RollOptions, RollResult
from dicebox.tables import Table

_FLAGS = ("advantage", "disadvantage")
# A lone d20 with no keep/drop suffix of its own.
_SINGLE_D20_RE = re.compile(r"(?<!\d)1?d20(?!\d|[dk][hl])")


@dataclass(frozen=True)
class CommandReply:
    """Text reply for the user plus the roll it was based on, if any."""

    text: str
    result: RollResult | None = None


@dataclass(frozen=True)
class Command:
    name: str
    usage: str
    description: str
    handler: Callable[[Table, list[str], RollOptions], CommandReply]


def _roll(table: Table, args: list[str], options: RollOptions) -> CommandReply:
    flags = {a for a in args if a in _FLAGS}
    expression = " ".join(a for a in args if a not in _FLAGS)
    if not expression:
        return CommandReply(COMMANDS["roll"].usage)
    if flags == {"advantage"} or flags == {"disadvantage"}:
        # A single d20 roll with a flag becomes a keep-highest/lowest pair.
        keep = "kh1" if "advantage" in flags else "kl1"
        expression = _SINGLE_D20_RE.sub(f"2d20{keep}", expression, count=1)
    result = table.roll(expression, options)
    return CommandReply(f"Rolled {expression}: **{result.total}**", result)


def _damage(table: Table, args: list[str], options: RollOptions) -> CommandReply:
    if not args:
        return CommandReply(COMMANDS["damage"].usage)
    damage_type = args[1] if len(args) > 1 else "physical"
    result = table.roll_damage(args[0], damage_type, options)
    return CommandReply(f"Rolled {args[0]} {damage_type} damage: **{result.total}**", result)


def _heal(table: Table, args: list[str], options: RollOptions) -> CommandReply:
    if not args:
        return CommandReply(COMMANDS["heal"].usage)
    options = options.model_copy(update={"flavor_text": "Healing"})
    result = table.roll(args[0], options)
    return CommandReply(f"Rolled {args[0]} healing: **{result.total}**", result)


COMMANDS: dict[str, Command] = {
    "roll": Command(
        "roll", "/roll 3d6+2 [advantage|disadvantage]", "Roll dice with advanced notation", _roll
    ),
    "damage": Command("damage", "/damage 2d6+4 [fire|ice|lightning]", "Roll typed damage", _damage),
    "heal": Command("heal", "/heal 2d4+2", "Roll healing", _heal),
}

ALIASES: dict[str, str] = {"r": "roll", "d": "damage", "h": "heal"}


def is_command(text: str) -> bool:
    return text.strip().startswith("/")


def run_command(table: Table, text: str, options: RollOptions | None = None) -> CommandReply:
    """Parse and execute a slash command against a table.

    Args:
        table: Table whose engine and history serve the roll.
        text: Raw chat text, e.g. "/damage 2d6+4 fire".
        options: Roll options forwarded to the engine.

    Returns:
        The reply text and, when dice were rolled, the result.

    Raises:
        UnknownCommandError: If the text is not a registered command or alias.
        DiceError: Any error raised while rolling propagates unchanged.
    """
    content = text.strip()
    if not content.startswith("/"):
        raise UnknownCommandError(f"Not a command: {text!r}", fragment=content)

    name, *args = content[1:].split() or [""]
    name = name.lower()
    command = COMMANDS.get(ALIASES.get(name, name))
    if command is None:
        raise UnknownCommandError(f"Unknown command: /{name}", fragment=f"/{name}")
    return command.handler(table, [a.lower() for a in args], options or RollOptions())
