"""Plain-text rendering of roll results."""

from __future__ import annotations

from dicebox.models import DiceGroupResult, Die, RollResult

_CRIT_SIDES = 20


def _face(die: Die) -> str:
    # Exploded dice are marked so the extra die they added is traceable.
    return f"{die.result}!" if die.exploded else str(die.result)


def format_group(group: DiceGroupResult) -> str:
    """Render one group as ``notation [kept] (dropped: ...)``."""
    kept = ", ".join(_face(d) for d in group.kept_dice)
    text = f"{group.notation} [{kept}]"
    dropped = group.dropped_dice
    if dropped:
        text += f" (dropped: {', '.join(_face(d) for d in dropped)})"
    return text


def format_result(result: RollResult) -> str:
    """Render a roll as a one-line breakdown, e.g. ``3d8 [4, 7, 2] + 2 = 15``.

    Groups appear in source order. Pure: the result is never modified.
    """
    parts = [format_group(g) for g in result.groups]
    text = " + ".join(parts)
    flat = result.flat_modifier_sum
    if flat and text:
        text += f" {'-' if flat < 0 else '+'} {abs(flat)}"
    elif not text:
        text = str(flat)
    return f"{text} = {result.total}"


def is_critical(result: RollResult) -> bool:
    """Return True if any kept d20 shows its maximum face."""
    return any(
        d.kept and d.sides == _CRIT_SIDES and d.result == _CRIT_SIDES
        for g in result.groups
        for d in g.dice
    )


def is_fumble(result: RollResult) -> bool:
    """Return True if any kept d20 shows a 1."""
    return any(
        d.kept and d.sides == _CRIT_SIDES and d.result == 1 for g in result.groups for d in g.dice
    )
