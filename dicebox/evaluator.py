"""Dice group evaluator: rolls one dice group and applies its modifiers.

Order of operations for a group:
  1. Primary roll of ``count`` dice.
  2. Explosion: each primary die at or above the threshold adds one extra die.
     Extra dice never explode themselves.
  3. Keep/drop over every die in the group, including explosion extras.
  4. Subtotal of kept dice plus the group's flat modifier.

Keep/drop ranks die indexes so equal values always resolve by roll
position, lower index first. The passes work on plain lists of faces and
flags; frozen ``Die`` models are built once at the end.
"""

from __future__ import annotations

import logging
from typing import Protocol

from dicebox.config import settings
from dicebox.errors import ExplosionLimitExceededError, RandomSourceContractError
from dicebox.models import DiceGroupResult, DiceGroupTerm, Die, KeepDrop, KeepDropKind

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Anything that yields uniform integers in an inclusive range.

    ``random.Random`` satisfies this out of the box.
    """

    def randint(self, a: int, b: int) -> int: ...


def evaluate(
    term: DiceGroupTerm,
    rng: RandomSource,
    *,
    explosion_limit: int | None = None,
) -> DiceGroupResult:
    """Roll a dice group and apply explosion and keep/drop.

    Args:
        term: The parsed dice group.
        rng: Random source shared across the whole roll.
        explosion_limit: Max explosions for this group. Defaults to settings.

    Returns:
        The group result with every die in roll order, extras appended.

    Raises:
        ExplosionLimitExceededError: If the group explodes more than the limit.
        RandomSourceContractError: If rng returns a non-integer or an
            out-of-range value.
    """
    limit = settings.explosion_limit if explosion_limit is None else explosion_limit

    results = [_draw(rng, term) for _ in range(term.count)]
    exploded = [False] * term.count
    if term.explode_threshold is not None:
        _explode(results, exploded, term, rng, limit)
    kept = [True] * len(results)
    if term.keep_drop is not None:
        _apply_keep_drop(results, kept, term.keep_drop, term.count)

    dice = tuple(
        Die(result=r, sides=term.sides, kept=k, exploded=e)
        for r, k, e in zip(results, kept, exploded)
    )
    subtotal = sum(d.result for d in dice if d.kept) + term.flat_modifier
    logger.debug(
        "Rolled %s: %s -> %d", term.notation, [(d.result, d.kept) for d in dice], subtotal
    )
    return DiceGroupResult(
        term=term,
        sides=term.sides,
        count=term.count,
        dice=dice,
        subtotal=subtotal,
    )


def _draw(rng: RandomSource, term: DiceGroupTerm) -> int:
    value = rng.randint(1, term.sides)
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= term.sides:
        raise RandomSourceContractError(
            f"Random source returned {value!r} for a d{term.sides}",
            fragment=term.source,
        )
    return value


def _explode(
    results: list[int],
    exploded: list[bool],
    term: DiceGroupTerm,
    rng: RandomSource,
    limit: int,
) -> None:
    threshold = term.explode_threshold
    explosions = 0
    for i in range(term.count):
        if results[i] < threshold:
            continue
        explosions += 1
        if explosions > limit:
            raise ExplosionLimitExceededError(
                f"{term.notation} exploded more than {limit} times",
                fragment=term.source,
            )
        exploded[i] = True
        results.append(_draw(rng, term))
        exploded.append(False)


def _ranked(results: list[int], *, descending: bool) -> list[int]:
    """Return die indexes ordered by value, ties broken by lower index."""
    sign = -1 if descending else 1
    return sorted(range(len(results)), key=lambda i: (sign * results[i], i))


def _apply_keep_drop(results: list[int], kept: list[bool], spec: KeepDrop, count: int) -> None:
    if spec.kind in (KeepDropKind.drop_lowest, KeepDropKind.drop_highest):
        ranked = _ranked(results, descending=spec.kind == KeepDropKind.drop_highest)
        # Always keep at least one die.
        for i in ranked[: min(spec.n, count - 1)]:
            kept[i] = False
        return

    ranked = _ranked(results, descending=spec.kind == KeepDropKind.keep_highest)
    keep = set(ranked[: spec.n])
    for i in range(len(results)):
        kept[i] = i in keep
