"""Expression evaluator: parse, roll every dice group, aggregate, commit, emit."""

from __future__ import annotations

import logging
import random
import threading

from dicebox.config import settings
from dicebox.errors import DiceError, EmptyExpressionError
from dicebox.evaluator import RandomSource, evaluate
from dicebox.events import RollChannel, RollEvent
from dicebox.formatting import format_result, is_critical, is_fumble
from dicebox.history import HistoryBuffer
from dicebox.models import RollOptions, RollResult
from dicebox.parser import parse

logger = logging.getLogger(__name__)


class DiceEngine:
    """Rolls dice expressions against an injected random source.

    The engine holds no history of its own: callers pass the history buffer
    that should receive each committed roll. Use of the random source is
    serialized, so a seeded engine replays identically even when shared.

    Args:
        rng: Random source. Defaults to ``random.Random(settings.rng_seed)``.
        channel: Channel that receives sent rolls. Defaults to an empty one.
        explosion_limit: Max explosions per dice group.
        max_dice: Max dice per group accepted by the parser.
        max_sides: Max sides per die accepted by the parser.
    """

    def __init__(
        self,
        rng: RandomSource | None = None,
        *,
        channel: RollChannel | None = None,
        explosion_limit: int | None = None,
        max_dice: int | None = None,
        max_sides: int | None = None,
    ) -> None:
        self._rng = rng if rng is not None else random.Random(settings.rng_seed)
        self.channel = channel if channel is not None else RollChannel()
        self.explosion_limit = (
            settings.explosion_limit if explosion_limit is None else explosion_limit
        )
        self.max_dice = settings.max_dice if max_dice is None else max_dice
        self.max_sides = settings.max_sides if max_sides is None else max_sides
        self._lock = threading.Lock()

    def roll(
        self,
        expression: str,
        options: RollOptions | None = None,
        *,
        history: HistoryBuffer | None = None,
    ) -> RollResult:
        """Evaluate an expression and return its full result.

        Nothing is committed on failure: errors propagate before the history
        write and before anything is sent.

        Args:
            expression: Dice notation, e.g. "4d6dl1+2".
            options: Send/flavor/speaker options.
            history: Buffer that receives the committed result, if any.

        Returns:
            The RollResult, already pushed to ``history``.

        Raises:
            ParseError: If the expression has no recognizable term.
            EmptyExpressionError: If the expression is blank.
            ExplosionLimitExceededError: If a group explodes past the limit.
            RandomSourceContractError: If the random source misbehaves.
        """
        options = options or RollOptions()
        parsed = parse(expression, max_dice=self.max_dice, max_sides=self.max_sides)
        if not parsed.terms:
            raise EmptyExpressionError(
                f"Nothing to roll in {expression!r}", expression=parsed.expression
            )

        with self._lock:
            try:
                groups = [
                    evaluate(term, self._rng, explosion_limit=self.explosion_limit)
                    for term in parsed.dice_terms
                ]
            except DiceError as exc:
                exc.expression = exc.expression or parsed.expression
                raise

        flat_sum = sum(term.value for term in parsed.flat_terms)
        result = RollResult(
            expression=parsed.expression,
            groups=groups,
            flat_modifier_sum=flat_sum,
            total=sum(g.subtotal for g in groups) + flat_sum,
            formula=parsed.formula,
        )

        if history is not None:
            history.push(result)
        logger.debug("Rolled %r = %d", result.expression, result.total)

        if options.send_result:
            self._emit(result, options)
        return result

    def roll_check(
        self,
        attribute: str,
        bonus: int = 0,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
        options: RollOptions | None = None,
        history: HistoryBuffer | None = None,
    ) -> RollResult:
        """Roll a d20 attribute check, with advantage (2d20kh1) or disadvantage (2d20kl1).

        Advantage and disadvantage together cancel to a plain d20.
        """
        if advantage and disadvantage:
            advantage = disadvantage = False

        expression = "1d20"
        label = f"{attribute.capitalize()} Check"
        if advantage:
            expression = "2d20kh1"
            label += " (Advantage)"
        elif disadvantage:
            expression = "2d20kl1"
            label += " (Disadvantage)"
        if bonus:
            expression += f"{bonus:+d}"

        options = (options or RollOptions()).model_copy(update={"flavor_text": label})
        return self.roll(expression, options, history=history)

    def roll_damage(
        self,
        expression: str,
        damage_type: str = "physical",
        *,
        options: RollOptions | None = None,
        history: HistoryBuffer | None = None,
    ) -> RollResult:
        """Roll damage, labelled with its type."""
        label = f"{damage_type.capitalize()} Damage"
        options = (options or RollOptions()).model_copy(update={"flavor_text": label})
        return self.roll(expression, options, history=history)

    def _emit(self, result: RollResult, options: RollOptions) -> None:
        event = RollEvent(
            result=result,
            breakdown=format_result(result),
            flavor_text=options.flavor_text,
            speaker=options.speaker,
            critical=is_critical(result),
            fumble=is_fumble(result),
        )
        self.channel.publish(event)
