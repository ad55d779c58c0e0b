"""Pydantic models for parsed expressions and roll results.

Serialized output uses camelCase aliases so a dumped :class:`RollResult`
matches the wire shape consumed by chat and display collaborators.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class KeepDropKind(str, enum.Enum):
    """Which keep/drop family a dice group uses."""

    drop_lowest = "dl"
    drop_highest = "dh"
    keep_highest = "kh"
    keep_lowest = "kl"


# ---------------------------------------------------------------------------
# Parsed terms
# ---------------------------------------------------------------------------


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class KeepDrop(_Model):
    model_config = ConfigDict(frozen=True)

    kind: KeepDropKind
    n: int = Field(default=1, ge=1)

    @property
    def notation(self) -> str:
        return f"{self.kind.value}{self.n}"


class DiceGroupTerm(_Model):
    """One ``[count]d<sides>[modifiers][flatModifier]`` term."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["dice"] = "dice"
    count: int = Field(default=1, ge=1)
    sides: int = Field(ge=1)
    keep_drop: KeepDrop | None = None
    explode_threshold: int | None = None
    flat_modifier: int = 0
    source: str = ""

    @property
    def has_modifier(self) -> bool:
        return self.keep_drop is not None or self.explode_threshold is not None

    @property
    def modifier_spec(self) -> str:
        """Canonical modifier suffix, explosion first since it is applied first."""
        spec = ""
        if self.explode_threshold is not None:
            spec += "x" if self.explode_threshold == self.sides else f"x>{self.explode_threshold}"
        if self.keep_drop is not None:
            spec += self.keep_drop.notation
        return spec

    @property
    def notation(self) -> str:
        text = f"{self.count}d{self.sides}{self.modifier_spec}"
        if self.flat_modifier:
            text += f"{self.flat_modifier:+d}"
        return text


class FlatTerm(_Model):
    """A signed integer not attached to any dice group."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["flat"] = "flat"
    value: int
    source: str = ""


Term = DiceGroupTerm | FlatTerm


class ParsedExpression(_Model):
    """Normalized expression text plus its terms in source order."""

    model_config = ConfigDict(frozen=True)

    expression: str
    terms: tuple[Term, ...] = ()
    ignored: tuple[str, ...] = ()

    @property
    def dice_terms(self) -> list[DiceGroupTerm]:
        return [t for t in self.terms if isinstance(t, DiceGroupTerm)]

    @property
    def flat_terms(self) -> list[FlatTerm]:
        return [t for t in self.terms if isinstance(t, FlatTerm)]

    @property
    def formula(self) -> str:
        """Rebuild canonical notation from the terms, preserving source order."""
        parts: list[str] = []
        for term in self.terms:
            if isinstance(term, FlatTerm):
                sign = "-" if term.value < 0 else "+"
                parts.append(f"{sign} {abs(term.value)}" if parts else str(term.value))
            else:
                parts.append(f"+ {term.notation}" if parts else term.notation)
        return " ".join(parts)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class Die(_Model):
    """A single rolled die. Immutable once built by the evaluator."""

    model_config = ConfigDict(frozen=True)

    result: int
    sides: int
    kept: bool = True
    exploded: bool = False


class DiceGroupResult(_Model):
    """Every die a group produced, in roll order, plus its subtotal.

    ``term`` is kept for rendering but left out of serialized output. A
    result rebuilt from JSON has none, so its notation falls back to
    ``<count>d<sides>`` plus the bonus implied by the subtotal.
    """

    model_config = ConfigDict(frozen=True)

    term: DiceGroupTerm | None = Field(default=None, exclude=True)
    sides: int
    count: int
    dice: tuple[Die, ...]
    subtotal: int

    @property
    def flat_modifier(self) -> int:
        return self.subtotal - sum(d.result for d in self.kept_dice)

    @property
    def notation(self) -> str:
        if self.term is not None:
            return self.term.notation
        text = f"{self.count}d{self.sides}"
        if self.flat_modifier:
            text += f"{self.flat_modifier:+d}"
        return text

    @property
    def kept_dice(self) -> list[Die]:
        return [d for d in self.dice if d.kept]

    @property
    def dropped_dice(self) -> list[Die]:
        return [d for d in self.dice if not d.kept]


class RollResult(_Model):
    """The complete record of one evaluated expression.

    Created once per roll and committed to history; treat as read-only.
    """

    model_config = ConfigDict(frozen=True)

    expression: str
    groups: tuple[DiceGroupResult, ...]
    flat_modifier_sum: int
    total: int
    formula: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RollOptions(_Model):
    """Per-call options for :meth:`DiceEngine.roll`.

    ``speaker`` is opaque to the engine and only forwarded to sinks.
    """

    send_result: bool = True
    flavor_text: str | None = None
    speaker: dict[str, Any] | None = None
