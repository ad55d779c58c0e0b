"""Tokenizer and parser for dice notation.

Supported terms, scanned left to right after stripping whitespace:

    [count]d<sides>[x[>t]][dl|dh|kh|kl[n]][+-m]    dice group
    +-m                                             flat term

Examples: 4d6dl1+2, 2d20kh1, 1d6x, 3d8+1d4+2.

A signed integer directly after a dice group with a modifier belongs to that
group (``4d6dl1+2``). After a plain dice group it is a standalone flat term
(``3d8+1d4+2`` has two groups and a flat +2). Unrecognized modifier suffixes
and stray characters are skipped rather than rejected; they are recorded on
``ParsedExpression.ignored``.
"""

from __future__ import annotations

import logging
import re

from dicebox.config import settings
from dicebox.errors import ParseError
from dicebox.models import (
    DiceGroupTerm,
    FlatTerm,
    KeepDrop,
    KeepDropKind,
    ParsedExpression,
    Term,
)

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_DICE_RE = re.compile(r"(?P<sign>[+-])?(?P<count>\d*)d(?P<sides>\d+)")
_KEEP_DROP_RE = re.compile(r"(?P<kind>dl|dh|kh|kl)(?P<n>\d*)")
_EXPLODE_RE = re.compile(r"x(?:>(?P<threshold>\d+))?")
# A signed integer that is not the count of a following dice group.
_SIGNED_RE = re.compile(r"[+-]\d+(?![\dd])")
_FLAT_RE = re.compile(r"[+-]?\d+(?![\dd])")
# Junk trailing a dice group: runs up to the next sign or "d".
_SUFFIX_JUNK_RE = re.compile(r"[^+\-\dd][^+\-d]*")


def normalize(expression: str) -> str:
    """Strip all whitespace and lowercase the expression."""
    return _WHITESPACE_RE.sub("", expression).lower()


def parse(
    expression: str,
    *,
    max_dice: int | None = None,
    max_sides: int | None = None,
) -> ParsedExpression:
    """Parse dice notation into an ordered list of terms.

    Args:
        expression: Raw expression text, e.g. "4d6dl1 + 2".
        max_dice: Upper bound on a group's count. Defaults to settings.
        max_sides: Upper bound on a group's sides. Defaults to settings.

    Returns:
        A ParsedExpression holding the normalized text and its terms. A blank
        expression yields zero terms.

    Raises:
        ParseError: If the text holds no recognizable term, or a dice group is
            out of range (zero count, zero sides, too many dice or sides), or
            a dice group is subtracted.
    """
    max_dice = settings.max_dice if max_dice is None else max_dice
    max_sides = settings.max_sides if max_sides is None else max_sides

    text = normalize(expression)
    terms: list[Term] = []
    ignored: list[str] = []
    junk = ""
    pos = 0

    while pos < len(text):
        m = _DICE_RE.match(text, pos)
        if m:
            if junk:
                ignored.append(junk)
                junk = ""
            term, pos = _parse_dice_group(text, m, ignored, max_dice, max_sides)
            terms.append(term)
            if term.has_modifier:
                bound = _SIGNED_RE.match(text, pos)
                if bound:
                    term = term.model_copy(
                        update={
                            "flat_modifier": int(bound.group()),
                            "source": term.source + bound.group(),
                        }
                    )
                    terms[-1] = term
                    pos = bound.end()
            continue

        m = _FLAT_RE.match(text, pos)
        if m:
            if junk:
                ignored.append(junk)
                junk = ""
            terms.append(FlatTerm(value=int(m.group()), source=m.group()))
            pos = m.end()
            continue

        junk += text[pos]
        pos += 1

    if junk:
        ignored.append(junk)

    if text and not terms:
        raise ParseError(
            f"No dice or modifier found in {expression!r}",
            expression=text,
            fragment=text,
        )
    if ignored:
        logger.warning("Ignored unrecognized fragments %r in %r", ignored, text)

    return ParsedExpression(expression=text, terms=tuple(terms), ignored=tuple(ignored))


def _parse_dice_group(
    text: str,
    m: re.Match[str],
    ignored: list[str],
    max_dice: int,
    max_sides: int,
) -> tuple[DiceGroupTerm, int]:
    """Build a DiceGroupTerm from a dice match and scan its modifier suffix."""
    fragment = m.group()
    if m.group("sign") == "-":
        raise ParseError(
            f"Subtracting dice is not supported: {fragment!r}",
            expression=text,
            fragment=fragment,
        )

    count = int(m.group("count") or 1)
    sides = int(m.group("sides"))
    if count < 1:
        raise ParseError(
            f"Dice count must be at least 1: {fragment!r}", expression=text, fragment=fragment
        )
    if sides < 1:
        raise ParseError(
            f"Dice must have at least 1 side: {fragment!r}", expression=text, fragment=fragment
        )
    if count > max_dice:
        raise ParseError(
            f"Too many dice: {count} (max {max_dice})", expression=text, fragment=fragment
        )
    if sides > max_sides:
        raise ParseError(
            f"Too many sides: {sides} (max {max_sides})", expression=text, fragment=fragment
        )

    keep_drop: KeepDrop | None = None
    threshold: int | None = None
    pos = m.end()
    while pos < len(text):
        kd = _KEEP_DROP_RE.match(text, pos)
        if kd:
            n = int(kd.group("n") or 1)
            if keep_drop is None and n >= 1:
                keep_drop = KeepDrop(kind=KeepDropKind(kd.group("kind")), n=n)
            else:
                ignored.append(kd.group())
            pos = kd.end()
            continue
        ex = _EXPLODE_RE.match(text, pos)
        if ex:
            value = int(ex.group("threshold")) if ex.group("threshold") else sides
            if threshold is None and value >= 1:
                threshold = value
            else:
                ignored.append(ex.group())
            pos = ex.end()
            continue
        # Stop at the start of the next dice group ("d8" in "1d6d8").
        if _DICE_RE.match(text, pos):
            break
        junk = _SUFFIX_JUNK_RE.match(text, pos)
        if not junk:
            break
        ignored.append(junk.group())
        pos = junk.end()

    # m.group("sign") of "+" is a separator, not part of the term.
    source = text[m.start("count") : pos]
    term = DiceGroupTerm(
        count=count,
        sides=sides,
        keep_drop=keep_drop,
        explode_threshold=threshold,
        source=source,
    )
    return term, pos
