"""Tables: the session objects that own a roll history.

Each table pairs an engine with its own history buffer, so two tables never
see each other's rolls. The registry keeps live tables in memory.
"""

from __future__ import annotations

import logging
import random
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone

from dicebox.engine import DiceEngine
from dicebox.events import RollChannel
from dicebox.history import HistoryBuffer
from dicebox.models import RollOptions, RollResult

logger = logging.getLogger(__name__)


@dataclass
class Table:
    """A play session: one engine, one history."""

    id: str
    name: str
    engine: DiceEngine
    history: HistoryBuffer
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def roll(self, expression: str, options: RollOptions | None = None) -> RollResult:
        return self.engine.roll(expression, options, history=self.history)

    def roll_check(
        self,
        attribute: str,
        bonus: int = 0,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
        options: RollOptions | None = None,
    ) -> RollResult:
        return self.engine.roll_check(
            attribute,
            bonus,
            advantage=advantage,
            disadvantage=disadvantage,
            options=options,
            history=self.history,
        )

    def roll_damage(
        self,
        expression: str,
        damage_type: str = "physical",
        options: RollOptions | None = None,
    ) -> RollResult:
        return self.engine.roll_damage(
            expression, damage_type, options=options, history=self.history
        )

    def get_history(self, limit: int = 10) -> list[RollResult]:
        return self.history.recent(limit)

    def clear_history(self) -> None:
        self.history.clear()


class TableRegistry:
    """In-memory store of live tables.

    Args:
        channel: Channel shared by every table's engine.
        seed: Seed for each new table's random source. None uses OS entropy.
    """

    def __init__(self, channel: RollChannel | None = None, seed: int | None = None) -> None:
        self.channel = channel if channel is not None else RollChannel()
        self._seed = seed
        self._tables: dict[str, Table] = {}
        self._lock = threading.Lock()

    def create(self, name: str, history_capacity: int | None = None) -> Table:
        """Create and register a new table with its own engine and history."""
        table = Table(
            id=secrets.token_hex(6),
            name=name,
            engine=DiceEngine(random.Random(self._seed), channel=self.channel),
            history=HistoryBuffer(history_capacity),
        )
        with self._lock:
            self._tables[table.id] = table
        logger.info("Created table %s (%r)", table.id, name)
        return table

    def get(self, table_id: str) -> Table | None:
        with self._lock:
            return self._tables.get(table_id)

    def all(self) -> list[Table]:
        with self._lock:
            return list(self._tables.values())

    def delete(self, table_id: str) -> bool:
        with self._lock:
            return self._tables.pop(table_id, None) is not None
