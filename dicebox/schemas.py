"""Pydantic request and response bodies for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from dicebox.models import RollOptions, RollResult


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TableCreate(_Body):
    name: str = Field(min_length=1, max_length=100)
    history_capacity: int | None = Field(default=None, ge=1, le=1000)


class TableOut(_Body):
    id: str
    name: str
    history_capacity: int
    history_size: int
    created_at: datetime


class RollRequest(_Body):
    expression: str = Field(max_length=500)
    send_result: bool = True
    flavor_text: str | None = None
    speaker: dict[str, Any] | None = None

    def options(self) -> RollOptions:
        return RollOptions(
            send_result=self.send_result,
            flavor_text=self.flavor_text,
            speaker=self.speaker,
        )


class CheckRequest(_Body):
    attribute: str = Field(min_length=1, max_length=50)
    bonus: int = 0
    advantage: bool = False
    disadvantage: bool = False
    send_result: bool = True
    speaker: dict[str, Any] | None = None


class CommandRequest(_Body):
    text: str = Field(min_length=1, max_length=500)
    speaker: dict[str, Any] | None = None


class CommandOut(_Body):
    reply: str
    result: RollResult | None = None


class DiceErrorOut(_Body):
    detail: str
    fragment: str | None = None
