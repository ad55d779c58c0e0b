"""Table and roll routes: create tables, roll expressions, read and clear history."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import PlainTextResponse

from dicebox.commands import run_command
from dicebox.dependencies import get_registry, get_table
from dicebox.formatting import format_result
from dicebox.models import RollOptions, RollResult
from dicebox.schemas import (
    CheckRequest,
    CommandOut,
    CommandRequest,
    RollRequest,
    TableCreate,
    TableOut,
)
from dicebox.tables import Table, TableRegistry

router = APIRouter(prefix="/tables", tags=["tables"])


def _table_out(table: Table) -> TableOut:
    return TableOut(
        id=table.id,
        name=table.name,
        history_capacity=table.history.capacity,
        history_size=len(table.history),
        created_at=table.created_at,
    )


@router.post("", response_model=TableOut, status_code=201)
async def create_table(
    body: TableCreate,
    registry: TableRegistry = Depends(get_registry),
) -> TableOut:
    """Open a new table with an empty roll history."""
    table = registry.create(body.name, history_capacity=body.history_capacity)
    return _table_out(table)


@router.get("", response_model=list[TableOut])
async def list_tables(registry: TableRegistry = Depends(get_registry)) -> list[TableOut]:
    return [_table_out(t) for t in registry.all()]


@router.get("/{table_id}", response_model=TableOut)
async def read_table(table: Table = Depends(get_table)) -> TableOut:
    return _table_out(table)


@router.delete("/{table_id}", status_code=204)
async def delete_table(
    table: Table = Depends(get_table),
    registry: TableRegistry = Depends(get_registry),
) -> Response:
    registry.delete(table.id)
    return Response(status_code=204)


@router.post("/{table_id}/rolls", response_model=RollResult, status_code=201)
async def roll(body: RollRequest, table: Table = Depends(get_table)) -> RollResult:
    """Roll an expression at the table and record it in the table's history."""
    return table.roll(body.expression, body.options())


@router.post("/{table_id}/checks", response_model=RollResult, status_code=201)
async def roll_check(body: CheckRequest, table: Table = Depends(get_table)) -> RollResult:
    """Roll a d20 attribute check, optionally with advantage or disadvantage."""
    options = RollOptions(send_result=body.send_result, speaker=body.speaker)
    return table.roll_check(
        body.attribute,
        body.bonus,
        advantage=body.advantage,
        disadvantage=body.disadvantage,
        options=options,
    )


@router.post("/{table_id}/commands", response_model=CommandOut)
async def command(body: CommandRequest, table: Table = Depends(get_table)) -> CommandOut:
    """Run a slash command such as ``/r 2d20kh1+5``."""
    reply = run_command(table, body.text, RollOptions(speaker=body.speaker))
    return CommandOut(reply=reply.text, result=reply.result)


@router.get("/{table_id}/rolls", response_model=list[RollResult])
async def list_rolls(
    limit: int = Query(default=10, ge=1, le=1000),
    table: Table = Depends(get_table),
) -> list[RollResult]:
    """Return the table's most recent rolls, newest first."""
    return table.get_history(limit)


@router.get("/{table_id}/rolls/latest", response_model=RollResult)
async def latest_roll(table: Table = Depends(get_table)) -> RollResult:
    result = table.history.last()
    if result is None:
        raise HTTPException(status_code=404, detail="No rolls yet")
    return result


@router.get("/{table_id}/rolls/latest/text", response_class=PlainTextResponse)
async def latest_roll_text(table: Table = Depends(get_table)) -> str:
    """Return the latest roll as a one-line breakdown."""
    result = table.history.last()
    if result is None:
        raise HTTPException(status_code=404, detail="No rolls yet")
    return format_result(result)


@router.delete("/{table_id}/rolls", status_code=204)
async def clear_rolls(table: Table = Depends(get_table)) -> Response:
    table.clear_history()
    return Response(status_code=204)
