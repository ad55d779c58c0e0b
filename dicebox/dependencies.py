"""FastAPI dependencies for dicebox."""

from __future__ import annotations

from fastapi import Depends, HTTPException
from starlette.requests import Request

from dicebox.tables import Table, TableRegistry


def get_registry(request: Request) -> TableRegistry:
    """Return the registry created in the app lifespan."""
    return request.app.state.registry


def get_table(table_id: str, registry: TableRegistry = Depends(get_registry)) -> Table:
    """Resolve the ``table_id`` path parameter, 404 if it is unknown."""
    table = registry.get(table_id)
    if table is None:
        raise HTTPException(status_code=404, detail="Table not found")
    return table
