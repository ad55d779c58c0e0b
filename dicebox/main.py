from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.requests import Request

from dicebox.config import settings
from dicebox.errors import DiceError, RandomSourceContractError
from dicebox.events import get_default_channel
from dicebox.routers import rolls
from dicebox.schemas import DiceErrorOut
from dicebox.tables import TableRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.getLogger("dicebox").setLevel(settings.log_level.upper())
    logger.info("dicebox starting (environment=%s)", settings.environment)
    yield


async def dice_error_handler(request: Request, exc: DiceError) -> JSONResponse:
    body = DiceErrorOut(detail=str(exc), fragment=exc.fragment)
    return JSONResponse(status_code=422, content=body.model_dump(by_alias=True))


async def random_source_error_handler(
    request: Request, exc: RandomSourceContractError
) -> JSONResponse:
    logger.error("Random source contract violated", exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Dice engine failure"})


def create_app(registry: TableRegistry | None = None) -> FastAPI:
    """Build the app around a table registry (a fresh one by default)."""
    app = FastAPI(title="dicebox", lifespan=lifespan, debug=settings.debug)
    app.state.registry = registry or TableRegistry(get_default_channel(), seed=settings.rng_seed)
    app.include_router(rolls.router)
    app.add_exception_handler(RandomSourceContractError, random_source_error_handler)
    app.add_exception_handler(DiceError, dice_error_handler)
    return app


app = create_app()
