"""FastAPI application entry point and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from algodeck.api.backup_router import router as backup_router
from algodeck.api.items_router import router as items_router
from algodeck.api.items_router import solutions_router
from algodeck.api.notebooks_router import router as notebooks_router
from algodeck.api.session_router import router as session_router
from algodeck.api.settings_router import router as settings_router
from algodeck.api.stats_router import router as stats_router
from algodeck.config import settings
from algodeck.context import create_context
from algodeck.database import engine
from algodeck.exceptions import NotFoundError, SessionStateError, ValidationFailedError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize database and search index on startup, dispose on shutdown."""
    logging.getLogger("algodeck").setLevel(settings.log_level)
    app.state.context = await create_context(engine)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Spaced repetition review for coding-interview problems",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(SessionStateError)
async def session_state_handler(request: Request, exc: SessionStateError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ValidationFailedError)
async def validation_failed_handler(request: Request, exc: ValidationFailedError) -> JSONResponse:
    logger.warning("Rejected request to %s: %s", request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


app.include_router(items_router)
app.include_router(solutions_router)
app.include_router(notebooks_router)
app.include_router(session_router)
app.include_router(stats_router)
app.include_router(settings_router)
app.include_router(backup_router)


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """Check database connectivity and report the search mode."""
    ctx = request.app.state.context
    async with ctx.session_factory() as session:
        await session.execute(text("SELECT 1"))
    return {"status": "ok", "search": "fts5" if ctx.search.available else "substring"}
