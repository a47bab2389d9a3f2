"""FastAPI dependencies."""

from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.context import AppContext


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_db(ctx: AppContext = Depends(get_context)) -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for FastAPI dependency injection."""
    async with ctx.session_factory() as session:
        yield session
