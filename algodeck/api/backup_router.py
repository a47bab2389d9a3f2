"""API routes for JSON backup export and import."""

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.api.deps import get_context, get_db
from algodeck.api.schemas import ImportResponse
from algodeck.context import AppContext
from algodeck.store.backup import BackupData, export_backup, import_backup

router = APIRouter(prefix="/api/backup", tags=["backup"])


@router.get("/export", response_model=BackupData)
async def export_data(db: AsyncSession = Depends(get_db)) -> BackupData:
    return await export_backup(db)


@router.post("/import", response_model=ImportResponse)
async def import_data(
    payload: Any = Body(...),
    ctx: AppContext = Depends(get_context),
    db: AsyncSession = Depends(get_db),
) -> ImportResponse:
    """Replace all data with an uploaded backup. Malformed payloads change nothing."""
    result = await import_backup(db, payload, ctx.search)
    return ImportResponse(
        message=result.message,
        items=result.items,
        solutions=result.solutions,
        revision_logs=result.revision_logs,
        notebooks=result.notebooks,
    )
