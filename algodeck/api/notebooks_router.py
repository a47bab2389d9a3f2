"""API routes for notebooks."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from algodeck.api.deps import get_db
from algodeck.api.schemas import NotebookResponse
from algodeck.exceptions import NotebookNotFoundError
from algodeck.models.notebook import Notebook
from algodeck.schemas import NotebookCreate, NotebookPatch
from algodeck.store import notebooks

router = APIRouter(prefix="/api/notebooks", tags=["notebooks"])


async def _to_response(db: AsyncSession, notebook: Notebook) -> NotebookResponse:
    response = NotebookResponse.model_validate(notebook)
    response.item_count = await notebooks.get_item_count(db, notebook.id)
    return response


async def _require(db: AsyncSession, notebook_id: int) -> Notebook:
    notebook = await notebooks.get(db, notebook_id)
    if notebook is None:
        raise NotebookNotFoundError(notebook_id)
    return notebook


@router.get("", response_model=list[NotebookResponse])
async def list_notebooks(db: AsyncSession = Depends(get_db)) -> list[NotebookResponse]:
    """All notebooks by name, with the number of items in each."""
    return [await _to_response(db, notebook) for notebook in await notebooks.get_all(db)]


@router.post("", response_model=NotebookResponse, status_code=status.HTTP_201_CREATED)
async def create_notebook(
    data: NotebookCreate,
    db: AsyncSession = Depends(get_db),
) -> NotebookResponse:
    notebook_id = await notebooks.create(db, data)
    return await _to_response(db, await _require(db, notebook_id))


@router.get("/{notebook_id}", response_model=NotebookResponse)
async def get_notebook(notebook_id: int, db: AsyncSession = Depends(get_db)) -> NotebookResponse:
    return await _to_response(db, await _require(db, notebook_id))


@router.patch("/{notebook_id}", response_model=NotebookResponse)
async def update_notebook(
    notebook_id: int,
    patch: NotebookPatch,
    db: AsyncSession = Depends(get_db),
) -> NotebookResponse:
    await notebooks.update(db, notebook_id, patch)
    return await _to_response(db, await _require(db, notebook_id))


@router.delete("/{notebook_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notebook(notebook_id: int, db: AsyncSession = Depends(get_db)) -> Response:
    """Delete a notebook; its items stay, unassigned."""
    await notebooks.delete(db, notebook_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
