"""Snippet API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from snapcode.auth.dependencies import CurrentIdentity, get_current_user
from snapcode.db.engine import get_db
from snapcode.errors import BadRequestError
from snapcode.schemas.snippet import SnippetCreate, SnippetRead, SnippetUpdate
from snapcode.services.snippet_service import SnippetService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> SnippetService:
    return SnippetService(db)


@router.get("/snippets", response_model=list[SnippetRead])
async def list_snippets(
    project_id: Optional[str] = Query(None, alias="projectId"),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: SnippetService = Depends(_svc),
):
    """List a project's snippets, newest first."""
    if not project_id:
        raise BadRequestError("Project ID is required")
    return await svc.list_snippets(identity, project_id)


@router.post("/snippets", response_model=SnippetRead, status_code=201)
async def create_snippet(
    body: SnippetCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: SnippetService = Depends(_svc),
):
    return await svc.create_snippet(
        identity,
        project_id=body.project_id,
        title=body.title,
        code=body.code,
        language=body.language,
        position=body.position.model_dump(by_alias=True),
        size=body.size.model_dump(by_alias=True),
        style=body.style.model_dump(by_alias=True),
    )


@router.get("/snippets/{snippet_id}", response_model=SnippetRead)
async def get_snippet(
    snippet_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: SnippetService = Depends(_svc),
):
    return await svc.get_snippet(identity, snippet_id)


@router.put("/snippets/{snippet_id}", response_model=SnippetRead)
async def update_snippet(
    snippet_id: str,
    body: SnippetUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: SnippetService = Depends(_svc),
):
    changes = body.model_dump(by_alias=True, exclude_none=True)
    # Top-level keys back to attribute names; nested JSON stays camelCase
    changes = {
        name: changes[field.alias]
        for name, field in SnippetUpdate.model_fields.items()
        if field.alias in changes
    }
    return await svc.update_snippet(identity, snippet_id, changes)


@router.delete("/snippets/{snippet_id}")
async def delete_snippet(
    snippet_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: SnippetService = Depends(_svc),
):
    await svc.delete_snippet(identity, snippet_id)
    return {"success": True}
