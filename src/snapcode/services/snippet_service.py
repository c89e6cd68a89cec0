"""Snippet service — styled code blocks placed on a project.

Learn: A snippet always belongs to a project, and both must belong to
the caller. Creating or listing snippets for someone else's project
reports "Project not found", exactly as for a project id that doesn't
exist.
"""

import uuid

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from snapcode.auth.dependencies import CurrentIdentity
from snapcode.auth.ownership import fetch_owned
from snapcode.db.models import Project, Snippet

logger = structlog.get_logger()

UPDATABLE_FIELDS = ("title", "code", "language", "position", "size", "style")


class SnippetService:
    """Business logic for snippets."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_snippets(
        self, identity: CurrentIdentity, project_id
    ) -> list[Snippet]:
        """Snippets of one owned project, newest first."""
        project = await fetch_owned(self.db, Project, project_id, identity, "Project")
        result = await self.db.execute(
            select(Snippet)
            .where(
                Snippet.user_id == uuid.UUID(identity.user_id),
                Snippet.project_id == project.id,
            )
            .order_by(Snippet.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_snippet(
        self,
        identity: CurrentIdentity,
        project_id,
        title: str,
        code: str,
        language: str,
        position: dict,
        size: dict,
        style: dict,
    ) -> Snippet:
        project = await fetch_owned(self.db, Project, project_id, identity, "Project")
        snippet = Snippet(
            user_id=uuid.UUID(identity.user_id),
            project_id=project.id,
            title=title,
            code=code,
            language=language,
            position=position,
            size=size,
            style=style,
        )
        self.db.add(snippet)
        await self.db.commit()
        await self.db.refresh(snippet)
        logger.info("snippet.created", snippet_id=str(snippet.id))
        return snippet

    async def get_snippet(self, identity: CurrentIdentity, snippet_id) -> Snippet:
        return await fetch_owned(self.db, Snippet, snippet_id, identity, "Snippet")

    async def update_snippet(
        self, identity: CurrentIdentity, snippet_id, changes: dict
    ) -> Snippet:
        """Apply a partial update. Unknown keys and None values are ignored."""
        snippet = await self.get_snippet(identity, snippet_id)
        for field in UPDATABLE_FIELDS:
            if changes.get(field) is not None:
                setattr(snippet, field, changes[field])
        await self.db.commit()
        await self.db.refresh(snippet)
        return snippet

    async def delete_snippet(self, identity: CurrentIdentity, snippet_id) -> None:
        snippet = await self.get_snippet(identity, snippet_id)
        await self.db.delete(snippet)
        await self.db.commit()
        logger.info("snippet.deleted", snippet_id=str(snippet.id))
