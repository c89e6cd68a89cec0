"""Export service — render HTML to PNG and keep the result.

Learn: Exporting a snippet that already has an export returns the most
recent one instead of rendering again. Exports without a snippet are
always rendered fresh.
"""

import uuid
from typing import Optional, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from snapcode.auth.dependencies import CurrentIdentity
from snapcode.auth.ownership import fetch_owned
from snapcode.db.models import Export, Snippet
from snapcode.errors import BadRequestError, ServiceUnavailableError
from snapcode.services.renderer import RenderError

logger = structlog.get_logger()


class Renderer(Protocol):
    async def render_png(self, html: str) -> bytes: ...


def export_url(export: Export) -> str:
    return f"/api/v1/exports/png/{export.id}"


class ExportService:
    """Business logic for PNG exports."""

    def __init__(self, db: AsyncSession, renderer: Renderer):
        self.db = db
        self.renderer = renderer

    async def create_png(
        self,
        identity: CurrentIdentity,
        html: Optional[str],
        snippet_id: Optional[uuid.UUID] = None,
    ) -> tuple[Export, bool]:
        """Return (export, created). created is False when an existing export is reused."""
        if not html:
            raise BadRequestError("HTML content is required")

        if snippet_id is not None:
            snippet = await fetch_owned(self.db, Snippet, snippet_id, identity, "Snippet")
            existing = await self.latest_for_snippet(identity, snippet.id)
            if existing is not None:
                return existing, False

        try:
            png = await self.renderer.render_png(html)
        except RenderError as e:
            logger.warning("export.render_failed", error=str(e))
            raise ServiceUnavailableError("Rendering is temporarily unavailable")

        export = Export(
            user_id=uuid.UUID(identity.user_id),
            snippet_id=snippet_id,
            format="png",
            content=png,
        )
        self.db.add(export)
        await self.db.commit()
        await self.db.refresh(export)
        logger.info("export.created", export_id=str(export.id), bytes=len(png))
        return export, True

    async def latest_for_snippet(
        self, identity: CurrentIdentity, snippet_id: uuid.UUID
    ) -> Optional[Export]:
        result = await self.db.execute(
            select(Export)
            .where(
                Export.user_id == uuid.UUID(identity.user_id),
                Export.snippet_id == snippet_id,
            )
            .order_by(Export.created_at.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def list_exports(self, identity: CurrentIdentity) -> list[Export]:
        result = await self.db.execute(
            select(Export)
            .where(Export.user_id == uuid.UUID(identity.user_id))
            .order_by(Export.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_export(self, identity: CurrentIdentity, export_id) -> Export:
        return await fetch_owned(self.db, Export, export_id, identity, "Export")
