"""Export API routes — render to PNG, list, download."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from snapcode.auth.dependencies import CurrentIdentity, get_current_user
from snapcode.db.engine import get_db
from snapcode.schemas.export import ExportCreate, ExportCreated, ExportRead
from snapcode.services.export_service import ExportService, export_url
from snapcode.services.renderer import HttpRenderer, get_renderer

router = APIRouter()


def _svc(
    db: AsyncSession = Depends(get_db),
    renderer: HttpRenderer = Depends(get_renderer),
) -> ExportService:
    return ExportService(db, renderer)


@router.post("/exports/png", response_model=ExportCreated, status_code=201)
async def create_png_export(
    body: ExportCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ExportService = Depends(_svc),
):
    """Render HTML to PNG. Re-exporting a snippet returns its latest export (200)."""
    export, created = await svc.create_png(identity, body.html, body.snippet_id)
    payload = ExportCreated(id=export.id, url=export_url(export))
    if not created:
        return JSONResponse(status_code=200, content=payload.model_dump(mode="json", by_alias=True))
    return payload


@router.get("/exports", response_model=list[ExportRead])
async def list_exports(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ExportService = Depends(_svc),
):
    exports = await svc.list_exports(identity)
    return [
        ExportRead(
            id=e.id,
            url=export_url(e),
            snippet_id=e.snippet_id,
            format=e.format,
            created_at=e.created_at,
        )
        for e in exports
    ]


@router.get("/exports/png/{export_id}")
async def get_png_export(
    export_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ExportService = Depends(_svc),
):
    export = await svc.get_export(identity, export_id)
    return Response(
        content=export.content,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="export-{export.id}.png"'},
    )
