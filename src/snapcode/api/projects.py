"""Project API routes.

Learn: Routes translate HTTP to service calls. The identity comes from
the Auth Gate dependency and is handed to the service explicitly;
ownership checks happen inside the service.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from snapcode.auth.dependencies import CurrentIdentity, get_current_user
from snapcode.db.engine import get_db
from snapcode.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate
from snapcode.services.project_service import ProjectService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> ProjectService:
    return ProjectService(db)


@router.get("/projects", response_model=list[ProjectRead])
async def list_projects(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    return await svc.list_projects(identity)


@router.post("/projects", response_model=ProjectRead, status_code=201)
async def create_project(
    body: ProjectCreate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    frames = [f.model_dump(by_alias=True) for f in body.frames]
    return await svc.create_project(identity, name=body.name, frames=frames)


@router.get("/projects/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    return await svc.get_project(identity, project_id)


@router.put("/projects/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    frames = None
    if body.frames is not None:
        frames = [f.model_dump(by_alias=True) for f in body.frames]
    return await svc.update_project(identity, project_id, name=body.name, frames=frames)


@router.delete("/projects/{project_id}")
async def delete_project(
    project_id: str,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: ProjectService = Depends(_svc),
):
    await svc.delete_project(identity, project_id)
    return {"success": True}
