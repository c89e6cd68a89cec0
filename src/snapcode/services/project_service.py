"""Project service — business logic for editor canvases.

Learn: Service layer separates business logic from HTTP routing.
Every method takes the caller's identity. Reads and writes by id go
through fetch_owned(), so another user's project is indistinguishable
from a missing one. List queries filter on user_id directly.
"""

import uuid

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from snapcode.auth.dependencies import CurrentIdentity
from snapcode.auth.ownership import fetch_owned
from snapcode.db.models import Project, Snippet

logger = structlog.get_logger()


def assign_frame_ids(frames: list[dict]) -> list[dict]:
    """Give every frame without an id a fresh UUID."""
    return [
        {**frame, "id": frame.get("id") or str(uuid.uuid4())}
        for frame in frames
    ]


class ProjectService:
    """Business logic for projects."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_projects(self, identity: CurrentIdentity) -> list[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.user_id == uuid.UUID(identity.user_id))
            .order_by(Project.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_project(
        self, identity: CurrentIdentity, name: str, frames: list[dict]
    ) -> Project:
        project = Project(
            user_id=uuid.UUID(identity.user_id),
            name=name,
            frames=assign_frame_ids(frames),
        )
        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)
        logger.info("project.created", project_id=str(project.id))
        return project

    async def get_project(self, identity: CurrentIdentity, project_id) -> Project:
        return await fetch_owned(self.db, Project, project_id, identity, "Project")

    async def update_project(
        self,
        identity: CurrentIdentity,
        project_id,
        name: str | None = None,
        frames: list[dict] | None = None,
    ) -> Project:
        project = await self.get_project(identity, project_id)
        if name is not None:
            project.name = name
        if frames is not None:
            project.frames = assign_frame_ids(frames)
        await self.db.commit()
        await self.db.refresh(project)
        return project

    async def delete_project(self, identity: CurrentIdentity, project_id) -> None:
        project = await self.get_project(identity, project_id)
        await self.db.execute(delete(Snippet).where(Snippet.project_id == project.id))
        await self.db.delete(project)
        await self.db.commit()
        logger.info("project.deleted", project_id=str(project.id))
