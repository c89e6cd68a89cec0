"""Pydantic schemas for projects (editor canvases made of frames)."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from snapcode.schemas.common import CamelModel
from snapcode.schemas.snippet import Language, Position, Size, SnippetStyle


class Frame(CamelModel):
    id: Optional[str] = None  # assigned server-side when missing
    title: str
    code: str
    language: Language
    order: int = Field(..., ge=0)
    position: Position
    size: Size
    style: SnippetStyle


class ProjectCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    frames: list[Frame] = Field(default_factory=list)


class ProjectUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    frames: Optional[list[Frame]] = None


class ProjectRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    frames: list[Frame]
    created_at: datetime
    updated_at: datetime
