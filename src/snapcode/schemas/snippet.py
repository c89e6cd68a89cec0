"""Pydantic schemas for snippets and the visual styling they share with frames."""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from snapcode.schemas.common import CamelModel

Language = Literal["javascript", "python", "html"]
Theme = Literal["light", "dark", "custom"]


# ─── Styling ────────────────────────────────────────────

class Position(CamelModel):
    x: float
    y: float


class Size(CamelModel):
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)


class Padding(CamelModel):
    top: float
    right: float
    bottom: float
    left: float


class Shadow(CamelModel):
    x: float
    y: float
    blur: float
    color: str


class SnippetStyle(CamelModel):
    theme: Theme
    background: str
    padding: Padding
    border_radius: float
    shadow: Shadow
    font: str
    line_height: float


# ─── Snippets ───────────────────────────────────────────

class SnippetCreate(CamelModel):
    project_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1)
    language: Language
    position: Position
    size: Size
    style: SnippetStyle


class SnippetUpdate(CamelModel):
    """Partial update. project_id is fixed at creation."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, min_length=1)
    language: Optional[Language] = None
    position: Optional[Position] = None
    size: Optional[Size] = None
    style: Optional[SnippetStyle] = None


class SnippetRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    project_id: uuid.UUID
    title: str
    code: str
    language: Language
    position: Position
    size: Size
    style: SnippetStyle
    created_at: datetime
    updated_at: datetime
