"""Pydantic schemas for PNG exports."""

import uuid
from datetime import datetime
from typing import Optional

from snapcode.schemas.common import CamelModel


class ExportCreate(CamelModel):
    html: Optional[str] = None
    snippet_id: Optional[uuid.UUID] = None


class ExportCreated(CamelModel):
    id: uuid.UUID
    url: str


class ExportRead(CamelModel):
    id: uuid.UUID
    url: str
    snippet_id: Optional[uuid.UUID] = None
    format: str
    created_at: datetime
