"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Relationships, constraints, and indexes defined here.

Key concepts:
- UUID primary keys (ids are handed to clients; no guessable sequences)
- Every owned resource carries user_id, set once at creation
- Portable Uuid/JSON column types so tests can run on SQLite
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    LargeBinary,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


# ══════════════════════════════════════════════════════════════
# Identity
# ══════════════════════════════════════════════════════════════


class User(Base):
    """A person who signed in through the external identity provider.

    Learn: Users are created lazily on first successful Google login
    and looked up by external_id on every later login. Nothing in the
    app deletes them. Owned projects/snippets/exports hang off user_id.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    external_id: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )  # Google "sub"
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Owned resource references
    projects: Mapped[list["Project"]] = relationship(back_populates="user")
    snippets: Mapped[list["Snippet"]] = relationship(back_populates="user")
    exports: Mapped[list["Export"]] = relationship(back_populates="user")


# ══════════════════════════════════════════════════════════════
# Owned resources
# ══════════════════════════════════════════════════════════════


class Project(Base):
    """An editor canvas holding an ordered list of code frames.

    Frames live in a JSON column: the editor saves the whole canvas at
    once, so there is nothing to gain from a frames table.
    """

    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    frames: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )

    user: Mapped["User"] = relationship(back_populates="projects")
    snippets: Mapped[list["Snippet"]] = relationship(
        back_populates="project", passive_deletes=True
    )


class Snippet(Base):
    """A single styled code block placed on a project canvas."""

    __tablename__ = "snippets"
    __table_args__ = (
        Index("idx_snippets_user_project", "user_id", "project_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # javascript, python, html
    position: Mapped[dict] = mapped_column(JSON, nullable=False)  # {x, y}
    size: Mapped[dict] = mapped_column(JSON, nullable=False)  # {width, height}
    style: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )

    user: Mapped["User"] = relationship(back_populates="snippets")
    project: Mapped["Project"] = relationship(back_populates="snippets")


class Export(Base):
    """A rendered PNG of a snippet (or of arbitrary editor HTML).

    Learn: The PNG bytes are produced by the external renderer and kept
    opaque here. Lookups for "latest export of this snippet" use the
    (user_id, snippet_id) index.
    """

    __tablename__ = "exports"
    __table_args__ = (
        Index("idx_exports_user_snippet", "user_id", "snippet_id"),
        Index("idx_exports_created", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    snippet_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("snippets.id", ondelete="SET NULL"), nullable=True
    )
    format: Mapped[str] = mapped_column(String(10), nullable=False, default="png")
    content: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    user: Mapped["User"] = relationship(back_populates="exports")
