"""Identity resolver — external provider identity → local User row.

Learn: The first successful Google login for a given account creates
the User; every later login finds it by external_id. Profile fields
(name, avatar) are first-write-wins: a repeat login never overwrites
them.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snapcode.db.engine import bounded
from snapcode.db.models import User

logger = structlog.get_logger()


class IdentityResolutionError(Exception):
    """The user could not be looked up or created due to a storage failure."""


class IdentityConflictError(IdentityResolutionError):
    """The email already belongs to a different external account."""


@dataclass(frozen=True)
class ExternalIdentity:
    """A verified identity handed over by the OAuth exchange."""

    external_id: str
    email: str
    display_name: str
    avatar_url: Optional[str] = None


class IdentityResolver:
    """Find-or-create users keyed by external provider id."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_external_id(self, external_id: str) -> Optional[User]:
        result = await bounded(
            self.db.execute(select(User).where(User.external_id == external_id))
        )
        return result.scalars().first()

    async def resolve(self, identity: ExternalIdentity) -> User:
        """Return the user for this identity, creating it on first sight."""
        try:
            user = await self.find_by_external_id(identity.external_id)
            if user:
                return user

            user = User(
                external_id=identity.external_id,
                email=identity.email,
                name=identity.display_name,
                avatar_url=identity.avatar_url,
            )
            self.db.add(user)
            try:
                await bounded(self.db.commit())
            except IntegrityError:
                # Lost a race with a concurrent first login, or the email
                # already belongs to another external account.
                await self.db.rollback()
                user = await self.find_by_external_id(identity.external_id)
                if user is None:
                    raise IdentityConflictError(
                        "Could not create user: email already registered"
                    )
                return user

            logger.info("identity.user_created", user_id=str(user.id))
            return user
        except SQLAlchemyError as e:
            logger.error("identity.storage_error", error=type(e).__name__)
            raise IdentityResolutionError("User storage failed") from e
