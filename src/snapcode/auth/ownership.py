"""Ownership guard — one rule for every resource type.

Learn: Anything with an `id` and a `user_id` is an owned resource
(projects, snippets, exports). After every fetch-by-id, and before the
resource is returned or changed, the guard checks that its owner is the
caller. A resource owned by someone else gets the same 404 as one that
doesn't exist, so ids can't be probed for existence.

Creation needs no guard: new resources take user_id from the identity.
"""

import uuid
from typing import Any, Optional, Protocol, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from snapcode.auth.dependencies import CurrentIdentity
from snapcode.db.engine import bounded
from snapcode.errors import NotFoundError

logger = structlog.get_logger()


class OwnedResource(Protocol):
    id: Any
    user_id: Any


R = TypeVar("R", bound=OwnedResource)


def is_owner(identity: CurrentIdentity, resource: OwnedResource) -> bool:
    """Compare owner ids by value (string form), never by object identity."""
    return str(resource.user_id) == str(identity.user_id)


def require_owned(
    identity: CurrentIdentity, resource: Optional[R], label: str
) -> R:
    """Return the resource if the caller owns it, else raise NotFoundError."""
    if resource is None:
        raise NotFoundError(f"{label} not found")
    if not is_owner(identity, resource):
        logger.info(
            "ownership.denied",
            resource=label.lower(),
            resource_id=str(resource.id),
            user_id=identity.user_id,
        )
        raise NotFoundError(f"{label} not found")
    return resource


def parse_resource_id(raw: Any, label: str) -> uuid.UUID:
    """Ids that can't be parsed name nothing, so they're 'not found' too."""
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise NotFoundError(f"{label} not found")


async def fetch_owned(
    db: AsyncSession,
    model: type[R],
    resource_id: Any,
    identity: CurrentIdentity,
    label: str,
) -> R:
    """Fetch a resource by id and apply the ownership guard."""
    pk = parse_resource_id(resource_id, label)
    resource = await bounded(db.get(model, pk), label.lower())
    return require_owned(identity, resource, label)
