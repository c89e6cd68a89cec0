"""Test fixtures — in-memory SQLite database and an HTTP client against the app.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets a fresh in-memory SQLite database (aiosqlite, one shared
   connection via StaticPool) with all tables created.
2. get_db is overridden so every request opens its own session on it.
3. The refresh token store, the Google OAuth client and the PNG renderer
   are overridden with in-process fakes — no network, no Redis.

Tokens used in tests are real JWTs signed with the configured secret,
so the real Auth Gate runs on every protected request.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from snapcode.auth.google import OAuthExchangeError, get_oauth_client
from snapcode.auth.identity import ExternalIdentity
from snapcode.auth.jwt import create_access_token
from snapcode.auth.token_store import InMemoryRefreshTokenStore, get_token_store
from snapcode.db.engine import get_db
from snapcode.db.models import Base, User
from snapcode.main import app
from snapcode.services.renderer import PNG_SIGNATURE, RenderError, get_renderer


class FakeOAuthClient:
    """Stands in for Google: known codes map to fixed identities."""

    def __init__(self):
        self.identities: dict[str, ExternalIdentity] = {}

    def register(self, code: str, identity: ExternalIdentity) -> None:
        self.identities[code] = identity

    def authorization_url(self, state: str) -> str:
        return f"https://accounts.example.com/auth?state={state}"

    async def exchange_code(self, code: str) -> ExternalIdentity:
        if code not in self.identities:
            raise OAuthExchangeError("unknown code")
        return self.identities[code]


class FakeRenderer:
    """Returns a tiny PNG-looking payload and counts calls."""

    def __init__(self):
        self.calls = 0
        self.fail = False

    async def render_png(self, html: str) -> bytes:
        self.calls += 1
        if self.fail:
            raise RenderError("render service down")
        return PNG_SIGNATURE + html.encode()[:16]


@pytest_asyncio.fixture()
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def token_store():
    return InMemoryRefreshTokenStore()


@pytest_asyncio.fixture()
async def fake_oauth():
    return FakeOAuthClient()


@pytest_asyncio.fixture()
async def fake_renderer():
    return FakeRenderer()


@pytest_asyncio.fixture()
async def client(session_factory, token_store, fake_oauth, fake_renderer):
    """HTTP client with DB, token store, OAuth and renderer overridden.

    Auth is NOT overridden: protected routes need a real bearer token.
    """
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_store] = lambda: token_store
    app.dependency_overrides[get_oauth_client] = lambda: fake_oauth
    app.dependency_overrides[get_renderer] = lambda: fake_renderer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def make_user(db_session):
    """Factory: create a user row and return (user, auth headers)."""

    async def _make(name: str = "User"):
        tag = uuid.uuid4().hex[:8]
        user = User(
            external_id=f"g-{tag}",
            email=f"{name.lower()}-{tag}@example.com",
            name=name,
        )
        db_session.add(user)
        await db_session.commit()
        token = create_access_token(str(user.id), user.email)
        return user, {"Authorization": f"Bearer {token}"}

    return _make


# ─── Payload builders ───────────────────────────────────


def _style() -> dict:
    return {
        "theme": "dark",
        "background": "#1e1e1e",
        "padding": {"top": 16, "right": 16, "bottom": 16, "left": 16},
        "borderRadius": 8,
        "shadow": {"x": 0, "y": 4, "blur": 12, "color": "rgba(0,0,0,0.4)"},
        "font": "Fira Code",
        "lineHeight": 1.5,
    }


def _snippet(project_id: str, **overrides) -> dict:
    body = {
        "projectId": project_id,
        "title": "Hello",
        "code": "print('hello')",
        "language": "python",
        "position": {"x": 10, "y": 20},
        "size": {"width": 400, "height": 200},
        "style": _style(),
    }
    body.update(overrides)
    return body


def _frame(**overrides) -> dict:
    body = {
        "title": "Frame",
        "code": "const a = 1",
        "language": "javascript",
        "order": 0,
        "position": {"x": 0, "y": 0},
        "size": {"width": 300, "height": 150},
        "style": _style(),
    }
    body.update(overrides)
    return body


@pytest.fixture()
def snippet_payload():
    """Builder for a valid POST /snippets body."""
    return _snippet


@pytest.fixture()
def frame_payload():
    """Builder for one valid project frame."""
    return _frame
