"""SnapCode CLI — run the server and poke at a session from the terminal.

Usage:
    snapcode serve                          # Run the API with uvicorn
    snapcode login-url                      # Print the Google sign-in URL
    snapcode me                             # Who does SNAPCODE_ACCESS_TOKEN belong to?
    snapcode refresh                        # New access token from SNAPCODE_REFRESH_TOKEN
    snapcode logout                         # Revoke SNAPCODE_REFRESH_TOKEN
    snapcode projects                       # List your projects
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Optional

import click
import httpx

from snapcode import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:4000"


def _api_url() -> str:
    return os.environ.get("SNAPCODE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(access_token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the SnapCode backend."""
    headers = {}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0, headers=headers)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require(value: Optional[str], env_var: str, flag: str) -> str:
    """Resolve a token from its flag or env var, or exit."""
    resolved = value or os.environ.get(env_var)
    if not resolved:
        click.secho(f"Error: {flag} required (or set {env_var})", fg="red", err=True)
        sys.exit(1)
    return resolved


def _fail_on_error(r: httpx.Response) -> None:
    if r.status_code >= 400:
        try:
            detail = r.json().get("detail", r.text)
        except ValueError:
            detail = r.text
        click.secho(f"Error {r.status_code}: {detail}", fg="red", err=True)
        sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="snapcode")
def main():
    """SnapCode — backend for the code-snippet design tool."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: SNAPCODE_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: SNAPCODE_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from snapcode.config import settings

    uvicorn.run(
        "snapcode.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("login-url")
def login_url():
    """Print the URL that starts Google sign-in."""
    click.echo(f"{_api_url()}/api/v1/auth/google")


@main.command()
@click.option("--token", help="Access token (or set SNAPCODE_ACCESS_TOKEN)")
def me(token: Optional[str]):
    """Show the user an access token belongs to."""
    asyncio.run(_me_impl(_require(token, "SNAPCODE_ACCESS_TOKEN", "--token")))


async def _me_impl(token: str):
    async with _client(token) as c:
        r = await c.get("/api/v1/auth/me")
        _fail_on_error(r)
        click.echo(_pretty_json(r.json()))


@main.command()
@click.option("--refresh-token", help="Refresh token (or set SNAPCODE_REFRESH_TOKEN)")
def refresh(refresh_token: Optional[str]):
    """Exchange a refresh token for a new access token."""
    token = _require(refresh_token, "SNAPCODE_REFRESH_TOKEN", "--refresh-token")
    asyncio.run(_refresh_impl(token))


async def _refresh_impl(token: str):
    async with _client() as c:
        r = await c.post("/api/v1/auth/refresh-token", json={"refreshToken": token})
        _fail_on_error(r)
        click.echo(r.json()["accessToken"])


@main.command()
@click.option("--refresh-token", help="Refresh token (or set SNAPCODE_REFRESH_TOKEN)")
def logout(refresh_token: Optional[str]):
    """Revoke a refresh token."""
    token = _require(refresh_token, "SNAPCODE_REFRESH_TOKEN", "--refresh-token")
    asyncio.run(_logout_impl(token))


async def _logout_impl(token: str):
    async with _client() as c:
        r = await c.post("/api/v1/auth/logout", json={"refreshToken": token})
        _fail_on_error(r)
        click.secho(r.json()["message"], fg="green")


@main.command()
@click.option("--token", help="Access token (or set SNAPCODE_ACCESS_TOKEN)")
def projects(token: Optional[str]):
    """List your projects."""
    asyncio.run(_projects_impl(_require(token, "SNAPCODE_ACCESS_TOKEN", "--token")))


async def _projects_impl(token: str):
    async with _client(token) as c:
        r = await c.get("/api/v1/projects")
        _fail_on_error(r)
        rows = r.json()
        if not rows:
            click.echo("No projects found.")
            return
        click.secho(f"Projects ({len(rows)}):", bold=True)
        for p in rows:
            click.echo(f"  {p['id'][:8]}  {p['name']:30s}  frames={len(p['frames'])}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
