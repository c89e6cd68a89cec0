"""Adapter for the external HTML → PNG render service.

Learn: Rendering is done by a separate headless-browser service. We
POST it the editor's HTML and get PNG bytes back; nothing here knows
how the screenshot is taken.
"""

import httpx
import structlog

from snapcode.config import settings

logger = structlog.get_logger()

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class RenderError(Exception):
    """The render service failed or returned something that isn't a PNG."""


class RenderTimeoutError(RenderError):
    """The render service didn't answer in time."""


class HttpRenderer:
    """Calls the render service over HTTP."""

    def __init__(self, url: str | None = None, timeout: float | None = None):
        self.url = url or settings.render_service_url
        self.timeout = timeout or settings.render_timeout_seconds

    async def render_png(self, html: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    self.url,
                    json={
                        "html": html,
                        "format": "png",
                        "viewport": {"width": 1200, "height": 800, "deviceScaleFactor": 2},
                    },
                )
        except httpx.TimeoutException as e:
            logger.warning("render.timeout", url=self.url)
            raise RenderTimeoutError("Render service timed out") from e
        except httpx.HTTPError as e:
            logger.warning("render.transport_error", error=type(e).__name__)
            raise RenderError("Render service unreachable") from e

        if resp.status_code != 200:
            raise RenderError(f"Render service returned {resp.status_code}")
        if not resp.content.startswith(PNG_SIGNATURE):
            raise RenderError("Render service returned a non-PNG body")
        return resp.content


def get_renderer() -> HttpRenderer:
    """FastAPI dependency — overridden in tests."""
    return HttpRenderer()
