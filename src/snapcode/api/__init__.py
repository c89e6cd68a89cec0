"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Resource routers take the identity through their own
Depends(get_current_user) argument, because handlers need the identity
value itself to scope and guard their queries. Health and auth routers
are open (auth's /me declares its own dependency).
"""

from fastapi import APIRouter

from snapcode.api.auth import router as auth_router
from snapcode.api.exports import router as exports_router
from snapcode.api.health import router as health_router
from snapcode.api.projects import router as projects_router
from snapcode.api.snippets import router as snippets_router

api_router = APIRouter(prefix="/api/v1")

# Open routes
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes: every handler depends on get_current_user
api_router.include_router(projects_router, tags=["projects"])
api_router.include_router(snippets_router, tags=["snippets"])
api_router.include_router(exports_router, tags=["exports"])
