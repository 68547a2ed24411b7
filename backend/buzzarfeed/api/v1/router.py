"""API v1 Router.

Aggregates all v1 endpoints.
"""

from fastapi import APIRouter

from .endpoints import admin, amendments, applications, auth, closures, reviews, stalls, users

api_router = APIRouter()

# Include authentication endpoints
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"]
)

api_router.include_router(
    users.router,
    prefix="/users",
    tags=["Users"]
)

# Public directory plus owner-managed stalls and menus
api_router.include_router(
    stalls.router,
    prefix="/stalls",
    tags=["Stalls"]
)

api_router.include_router(
    reviews.router,
    prefix="/reviews",
    tags=["Reviews"]
)

# Workflows decided by admins
api_router.include_router(
    applications.router,
    prefix="/applications",
    tags=["Applications"]
)

api_router.include_router(
    amendments.router,
    prefix="/amendments",
    tags=["Amendments"]
)

api_router.include_router(
    closures.router,
    prefix="/closures",
    tags=["Account Closures"]
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["Admin"]
)
