"""API router configuration."""

from fastapi import APIRouter

from gametracker.api.endpoints import auth, games, health, public, steam, upload, users

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(games.router, prefix="/games", tags=["Games"])
api_router.include_router(public.router, prefix="/public", tags=["Public"])
api_router.include_router(steam.router, prefix="/steam", tags=["Steam"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(upload.router, prefix="/upload", tags=["Upload"])
