"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import audit, auth, health, permissions, registration, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(registration.router, prefix="/registration", tags=["registration"])
router.include_router(permissions.router, prefix="/permissions", tags=["permissions"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(audit.router, prefix="/audit", tags=["audit"])
