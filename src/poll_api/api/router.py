"""Root API router with the configured prefix."""

from fastapi import APIRouter

from poll_api.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from poll_api.api.v1.admin import admin_router
    from poll_api.api.v1.auth import router as auth_router
    from poll_api.api.v1.polls import polls_router

    root_router = APIRouter(prefix=settings.api_prefix)
    root_router.include_router(auth_router)
    root_router.include_router(polls_router)
    root_router.include_router(admin_router)

    return root_router
