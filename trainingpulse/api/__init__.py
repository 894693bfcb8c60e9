"""API router for v1 endpoints."""

from fastapi import APIRouter

from trainingpulse.api import (
    activity,
    analytics,
    auth,
    bulk,
    comments,
    courses,
    custom_fields,
    modalities,
    notifications,
    permissions,
    phase_statuses,
    priorities,
    programs,
    roles,
    settings,
    statuses,
    teams,
    users,
    workflows,
)
from trainingpulse.core.config import Settings


def build_router(config: Settings) -> APIRouter:
    """Assemble the versioned router. Routers of disabled features are left out."""
    router = APIRouter()

    router.include_router(auth.router)
    router.include_router(courses.router)
    router.include_router(users.router)
    router.include_router(teams.router)
    router.include_router(programs.router)
    router.include_router(comments.router)
    router.include_router(activity.router)

    # Admin lookups
    router.include_router(settings.router)
    router.include_router(statuses.router)
    router.include_router(phase_statuses.router)
    router.include_router(priorities.router)
    router.include_router(modalities.router)
    router.include_router(roles.router)
    router.include_router(permissions.router)
    router.include_router(permissions.user_permissions_router)
    router.include_router(custom_fields.router)

    # Feature-flagged routes
    if config.ENABLE_WORKFLOWS:
        router.include_router(workflows.router)
    if config.ENABLE_NOTIFICATIONS:
        router.include_router(notifications.router)
    if config.ENABLE_ANALYTICS:
        router.include_router(analytics.router)
    if config.ENABLE_BULK_OPERATIONS:
        router.include_router(bulk.router)

    return router
