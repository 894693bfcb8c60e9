"""Analytics API: workflow bottlenecks and team workload."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from trainingpulse.api.helpers import envelope, not_found
from trainingpulse.core import analytics
from trainingpulse.core.auth_middleware import AuthContext, require_analytics_access, require_auth
from trainingpulse.core.logging import get_logger
from trainingpulse.db import analytics as analytics_db
from trainingpulse.db import courses as courses_db

logger = get_logger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])

PERIOD_PATTERN = "^(7d|30d|90d|180d|365d)$"


@router.get("/bottlenecks")
async def get_bottlenecks(
    period: str = Query("30d", pattern=PERIOD_PATTERN),
    threshold: float = Query(analytics.DEFAULT_THRESHOLD, gt=1.0, le=5.0),
    team_id: Optional[UUID] = None,
    auth: AuthContext = Depends(require_analytics_access),
):
    """Workflow states where courses wait longest."""
    rows = analytics_db.fetch_transitions(period, team_id=team_id)
    result = analytics.compute_bottlenecks(rows, threshold=threshold)
    logger.info(
        f"Bottleneck analysis for {period}: {result['summary']['totalBottlenecks']} states "
        f"from {len(rows)} transitions"
    )
    return envelope({**result, "period": period, "threshold": threshold})


@router.get("/workload")
async def get_workload(team_id: Optional[UUID] = None, auth: AuthContext = Depends(require_auth)):
    """Capacity heatmap. Users without analytics access only see their own row."""
    user_id = None if auth.role in ("admin", "manager", "reviewer") else auth.user_id
    rows = analytics_db.fetch_workload_rows(team_id=team_id, user_id=user_id)
    return envelope(analytics.compute_workload(rows["users"], rows["capacity"], rows["assignments"]))


@router.get("/course/{course_id}/bottlenecks")
async def get_course_bottlenecks(course_id: UUID, auth: AuthContext = Depends(require_auth)):
    if not courses_db.get_course(course_id):
        raise not_found("Course")
    rows = analytics_db.fetch_course_transitions(course_id)
    return envelope(analytics.compute_course_bottlenecks(str(course_id), rows))
