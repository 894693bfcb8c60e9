"""Bulk course update API: preview, execute and history."""

from fastapi import APIRouter, Depends, HTTPException, Query

from trainingpulse.api.helpers import envelope, forbidden, page
from trainingpulse.core import permissions
from trainingpulse.core.auth_middleware import AuthContext, require_auth
from trainingpulse.core.logging import get_logger
from trainingpulse.core.schemas_admin import BulkExecuteRequest, BulkRequest
from trainingpulse.db import bulk as bulk_db

logger = get_logger(__name__)

router = APIRouter(prefix="/bulk", tags=["bulk"])


def _require_bulk(auth: AuthContext) -> None:
    if not permissions.can_bulk_update(auth.user):
        raise forbidden("Bulk updates require a manager or administrator")


@router.post("/preview")
async def preview(data: BulkRequest, auth: AuthContext = Depends(require_auth)):
    """Show which courses a bulk update would change without writing them."""
    _require_bulk(auth)
    filters = data.filter.model_dump(exclude_none=True)
    if not any(filters.values()):
        raise HTTPException(status_code=400, detail="A filter is required for bulk updates")
    try:
        result = bulk_db.preview(filters, data.updates.model_dump(), data.options, auth.user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return envelope(result)


@router.post("/execute")
async def execute(data: BulkExecuteRequest, auth: AuthContext = Depends(require_auth)):
    _require_bulk(auth)
    try:
        result = bulk_db.execute(data.preview_id, auth.user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if result["failed"] and not data.confirm_impact:
        logger.warning(f"Bulk update {data.preview_id}: {result['failed']} course(s) failed")
    else:
        logger.info(
            f"Bulk update {data.preview_id}: {result['successful']} succeeded, {result['failed']} failed"
        )
    return envelope(result)


@router.get("/history")
async def history(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    auth: AuthContext = Depends(require_auth),
):
    _require_bulk(auth)
    user_id = None if auth.is_admin else auth.user_id
    result = bulk_db.history(user_id=user_id, limit=limit, offset=offset)
    return envelope(result["operations"], pagination=page(result["total"], limit, offset))
