"""System settings API."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from trainingpulse.api.helpers import envelope, not_found
from trainingpulse.core.auth_middleware import AuthContext, require_admin, require_auth
from trainingpulse.core.schemas_admin import SettingValue
from trainingpulse.db import settings as settings_db

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
async def get_settings_map(auth: AuthContext = Depends(require_auth)):
    return envelope(settings_db.get_all_settings())


@router.put("")
async def update_settings(values: dict[str, Any] = Body(...), auth: AuthContext = Depends(require_admin)):
    """Upsert several settings at once."""
    try:
        return envelope(settings_db.update_settings(values, updated_by=auth.user_id))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/{key}")
async def get_setting(key: str, auth: AuthContext = Depends(require_auth)):
    setting = settings_db.get_setting(key)
    if not setting:
        raise not_found("Setting")
    return envelope(setting)


@router.put("/{key}")
async def set_setting(key: str, data: SettingValue, auth: AuthContext = Depends(require_admin)):
    return envelope(settings_db.set_setting(key, data.value, updated_by=auth.user_id))
