"""
FastAPI router for GET/POST /settings: per-user alert settings.

GET returns the stored row or the defaults when the user never saved any.
POST upserts: fields present in the body overwrite, omitted ones are kept.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from cloudguard.api_server.auth import current_user, get_db
from cloudguard.api_server.schemas import SettingsOut, SettingsUpdate
from cloudguard.database import Database, User

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
def get_settings(user: User = Depends(current_user), db: Database = Depends(get_db)) -> dict[str, Any]:
    settings = db.get_settings_or_defaults(user.id)
    return {"success": True, "settings": SettingsOut.from_settings(settings).dump()}


@router.post("")
def update_settings(
    body: SettingsUpdate,
    user: User = Depends(current_user),
    db: Database = Depends(get_db),
) -> dict[str, Any]:
    settings = db.upsert_settings(user.id, body.model_dump(exclude_none=True))
    return {
        "success": True,
        "settings": SettingsOut.from_settings(settings).dump(),
        "message": "Settings saved successfully",
    }
