from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.api_docs import error_responses
from app.core.deps import get_db
from app.core.permissions import require_admin
from app.core.security_current import get_current_user
from app.models.system_setting import SystemSetting
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.setting import SettingOut, SettingUpsertIn

router = APIRouter(prefix="/settings", tags=["settings"])

SETTING_KEY_PATTERN = r"^[A-Za-z0-9_.\-]{1,100}$"


def _setting_out(setting: SystemSetting) -> SettingOut:
    return SettingOut(
        key=setting.key,
        value=setting.value,
        description=setting.description,
        updated_at=setting.updated_at,
    )


@router.get(
    "",
    response_model=ApiResponse[list[SettingOut]],
    summary="List system settings",
    responses=error_responses(401, 500),
)
def list_settings(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    settings_rows = db.execute(select(SystemSetting).order_by(SystemSetting.key.asc())).scalars().all()
    return ApiResponse(data=[_setting_out(row) for row in settings_rows])


@router.get(
    "/{key}",
    response_model=ApiResponse[SettingOut],
    summary="Get system setting",
    responses=error_responses(401, 404, 500),
)
def get_setting(
    key: str,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    setting = db.get(SystemSetting, key)
    if not setting:
        raise HTTPException(status_code=404, detail="Setting not found")
    return ApiResponse(data=_setting_out(setting))


@router.put(
    "/{key}",
    response_model=ApiResponse[SettingOut],
    summary="Create or update system setting",
    responses=error_responses(400, 401, 403, 500),
)
def upsert_setting(
    payload: SettingUpsertIn,
    key: str = Path(pattern=SETTING_KEY_PATTERN),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin()),
):
    setting = db.get(SystemSetting, key)
    if setting is None:
        setting = SystemSetting(key=key, value=payload.value, description=payload.description)
        db.add(setting)
    else:
        setting.value = payload.value
        if "description" in payload.model_fields_set:
            setting.description = payload.description

    db.commit()
    db.refresh(setting)
    return ApiResponse(message="Setting saved successfully", data=_setting_out(setting))
