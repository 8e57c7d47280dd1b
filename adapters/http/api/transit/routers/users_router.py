from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from core.database import get_db
from core.rate_limiter import limiter, RateLimits
from core.security import get_current_user
from src.transit_bc.user.infrastructure.models import UserModel
from src.transit_bc.user.infrastructure.services.user_service import UserService

from adapters.http.api.transit.schemas import UserSettingsResponse, UserSettingsUpdate


router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me/settings", response_model=UserSettingsResponse)
@limiter.limit(RateLimits.DEFAULT)
def get_settings(
    request: Request,
    user: UserModel = Depends(get_current_user),
):
    return UserSettingsResponse(**UserService.settings_of(user))


@router.patch("/me/settings", response_model=UserSettingsResponse)
@limiter.limit(RateLimits.DEFAULT)
def update_settings(
    request: Request,
    body: UserSettingsUpdate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """Update notification and display preferences. Omitted fields are unchanged."""
    user = UserService(db).update_settings(user, body.model_dump(exclude_unset=True))
    return UserSettingsResponse(**UserService.settings_of(user))
