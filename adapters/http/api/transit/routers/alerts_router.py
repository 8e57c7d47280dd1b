from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from core.database import get_db
from core.rate_limiter import limiter, RateLimits
from core.security import get_current_user, require_admin
from src.transit_bc.notification.infrastructure.services.service_alert_service import ServiceAlertService
from src.transit_bc.user.infrastructure.models import UserModel

from adapters.http.api.transit.schemas import ServiceAlertCreate, ServiceAlertResponse


router = APIRouter(prefix="/alerts", tags=["Service alerts"])


@router.get("", response_model=List[ServiceAlertResponse])
@limiter.limit(RateLimits.DEFAULT)
def list_alerts(
    request: Request,
    line: Optional[str] = Query(None, description="Only alerts affecting this line"),
    stop_id: Optional[str] = Query(None, description="Only alerts affecting this stop"),
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """Service alerts currently in effect."""
    alerts = ServiceAlertService(db).list_current(line=line, stop_id=stop_id)
    return [ServiceAlertResponse.from_model(a) for a in alerts]


@router.post("", response_model=ServiceAlertResponse, status_code=201, dependencies=[Depends(require_admin)])
@limiter.limit(RateLimits.DEFAULT)
def create_alert(
    request: Request,
    body: ServiceAlertCreate,
    db: Session = Depends(get_db),
):
    """Create or update (by ``external_id``) a service alert. Requires X-Admin-Token."""
    alert = ServiceAlertService(db).upsert(**body.model_dump())
    return ServiceAlertResponse.from_model(alert)
