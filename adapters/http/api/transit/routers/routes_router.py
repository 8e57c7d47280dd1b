from typing import List
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from core.database import get_db
from core.rate_limiter import limiter, RateLimits
from core.security import get_current_user
from src.transit_bc.journey.infrastructure.services.journey_service import JourneyService
from src.transit_bc.shared.domain.errors import ValidationFailed
from src.transit_bc.shared.domain.time_utils import parse_hhmm
from src.transit_bc.user.infrastructure.models import UserModel

from adapters.http.api.transit.schemas import SavedRouteCreate, SavedRouteResponse


router = APIRouter(prefix="/routes", tags=["Saved routes"])


@router.get("", response_model=List[SavedRouteResponse])
@limiter.limit(RateLimits.JOURNEYS)
def list_saved_routes(
    request: Request,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    return [SavedRouteResponse.from_model(r) for r in JourneyService(db).list_saved_routes(user.id)]


@router.post("", response_model=SavedRouteResponse, status_code=201)
@limiter.limit(RateLimits.JOURNEYS)
def create_saved_route(
    request: Request,
    body: SavedRouteCreate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    if body.preferred_departure_time:
        try:
            parse_hhmm(body.preferred_departure_time)
        except ValueError as e:
            raise ValidationFailed(str(e))
    route = JourneyService(db).create_saved_route(user.id, **body.model_dump())
    return SavedRouteResponse.from_model(route)


@router.delete("/{route_id}", status_code=204)
@limiter.limit(RateLimits.JOURNEYS)
def delete_saved_route(
    request: Request,
    route_id: str,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    JourneyService(db).delete_saved_route(user.id, route_id)
    return Response(status_code=204)
