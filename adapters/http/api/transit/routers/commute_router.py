from datetime import datetime, timedelta
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from core.database import get_db
from core.rate_limiter import limiter, RateLimits
from core.security import get_current_user
from src.transit_bc.commute.domain.entities import Weekday
from src.transit_bc.commute.infrastructure.models import CommuteRouteModel
from src.transit_bc.commute.infrastructure.services.commute_service import CommuteService
from src.transit_bc.journey.infrastructure.services.transit_client import TransitClient
from src.transit_bc.shared.domain.errors import ValidationFailed
from src.transit_bc.shared.domain.time_utils import STOCKHOLM_TZ, now_local, parse_hhmm
from src.transit_bc.user.infrastructure.models import UserModel

from adapters.http.api.transit.schemas import CommuteRouteCreate, CommuteRouteResponse, CommuteRouteUpdate
from adapters.http.api.transit.utils.dependencies import get_transit_client


router = APIRouter(prefix="/commute", tags=["Commute"])


def next_run(route: CommuteRouteModel, now: datetime) -> datetime:
    """Next departure of a commute route on one of its active days."""
    departure_time = parse_hhmm(route.departure_time)
    for offset in range(8):
        day = now.date() + timedelta(days=offset)
        candidate = datetime.combine(day, departure_time, tzinfo=STOCKHOLM_TZ)
        if route.runs_on(Weekday.for_date(day)) and candidate >= now:
            return candidate
    raise ValidationFailed(f"Commute route {route.id} has no active days")


@router.get("/routes", response_model=List[CommuteRouteResponse])
@limiter.limit(RateLimits.JOURNEYS)
def list_commute_routes(
    request: Request,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    return [CommuteRouteResponse.from_model(r) for r in CommuteService(db).list_for_user(user.id)]


@router.post("/routes", response_model=CommuteRouteResponse, status_code=201)
@limiter.limit(RateLimits.JOURNEYS)
def create_commute_route(
    request: Request,
    body: CommuteRouteCreate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    fields = body.model_dump(exclude={"active_days"})
    route = CommuteService(db).create(user.id, Weekday.from_names(body.active_days), **fields)
    return CommuteRouteResponse.from_model(route)


@router.get("/routes/today", response_model=List[CommuteRouteResponse])
@limiter.limit(RateLimits.JOURNEYS)
def list_todays_routes(
    request: Request,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """Active commute routes running today (Stockholm time)."""
    routes = CommuteService(db).routes_for_day(now_local().date(), user_id=user.id)
    return [CommuteRouteResponse.from_model(r) for r in routes]


@router.put("/routes/{route_id}", response_model=CommuteRouteResponse)
@limiter.limit(RateLimits.JOURNEYS)
def update_commute_route(
    request: Request,
    route_id: str,
    body: CommuteRouteUpdate,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    active_days = Weekday.from_names(body.active_days) if body.active_days is not None else None
    fields = body.model_dump(exclude={"active_days"}, exclude_none=True)
    route = CommuteService(db).update(user.id, route_id, active_days=active_days, **fields)
    return CommuteRouteResponse.from_model(route)


@router.delete("/routes/{route_id}", status_code=204)
@limiter.limit(RateLimits.JOURNEYS)
def delete_commute_route(
    request: Request,
    route_id: str,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    CommuteService(db).delete(user.id, route_id)
    return Response(status_code=204)


@router.get("/routes/{route_id}/options", response_model=List[Dict[str, Any]])
@limiter.limit(RateLimits.JOURNEY_PLAN)
async def get_route_options(
    request: Request,
    route_id: str,
    limit: int = Query(5, ge=1, le=10),
    db: Session = Depends(get_db),
    client: TransitClient = Depends(get_transit_client),
    user: UserModel = Depends(get_current_user),
):
    """Itineraries for the route's next departure on one of its active days."""
    route = CommuteService(db).get(user.id, route_id)
    when = next_run(route, now_local())
    itineraries = await client.search_trips(
        route.origin_area_id, route.destination_area_id, when, num_trips=limit
    )
    return [it.to_dict() for it in itineraries]
