from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Request

from core.rate_limiter import limiter, RateLimits
from core.security import get_current_user
from src.transit_bc.journey.infrastructure.services.transit_client import TransitClient
from src.transit_bc.stop.infrastructure.services.stop_service import StopService
from src.transit_bc.user.infrastructure.models import UserModel

from adapters.http.api.transit.schemas import DepartureResponse, StopSchema
from adapters.http.api.transit.utils.dependencies import get_stop_service, get_transit_client


router = APIRouter(prefix="/stops", tags=["Stops"])


@router.get("/search", response_model=List[StopSchema])
@limiter.limit(RateLimits.STOP_SEARCH)
async def search_stops(
    request: Request,
    q: str = Query(..., min_length=2, description="Start of the stop name"),
    limit: int = Query(10, ge=1, le=50),
    stops: StopService = Depends(get_stop_service),
    user: UserModel = Depends(get_current_user),
):
    """Search stops by name prefix.

    The local stop table is searched first; ResRobot is asked when it has
    no match.
    """
    results = await stops.search(q, limit=limit)
    return [StopSchema.from_entity(stop) for stop in results]


@router.get("/{stop_id}/departures", response_model=List[DepartureResponse])
@limiter.limit(RateLimits.DEPARTURES)
async def get_departures(
    request: Request,
    stop_id: str,
    when: Optional[datetime] = Query(None, description="Start of the board (default: now)"),
    limit: int = Query(20, ge=1, le=100),
    client: TransitClient = Depends(get_transit_client),
    user: UserModel = Depends(get_current_user),
):
    """Upcoming realtime departures from a stop, sorted by planned time."""
    departures = await client.get_departures(stop_id, when)
    return [DepartureResponse.from_entity(d) for d in departures[:limit]]
