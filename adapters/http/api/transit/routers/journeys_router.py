import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from core.database import get_db
from core.rate_limiter import limiter, RateLimits
from core.security import get_current_user
from src.transit_bc.compensation.infrastructure.services.compensation_evaluator import CompensationEvaluator
from src.transit_bc.journey.infrastructure.services.journey_assembler import CancellationToken, JourneyAssembler
from src.transit_bc.journey.infrastructure.services.journey_service import JourneyService
from src.transit_bc.journey.infrastructure.services.journey_tracker import JourneyTracker
from src.transit_bc.shared.domain.errors import ValidationFailed
from src.transit_bc.shared.domain.time_utils import now_local, resolve_departure
from src.transit_bc.user.infrastructure.models import UserModel

from adapters.http.api.transit.schemas import (
    CreateJourneyRequest,
    DraftResponse,
    InsertStopRequest,
    JourneyResponse,
    LegOptionResponse,
    OptimizeLegRequest,
    PlanRequest,
    PlanResponse,
    RemoveLegRequest,
    StopSchema,
    UpdateJourneyStatusRequest,
    ValidateLegRequest,
    ValidateLegResponse,
    ValidateLegsRequest,
)
from adapters.http.api.transit.utils.dependencies import get_assembler, get_evaluator, get_tracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/journeys", tags=["Journeys"])

# How often validate-legs checks whether the client went away
DISCONNECT_POLL_SECONDS = 0.5


async def _cancel_on_disconnect(request: Request, token: CancellationToken) -> None:
    while not token.cancelled:
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling leg validation")
            token.cancel()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


# =============================================================================
# Planning and drafts
# =============================================================================


@router.post("/plan", response_model=PlanResponse)
@limiter.limit(RateLimits.JOURNEY_PLAN)
async def plan_journey(
    request: Request,
    body: PlanRequest,
    assembler: JourneyAssembler = Depends(get_assembler),
    user: UserModel = Depends(get_current_user),
):
    """Plan a journey between two stops.

    When no direct connection exists, a two-leg draft via a hub stop is
    returned as ``suggestion`` with its first leg already validated.
    """
    try:
        when = resolve_departure(body.day, body.time)
    except ValueError as e:
        raise ValidationFailed(str(e))

    result = await assembler.plan(
        body.origin.to_entity(),
        body.destination.to_entity(),
        when,
        leave_at=not body.arrive_by,
    )
    return PlanResponse(
        best=result.best.to_dict() if result.best else None,
        alternatives=[it.to_dict() for it in result.alternatives],
        suggestion=DraftResponse.from_entity(result.suggestion) if result.suggestion else None,
    )


@router.post("/validate-leg", response_model=ValidateLegResponse)
@limiter.limit(RateLimits.LEG_VALIDATION)
async def validate_leg(
    request: Request,
    body: ValidateLegRequest,
    assembler: JourneyAssembler = Depends(get_assembler),
    user: UserModel = Depends(get_current_user),
):
    """Check that a trip departs between two stops soon after ``when``.

    Upstream failures come back as an invalid result with ``error_code``.
    """
    result = await assembler.validate_leg(
        body.from_stop.to_entity(),
        body.to_stop.to_entity(),
        body.when or now_local(),
    )
    return ValidateLegResponse(
        valid=result.valid,
        reason=result.reason,
        error_code=result.error_code,
        itinerary=result.itinerary.to_dict() if result.itinerary else None,
        suggested_stop=StopSchema.from_entity(result.suggested_stop) if result.suggested_stop else None,
    )


@router.post("/validate-legs", response_model=DraftResponse)
@limiter.limit(RateLimits.LEG_VALIDATION)
async def validate_legs(
    request: Request,
    body: ValidateLegsRequest,
    assembler: JourneyAssembler = Depends(get_assembler),
    user: UserModel = Depends(get_current_user),
):
    """Validate every leg of a draft concurrently.

    Each leg carries its own status; the stitched itinerary is returned
    once all legs are valid and connect in time.
    """
    draft = body.draft.to_entity()
    token = CancellationToken()
    watcher = asyncio.create_task(_cancel_on_disconnect(request, token))
    try:
        await assembler.validate_all(draft, body.when or now_local(), token)
    finally:
        watcher.cancel()

    itinerary = None
    if draft.is_valid:
        try:
            itinerary = assembler.assemble(draft)
        except ValidationFailed as e:
            logger.info(f"Draft legs valid but not connectable: {e.message}")
    return DraftResponse.from_entity(draft, itinerary)


@router.post("/draft/insert-stop", response_model=DraftResponse)
@limiter.limit(RateLimits.JOURNEYS)
async def insert_stop(
    request: Request,
    body: InsertStopRequest,
    user: UserModel = Depends(get_current_user),
):
    """Split a leg by inserting an intermediate stop. Both new legs are pending."""
    draft = body.draft.to_entity()
    draft.insert_stop(body.leg_id, body.stop.to_entity())
    return DraftResponse.from_entity(draft)


@router.post("/draft/remove-leg", response_model=DraftResponse)
@limiter.limit(RateLimits.JOURNEYS)
async def remove_leg(
    request: Request,
    body: RemoveLegRequest,
    user: UserModel = Depends(get_current_user),
):
    """Remove the intermediate stop a leg introduced, merging its neighbours."""
    draft = body.draft.to_entity()
    try:
        draft.remove_leg(body.leg_id)
    except ValueError as e:
        raise ValidationFailed(str(e), leg_ids=[body.leg_id])
    return DraftResponse.from_entity(draft)


@router.post("/optimize-leg", response_model=List[LegOptionResponse])
@limiter.limit(RateLimits.LEG_OPTIMIZE)
async def optimize_leg(
    request: Request,
    body: OptimizeLegRequest,
    assembler: JourneyAssembler = Depends(get_assembler),
    user: UserModel = Depends(get_current_user),
):
    """Departure options for a leg across the day (06:00-22:00)."""
    options = await assembler.optimize_leg(body.from_id, body.to_id, body.day)
    return [LegOptionResponse.from_entity(option) for option in options]


# =============================================================================
# Tracked journeys
# =============================================================================


@router.get("", response_model=List[JourneyResponse])
@limiter.limit(RateLimits.JOURNEYS)
def list_journeys(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """The user's journeys, most recent departure first."""
    journeys = JourneyService(db).list_for_user(user.id, limit=limit)
    return [JourneyResponse.from_model(j) for j in journeys]


@router.post("", response_model=JourneyResponse, status_code=201)
@limiter.limit(RateLimits.JOURNEYS)
def create_journey(
    request: Request,
    body: CreateJourneyRequest,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """Promote a planned or assembled itinerary to a tracked journey."""
    journey = JourneyService(db).create_from_itinerary(
        user.id,
        body.to_itinerary(),
        saved_route_id=body.saved_route_id,
        commute_route_id=body.commute_route_id,
    )
    return JourneyResponse.from_model(journey)


@router.get("/active", response_model=List[JourneyResponse])
@limiter.limit(RateLimits.JOURNEYS)
def list_active_journeys(
    request: Request,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    """Planned and in-progress journeys, soonest first."""
    journeys = JourneyService(db).active_for_user(user.id)
    return [JourneyResponse.from_model(j) for j in journeys]


@router.get("/{journey_id}", response_model=JourneyResponse)
@limiter.limit(RateLimits.JOURNEYS)
def get_journey(
    request: Request,
    journey_id: str,
    db: Session = Depends(get_db),
    user: UserModel = Depends(get_current_user),
):
    return JourneyResponse.from_model(JourneyService(db).get(user.id, journey_id))


@router.patch("/{journey_id}/status", response_model=JourneyResponse)
@limiter.limit(RateLimits.JOURNEYS)
def update_journey_status(
    request: Request,
    journey_id: str,
    body: UpdateJourneyStatusRequest,
    db: Session = Depends(get_db),
    evaluator: CompensationEvaluator = Depends(get_evaluator),
    user: UserModel = Depends(get_current_user),
):
    """Move a journey along planned -> active -> completed | cancelled.

    Completing a journey checks it for compensation straight away.
    """
    journey = JourneyService(db, evaluator=evaluator).update_status(user.id, journey_id, body.status)
    return JourneyResponse.from_model(journey)


@router.post("/{journey_id}/refresh", response_model=JourneyResponse)
@limiter.limit(RateLimits.DEPARTURES)
async def refresh_journey(
    request: Request,
    journey_id: str,
    db: Session = Depends(get_db),
    tracker: JourneyTracker = Depends(get_tracker),
    user: UserModel = Depends(get_current_user),
):
    """Update a journey's expected times and status from realtime departures."""
    journey = JourneyService(db).get(user.id, journey_id)
    journey = await tracker.refresh(journey)
    return JourneyResponse.from_model(journey)
