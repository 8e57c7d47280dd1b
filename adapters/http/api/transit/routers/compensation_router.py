from typing import List, Optional
from fastapi import APIRouter, Body, Depends, Header, Request

from core.rate_limiter import limiter, RateLimits
from core.security import get_current_user, require_admin
from src.transit_bc.compensation.domain.entities import CaseStatus
from src.transit_bc.compensation.infrastructure.services.compensation_evaluator import CompensationEvaluator
from src.transit_bc.user.infrastructure.models import UserModel

from adapters.http.api.transit.schemas import (
    CompensationCaseResponse,
    DetectRequest,
    DetectResponse,
    EvaluationResponse,
    SubmitClaimRequest,
    UpdateCaseStatusRequest,
)
from adapters.http.api.transit.utils.dependencies import get_evaluator


router = APIRouter(prefix="/compensation", tags=["Compensation"])


@router.get("/cases", response_model=List[CompensationCaseResponse])
@limiter.limit(RateLimits.COMPENSATION)
def list_cases(
    request: Request,
    evaluator: CompensationEvaluator = Depends(get_evaluator),
    user: UserModel = Depends(get_current_user),
):
    """The user's compensation cases, newest first."""
    return [CompensationCaseResponse.from_model(case) for case in evaluator.list_cases(user.id)]


@router.post("/cases/detect", response_model=DetectResponse)
@limiter.limit(RateLimits.COMPENSATION)
def detect_cases(
    request: Request,
    body: Optional[DetectRequest] = Body(None),
    evaluator: CompensationEvaluator = Depends(get_evaluator),
    user: UserModel = Depends(get_current_user),
):
    """Evaluate journeys for compensation eligibility.

    With ``journey_id`` only that journey is evaluated and the evaluation
    details are returned; otherwise the user's recent completed journeys
    are. Journeys that already have a case keep it unchanged.
    """
    if body is not None and body.journey_id:
        result = evaluator.evaluate_journey_id(user.id, body.journey_id)
        case = CompensationCaseResponse.from_model(result.case) if result.case else None
        return DetectResponse(
            created=[case] if result.created else [],
            evaluation=EvaluationResponse(
                journey_id=body.journey_id,
                eligible=result.eligible,
                delay_minutes=result.delay_minutes,
                threshold_minutes=result.threshold_minutes,
                case=case,
            ),
        )

    created = evaluator.process_automatic_detection(user.id)
    return DetectResponse(created=[CompensationCaseResponse.from_model(case) for case in created])


@router.post("/cases/{case_id}/submit", response_model=CompensationCaseResponse)
@limiter.limit(RateLimits.COMPENSATION)
def submit_claim(
    request: Request,
    case_id: str,
    body: SubmitClaimRequest,
    evaluator: CompensationEvaluator = Depends(get_evaluator),
    user: UserModel = Depends(get_current_user),
):
    """Submit a claim; claimant data is stored encrypted."""
    case = evaluator.submit_claim(
        user.id,
        case_id,
        claimant=body.claimant.model_dump(),
        ticket_type=body.ticket_type,
        evidence_ids=body.evidence_ids,
    )
    return CompensationCaseResponse.from_model(case)


@router.patch("/cases/{case_id}/status", response_model=CompensationCaseResponse)
@limiter.limit(RateLimits.COMPENSATION)
def update_case_status(
    request: Request,
    case_id: str,
    body: UpdateCaseStatusRequest,
    x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token"),
    evaluator: CompensationEvaluator = Depends(get_evaluator),
    user: UserModel = Depends(get_current_user),
):
    """Change a case's status.

    Owners may move a detected case to draft; processing decisions
    (processing, approved, rejected) also require X-Admin-Token.
    """
    evaluator.get_case(case_id, user.id)
    if body.status != CaseStatus.DRAFT:
        require_admin(x_admin_token)
    case = evaluator.update_status(case_id, body.status, actual_amount=body.actual_amount)
    return CompensationCaseResponse.from_model(case)
