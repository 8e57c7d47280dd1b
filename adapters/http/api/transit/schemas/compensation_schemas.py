"""Compensation case schemas."""

from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel

from src.transit_bc.compensation.domain.entities import DEFAULT_TICKET_TYPE, CaseStatus, TicketType
from src.transit_bc.compensation.infrastructure.models import CompensationCaseModel
from src.transit_bc.shared.domain.time_utils import from_db


class CompensationCaseResponse(BaseModel):
    id: str
    journey_id: str
    delay_minutes: int
    eligibility_threshold: int
    status: str  # detected, draft, submitted, processing, approved, rejected
    ticket_type: Optional[str]
    estimated_amount: Optional[Decimal]
    actual_amount: Optional[Decimal]
    evidence_ids: List[str]
    submitted_at: Optional[datetime]
    processed_at: Optional[datetime]
    created_at: Optional[datetime]

    @classmethod
    def from_model(cls, case: CompensationCaseModel) -> "CompensationCaseResponse":
        return cls(
            id=case.id,
            journey_id=case.journey_id,
            delay_minutes=case.delay_minutes,
            eligibility_threshold=case.eligibility_threshold,
            status=case.status.value,
            ticket_type=case.ticket_type,
            estimated_amount=case.estimated_amount,
            actual_amount=case.actual_amount,
            evidence_ids=case.evidence_ids or [],
            submitted_at=from_db(case.submitted_at),
            processed_at=from_db(case.processed_at),
            created_at=from_db(case.created_at),
        )


class DetectRequest(BaseModel):
    """Evaluate one journey, or the user's recent completed journeys when omitted."""
    journey_id: Optional[str] = None


class EvaluationResponse(BaseModel):
    journey_id: str
    eligible: bool
    delay_minutes: int
    threshold_minutes: int
    case: Optional[CompensationCaseResponse] = None


class DetectResponse(BaseModel):
    created: List[CompensationCaseResponse]
    evaluation: Optional[EvaluationResponse] = None


class ClaimantData(BaseModel):
    """Personal data attached to a claim; stored encrypted."""
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    personal_number: Optional[str] = None
    ticket_number: Optional[str] = None
    bank_account: Optional[str] = None


class SubmitClaimRequest(BaseModel):
    claimant: ClaimantData
    ticket_type: TicketType = DEFAULT_TICKET_TYPE
    evidence_ids: List[str] = []


class UpdateCaseStatusRequest(BaseModel):
    status: CaseStatus
    actual_amount: Optional[Decimal] = None
