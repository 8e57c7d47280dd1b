import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import settings
from src.transit_bc.commute.infrastructure.models import CommuteRouteModel
from src.transit_bc.compensation.domain.entities import (
    DEFAULT_TICKET_TYPE,
    CaseStatus,
    TicketType,
    estimate_amount,
    is_eligible,
)
from src.transit_bc.compensation.infrastructure.models import CompensationCaseModel
from src.transit_bc.compensation.infrastructure.services.claim_encryption import ClaimEncryption
from src.transit_bc.journey.domain.entities import JourneyStatus
from src.transit_bc.journey.infrastructure.models import JourneyModel
from src.transit_bc.notification.domain.entities import NotificationSeverity, NotificationType
from src.transit_bc.notification.infrastructure.services.notification_service import NotificationService
from src.transit_bc.shared.domain.errors import InvalidStatusTransition, NotFound
from src.transit_bc.shared.domain.time_utils import utcnow, whole_minutes

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    eligible: bool
    delay_minutes: int
    threshold_minutes: int
    case: Optional[CompensationCaseModel] = None
    created: bool = False


class CompensationEvaluator:
    """Decides delay-compensation eligibility and manages the case lifecycle.

    A journey is eligible when its delay reaches the threshold of the
    commute route it belongs to (or the global default). Each journey gets
    at most one case; re-evaluating returns the existing case untouched.
    """

    def __init__(
        self,
        db: Session,
        notifications: Optional[NotificationService] = None,
        threshold_minutes: Optional[int] = None,
        rate_per_minute: Optional[float] = None,
        encryption: Optional[ClaimEncryption] = None,
    ):
        self.db = db
        self.notifications = notifications
        self.default_threshold = (
            settings.COMPENSATION_THRESHOLD_MINUTES if threshold_minutes is None else threshold_minutes
        )
        self.rate_per_minute = settings.COMPENSATION_RATE_PER_MINUTE if rate_per_minute is None else rate_per_minute
        self._encryption = encryption

    @property
    def encryption(self) -> ClaimEncryption:
        if self._encryption is None:
            self._encryption = ClaimEncryption()
        return self._encryption

    def threshold_for(self, journey: JourneyModel) -> int:
        if journey.commute_route_id:
            route = self.db.get(CommuteRouteModel, journey.commute_route_id)
            if route is not None and route.delay_threshold_minutes is not None:
                return route.delay_threshold_minutes
        return self.default_threshold

    @staticmethod
    def observed_delay(journey: JourneyModel) -> int:
        """Largest of the tracked delay and the expected-arrival slip."""
        delay = journey.delay_minutes or 0
        if journey.expected_arrival and journey.planned_arrival:
            delay = max(delay, whole_minutes(journey.expected_arrival - journey.planned_arrival))
        return max(0, delay)

    def _find_case(self, journey_id: str) -> Optional[CompensationCaseModel]:
        return self.db.query(CompensationCaseModel).filter(
            CompensationCaseModel.journey_id == journey_id
        ).first()

    def evaluate(self, journey: JourneyModel) -> EvaluationResult:
        """Evaluate one journey, creating its case on first eligibility."""
        delay = self.observed_delay(journey)
        threshold = self.threshold_for(journey)
        if not is_eligible(delay, threshold):
            return EvaluationResult(eligible=False, delay_minutes=delay, threshold_minutes=threshold)

        existing = self._find_case(journey.id)
        if existing is not None:
            return EvaluationResult(True, delay, threshold, case=existing, created=False)

        case = CompensationCaseModel(
            user_id=journey.user_id,
            journey_id=journey.id,
            delay_minutes=delay,
            eligibility_threshold=threshold,
            status=CaseStatus.DETECTED,
            ticket_type=DEFAULT_TICKET_TYPE.value,
            estimated_amount=estimate_amount(delay, self.rate_per_minute),
            evidence_ids=[],
        )
        try:
            with self.db.begin_nested():
                self.db.add(case)
        except IntegrityError:
            # Another worker created the case first
            logger.info(f"Compensation case for journey {journey.id} already created concurrently")
            return EvaluationResult(True, delay, threshold, case=self._find_case(journey.id), created=False)

        self.db.commit()
        self.db.refresh(case)
        logger.info(
            f"Compensation case {case.id} detected for journey {journey.id}: "
            f"{delay} min delay, estimated {case.estimated_amount} SEK"
        )
        self._notify_detected(case)
        return EvaluationResult(True, delay, threshold, case=case, created=True)

    def _notify_detected(self, case: CompensationCaseModel) -> None:
        if self.notifications is None:
            return
        self.notifications.emit(
            case.user_id,
            title="Compensation Available",
            message=(
                f"Your journey was delayed by {case.delay_minutes} minutes. "
                f"You may be eligible for {case.estimated_amount:.0f} SEK compensation."
            ),
            type=NotificationType.COMPENSATION,
            severity=NotificationSeverity.MEDIUM,
            journey_id=case.journey_id,
        )

    def evaluate_journey_id(self, user_id: str, journey_id: str) -> EvaluationResult:
        journey = self.db.query(JourneyModel).filter(
            JourneyModel.id == journey_id,
            JourneyModel.user_id == user_id,
        ).first()
        if journey is None:
            raise NotFound(f"Journey {journey_id} not found")
        return self.evaluate(journey)

    def process_automatic_detection(self, user_id: str, limit: int = 10) -> List[CompensationCaseModel]:
        """Evaluate a user's most recent completed journeys; returns new cases."""
        journeys = self.db.query(JourneyModel).filter(
            JourneyModel.user_id == user_id,
            JourneyModel.status == JourneyStatus.COMPLETED,
        ).order_by(JourneyModel.planned_departure.desc()).limit(limit).all()

        created = []
        for journey in journeys:
            result = self.evaluate(journey)
            if result.created:
                created.append(result.case)
        return created

    def detect_recent(self, days: int = 7) -> List[CompensationCaseModel]:
        """Evaluate completed journeys of the last ``days`` that have no case yet."""
        since = utcnow() - timedelta(days=days)
        journeys = (
            self.db.query(JourneyModel)
            .outerjoin(CompensationCaseModel, CompensationCaseModel.journey_id == JourneyModel.id)
            .filter(
                JourneyModel.status == JourneyStatus.COMPLETED,
                JourneyModel.planned_departure >= since,
                CompensationCaseModel.id.is_(None),
            )
            .all()
        )
        created = []
        for journey in journeys:
            result = self.evaluate(journey)
            if result.created:
                created.append(result.case)
        return created

    # ------------------------------------------------------------------
    # Case lifecycle
    # ------------------------------------------------------------------

    def list_cases(self, user_id: str) -> List[CompensationCaseModel]:
        return self.db.query(CompensationCaseModel).filter(
            CompensationCaseModel.user_id == user_id
        ).order_by(CompensationCaseModel.created_at.desc()).all()

    def get_case(self, case_id: str, user_id: Optional[str] = None) -> CompensationCaseModel:
        query = self.db.query(CompensationCaseModel).filter(CompensationCaseModel.id == case_id)
        if user_id is not None:
            query = query.filter(CompensationCaseModel.user_id == user_id)
        case = query.first()
        if case is None:
            raise NotFound(f"Compensation case {case_id} not found")
        return case

    def _transition(self, case: CompensationCaseModel, target: CaseStatus) -> None:
        if not case.status.can_transition_to(target):
            raise InvalidStatusTransition(
                f"Cannot move compensation case from {case.status.value} to {target.value}"
            )
        case.status = target

    def submit_claim(
        self,
        user_id: str,
        case_id: str,
        claimant: dict,
        ticket_type: TicketType,
        evidence_ids: Optional[List[str]] = None,
    ) -> CompensationCaseModel:
        """Attach encrypted claimant data and submit the case."""
        case = self.get_case(case_id, user_id)
        self._transition(case, CaseStatus.SUBMITTED)

        case.encrypted_personal_data = self.encryption.encrypt_json({**claimant, "ticket_type": ticket_type.value})
        case.evidence_ids = list(evidence_ids or [])
        case.ticket_type = ticket_type.value
        case.actual_amount = estimate_amount(case.delay_minutes, self.rate_per_minute, ticket_type)
        case.submitted_at = utcnow()
        self.db.commit()
        self.db.refresh(case)
        logger.info(f"Compensation case {case.id} submitted ({ticket_type.value}, {case.actual_amount} SEK)")
        return case

    def update_status(
        self,
        case_id: str,
        target: CaseStatus,
        actual_amount: Optional[Decimal] = None,
    ) -> CompensationCaseModel:
        """Operator-driven transition (draft, processing, approved, rejected)."""
        case = self.get_case(case_id)
        self._transition(case, target)
        if target in (CaseStatus.APPROVED, CaseStatus.REJECTED):
            case.processed_at = utcnow()
        if actual_amount is not None:
            case.actual_amount = actual_amount
        self.db.commit()
        self.db.refresh(case)
        logger.info(f"Compensation case {case.id} moved to {target.value}")

        if self.notifications is not None and target in (CaseStatus.APPROVED, CaseStatus.REJECTED):
            outcome = "approved" if target == CaseStatus.APPROVED else "rejected"
            self.notifications.emit(
                case.user_id,
                title=f"Compensation {outcome.title()}",
                message=f"Your compensation claim for a {case.delay_minutes} minute delay was {outcome}.",
                type=NotificationType.COMPENSATION,
                severity=NotificationSeverity.LOW,
                journey_id=case.journey_id,
            )
        return case

    def personal_data(self, case: CompensationCaseModel) -> Optional[dict]:
        if not case.encrypted_personal_data:
            return None
        return self.encryption.decrypt_json(case.encrypted_personal_data)
