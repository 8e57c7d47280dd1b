from decimal import Decimal, ROUND_HALF_UP
from enum import Enum


class CaseStatus(Enum):
    DETECTED = "detected"
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PROCESSING = "processing"
    APPROVED = "approved"
    REJECTED = "rejected"

    def can_transition_to(self, target: "CaseStatus") -> bool:
        return target in _CASE_TRANSITIONS[self]


_CASE_TRANSITIONS = {
    CaseStatus.DETECTED: {CaseStatus.DRAFT, CaseStatus.SUBMITTED},
    CaseStatus.DRAFT: {CaseStatus.SUBMITTED},
    CaseStatus.SUBMITTED: {CaseStatus.PROCESSING},
    CaseStatus.PROCESSING: {CaseStatus.APPROVED, CaseStatus.REJECTED},
    CaseStatus.APPROVED: set(),
    CaseStatus.REJECTED: set(),
}


class TicketType(Enum):
    SINGLE = "single"
    SEVEN_DAY = "7-day"
    THIRTY_DAY = "30-day"
    ANNUAL = "annual"

    @property
    def multiplier(self) -> Decimal:
        return _TICKET_MULTIPLIERS[self]


_TICKET_MULTIPLIERS = {
    TicketType.SINGLE: Decimal("0.5"),
    TicketType.SEVEN_DAY: Decimal("0.8"),
    TicketType.THIRTY_DAY: Decimal("1.0"),
    TicketType.ANNUAL: Decimal("1.2"),
}

# Detection has no ticket information; assume a period pass
DEFAULT_TICKET_TYPE = TicketType.THIRTY_DAY


def is_eligible(delay_minutes: int, threshold_minutes: int) -> bool:
    return delay_minutes >= threshold_minutes


def estimate_amount(delay_minutes: int, rate_per_minute, ticket_type: TicketType = DEFAULT_TICKET_TYPE) -> Decimal:
    """Delay times rate times ticket multiplier, rounded half-up to whole units."""
    raw = Decimal(delay_minutes) * Decimal(str(rate_per_minute)) * ticket_type.multiplier
    return raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
