from .compensation_case import (
    CaseStatus,
    TicketType,
    DEFAULT_TICKET_TYPE,
    is_eligible,
    estimate_amount,
)

__all__ = ["CaseStatus", "TicketType", "DEFAULT_TICKET_TYPE", "is_eligible", "estimate_amount"]
