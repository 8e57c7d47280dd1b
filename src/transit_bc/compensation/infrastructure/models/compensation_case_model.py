import uuid
from sqlalchemy import (
    Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text, UniqueConstraint, Enum as SQLEnum,
)
from core.base import Base
from src.transit_bc.compensation.domain.entities import CaseStatus
from src.transit_bc.shared.domain.time_utils import utcnow


class CompensationCaseModel(Base):
    """A delay-compensation claim for one journey.

    ``journey_id`` is unique: a journey yields at most one case.
    """
    __tablename__ = "compensation_cases"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(100), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    journey_id = Column(String(36), ForeignKey("journeys.id", ondelete="CASCADE"), nullable=False)
    delay_minutes = Column(Integer, nullable=False)
    eligibility_threshold = Column(Integer, nullable=False, default=20)
    status = Column(SQLEnum(CaseStatus), nullable=False, default=CaseStatus.DETECTED)
    ticket_type = Column(String(20), nullable=True)
    estimated_amount = Column(Numeric(10, 2), nullable=True)
    actual_amount = Column(Numeric(10, 2), nullable=True)
    encrypted_personal_data = Column(Text, nullable=True)
    evidence_ids = Column(JSON, nullable=False, default=list)
    submitted_at = Column(DateTime, nullable=True)
    processed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("journey_id", name="uq_compensation_cases_journey"),
    )

    def __repr__(self):
        return f"<CompensationCase {self.id}: journey={self.journey_id} {self.status}>"
