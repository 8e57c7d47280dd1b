from sqlalchemy import Column, String, Enum as SQLEnum
from core.base import Base
from src.transit_bc.stop.domain.entities import TransportMode, DEFAULT_LINE_COLOR


class LineModel(Base):
    """SQLAlchemy model for transit lines."""
    __tablename__ = "lines"

    id = Column(String(50), primary_key=True)
    number = Column(String(20), nullable=False, index=True)
    mode = Column(SQLEnum(TransportMode), nullable=False)
    name = Column(String(255), nullable=False)
    operator_id = Column(String(50), nullable=True)
    color = Column(String(7), nullable=False, default=DEFAULT_LINE_COLOR)

    def __repr__(self):
        return f"<Line {self.mode.value if self.mode else '?'} {self.number}>"
