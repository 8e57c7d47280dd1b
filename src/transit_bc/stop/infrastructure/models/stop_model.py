from sqlalchemy import Column, Float, ForeignKey, Index, String, Enum as SQLEnum
from sqlalchemy.orm import relationship
from core.base import Base
from src.transit_bc.stop.domain.entities import Stop, StopType


class StopAreaModel(Base):
    """SQLAlchemy model for stop areas (stations, terminals).

    Reference data, loaded by scripts/load_stations.py.
    """
    __tablename__ = "stop_areas"

    id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)
    lat = Column(Float, nullable=True)
    lon = Column(Float, nullable=True)
    type = Column(SQLEnum(StopType), nullable=False, default=StopType.OTHER)

    points = relationship("StopPointModel", back_populates="area", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_stop_areas_name", "name"),
    )

    def __repr__(self):
        return f"<StopArea {self.id}: {self.name}>"

    def to_entity(self) -> Stop:
        return Stop(id=self.id, name=self.name, lat=self.lat, lon=self.lon, type=self.type)


class StopPointModel(Base):
    """A platform or track within a stop area."""
    __tablename__ = "stop_points"

    id = Column(String(50), primary_key=True)
    area_id = Column(String(50), ForeignKey("stop_areas.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    designation = Column(String(20), nullable=True)

    area = relationship("StopAreaModel", back_populates="points")

    def __repr__(self):
        return f"<StopPoint {self.id}: {self.name} {self.designation or ''}>"
