import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from src.transit_bc.commute.domain.entities import Weekday
from src.transit_bc.commute.infrastructure.models import CommuteRouteModel
from src.transit_bc.shared.domain.errors import NotFound
from src.transit_bc.shared.domain.time_utils import now_local, parse_hhmm

logger = logging.getLogger(__name__)


class CommuteService:
    """CRUD for commute routes and the per-day view of them."""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str) -> List[CommuteRouteModel]:
        return self.db.query(CommuteRouteModel).filter(
            CommuteRouteModel.user_id == user_id,
        ).order_by(CommuteRouteModel.departure_time).all()

    def get(self, user_id: str, route_id: str) -> CommuteRouteModel:
        route = self.db.query(CommuteRouteModel).filter(
            CommuteRouteModel.id == route_id,
            CommuteRouteModel.user_id == user_id,
        ).first()
        if route is None:
            raise NotFound(f"Commute route {route_id} not found")
        return route

    def create(self, user_id: str, active_days: Weekday, **fields) -> CommuteRouteModel:
        parse_hhmm(fields["departure_time"])
        route = CommuteRouteModel(user_id=user_id, active_days=int(active_days), **fields)
        self.db.add(route)
        self.db.commit()
        self.db.refresh(route)
        logger.info(f"Commute route {route.id} created for user {user_id} at {route.departure_time}")
        return route

    def update(
        self,
        user_id: str,
        route_id: str,
        active_days: Optional[Weekday] = None,
        **fields,
    ) -> CommuteRouteModel:
        route = self.get(user_id, route_id)
        if "departure_time" in fields and fields["departure_time"] is not None:
            parse_hhmm(fields["departure_time"])
        for key, value in fields.items():
            if value is not None:
                setattr(route, key, value)
        if active_days is not None:
            route.active_days = int(active_days)
        self.db.commit()
        self.db.refresh(route)
        return route

    def delete(self, user_id: str, route_id: str) -> None:
        route = self.get(user_id, route_id)
        self.db.delete(route)
        self.db.commit()

    def routes_for_day(self, day: Optional[date] = None, user_id: Optional[str] = None) -> List[CommuteRouteModel]:
        """Active routes whose weekday set contains ``day``."""
        day = day or now_local().date()
        flag = int(Weekday.for_date(day))
        query = self.db.query(CommuteRouteModel).filter(
            CommuteRouteModel.is_active.is_(True),
            CommuteRouteModel.active_days.op("&")(flag) != 0,
        )
        if user_id is not None:
            query = query.filter(CommuteRouteModel.user_id == user_id)
        return query.order_by(CommuteRouteModel.departure_time).all()
