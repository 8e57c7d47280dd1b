import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from src.transit_bc.notification.infrastructure.models import ServiceAlertModel
from src.transit_bc.shared.domain.time_utils import to_db, utcnow

logger = logging.getLogger(__name__)


class ServiceAlertService:
    """Operator service alerts (disruptions, maintenance)."""

    def __init__(self, db: Session):
        self.db = db

    def list_current(self, line: Optional[str] = None, stop_id: Optional[str] = None) -> List[ServiceAlertModel]:
        """Active alerts whose time window contains now, optionally filtered."""
        now = utcnow()
        alerts = self.db.query(ServiceAlertModel).filter(
            ServiceAlertModel.is_active.is_(True),
            or_(ServiceAlertModel.start_time.is_(None), ServiceAlertModel.start_time <= now),
            or_(ServiceAlertModel.end_time.is_(None), ServiceAlertModel.end_time >= now),
        ).order_by(ServiceAlertModel.created_at.desc()).all()

        # Affected lines/stops are JSON lists, filtered here for portability
        if line:
            alerts = [a for a in alerts if line in (a.affected_lines or [])]
        if stop_id:
            alerts = [a for a in alerts if stop_id in (a.affected_stops or [])]
        return alerts

    def upsert(self, **fields) -> ServiceAlertModel:
        """Create an alert, or update the one with the same external id."""
        for key in ("start_time", "end_time"):
            if fields.get(key) is not None:
                fields[key] = to_db(fields[key])

        alert = None
        if fields.get("external_id"):
            alert = self.db.query(ServiceAlertModel).filter(
                ServiceAlertModel.external_id == fields["external_id"]
            ).first()
        if alert is None:
            alert = ServiceAlertModel()
            self.db.add(alert)
        for key, value in fields.items():
            setattr(alert, key, value)
        self.db.commit()
        self.db.refresh(alert)
        logger.info(f"Service alert {alert.id} saved ({alert.severity.value}): {alert.title}")
        return alert
