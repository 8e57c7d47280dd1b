import logging
from typing import List

from sqlalchemy.orm import Session

from src.transit_bc.journey.infrastructure.services.transit_client import TransitClient
from src.transit_bc.stop.domain.entities import Stop
from src.transit_bc.stop.infrastructure.models import StopAreaModel

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2

LIKE_ESCAPE = "\\"


def _escape_like(value: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class StopService:
    """Stop lookup over the local stop table, falling back to ResRobot."""

    def __init__(self, db: Session, client: TransitClient):
        self.db = db
        self.client = client

    async def search(self, query: str, limit: int = 10) -> List[Stop]:
        """Stops whose name starts with ``query`` (case-insensitive)."""
        query = query.strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        rows = self.db.query(StopAreaModel).filter(
            StopAreaModel.name.ilike(f"{_escape_like(query)}%", escape=LIKE_ESCAPE)
        ).order_by(StopAreaModel.name).limit(limit).all()
        if rows:
            return [row.to_entity() for row in rows]

        logger.info(f"No local stop matches '{query}', asking ResRobot")
        return await self.client.search_locations(query, max_results=limit)

    def get_stop(self, stop_id: str) -> Stop:
        """Known stop by id; unknown ids become a bare Stop named by id."""
        row = self.db.get(StopAreaModel, stop_id)
        if row is not None:
            return row.to_entity()
        return Stop(id=stop_id, name=stop_id)
