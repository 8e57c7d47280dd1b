from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StopType(Enum):
    """Kind of stop area."""
    METROSTN = "METROSTN"
    RAILWSTN = "RAILWSTN"
    BUSTERM = "BUSTERM"
    TRAMSTN = "TRAMSTN"
    FERRY = "FERRY"
    OTHER = "OTHER"

    @classmethod
    def from_name(cls, name: str) -> "StopType":
        """Guess the stop type from its display name.

        Providers do not report a stop category on location lookups, so
        the name is the only signal available.
        """
        lower = name.lower()
        if "central" in lower or ("station" in lower and "busstation" not in lower):
            return cls.RAILWSTN
        if "terminal" in lower or "busstation" in lower:
            return cls.BUSTERM
        if "t-bana" in lower or lower.startswith("t-"):
            return cls.METROSTN
        if "brygga" in lower or "färjeläge" in lower:
            return cls.FERRY
        if "spårv" in lower:
            return cls.TRAMSTN
        return cls.OTHER


@dataclass
class Stop:
    """A named transit stop or station area."""

    id: str
    name: str
    lat: Optional[float] = None
    lon: Optional[float] = None
    type: StopType = StopType.OTHER

    @classmethod
    def from_resrobot_json(cls, data: dict) -> "Stop":
        """Create Stop from a ResRobot ``StopLocation`` or leg endpoint."""
        name = data.get("name", "")
        stop_id = str(data.get("extId") or data.get("id") or "")
        lat = data.get("lat")
        lon = data.get("lon")
        return cls(
            id=stop_id,
            name=name,
            lat=float(lat) if lat is not None else None,
            lon=float(lon) if lon is not None else None,
            type=StopType.from_name(name),
        )

    @property
    def dedup_key(self) -> str:
        """Key used to collapse the same stop seen on several trips."""
        return f"{self.name}_{self.lat}_{self.lon}"
