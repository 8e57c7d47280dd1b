from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TransportMode(Enum):
    BUS = "BUS"
    METRO = "METRO"
    TRAIN = "TRAIN"
    TRAM = "TRAM"
    FERRY = "FERRY"

    @classmethod
    def from_resrobot_category(cls, cat_code: Optional[str]) -> "TransportMode":
        """Map a ResRobot product ``catCode`` to a transport mode."""
        return _RESROBOT_CATEGORIES.get(str(cat_code or ""), cls.BUS)

    @classmethod
    def from_trafiklab(cls, value: Optional[str]) -> "TransportMode":
        try:
            return cls((value or "").upper())
        except ValueError:
            return cls.BUS


# ResRobot product categories: 1 high-speed, 2 regional, 3 express bus,
# 4 commuter train, 5 metro, 6 tram, 7 bus, 8 ferry
_RESROBOT_CATEGORIES = {
    "1": TransportMode.TRAIN,
    "2": TransportMode.TRAIN,
    "3": TransportMode.BUS,
    "4": TransportMode.TRAIN,
    "5": TransportMode.METRO,
    "6": TransportMode.TRAM,
    "7": TransportMode.BUS,
    "8": TransportMode.FERRY,
}


DEFAULT_LINE_COLOR = "#666666"


@dataclass
class Line:
    """A public transport line (e.g. metro 11, commuter train 40)."""

    id: str
    number: str
    mode: TransportMode
    name: str
    operator_id: Optional[str] = None
    color: str = DEFAULT_LINE_COLOR

    @classmethod
    def from_resrobot_product(cls, product: dict) -> "Line":
        number = str(product.get("displayNumber") or product.get("num") or product.get("line") or "")
        return cls(
            id=str(product.get("internalName") or product.get("name") or number),
            number=number,
            mode=TransportMode.from_resrobot_category(product.get("catCode")),
            name=(product.get("name") or number).strip(),
            operator_id=product.get("operatorCode") or product.get("operator"),
        )

    @classmethod
    def from_trafiklab_route(cls, route: dict, agency: Optional[dict] = None) -> "Line":
        designation = str(route.get("designation") or "")
        mode = TransportMode.from_trafiklab(route.get("transport_mode"))
        return cls(
            id=str(route.get("id") or designation),
            number=designation,
            mode=mode,
            name=route.get("name") or f"{mode.value.title()} {designation}".strip(),
            operator_id=(agency or {}).get("id"),
        )
