from .stop import Stop, StopType
from .line import Line, TransportMode, DEFAULT_LINE_COLOR

__all__ = ["Stop", "StopType", "Line", "TransportMode", "DEFAULT_LINE_COLOR"]
