from .commute_route import Weekday

__all__ = ["Weekday"]
