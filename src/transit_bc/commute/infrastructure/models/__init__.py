from .commute_route_model import CommuteRouteModel

__all__ = ["CommuteRouteModel"]
