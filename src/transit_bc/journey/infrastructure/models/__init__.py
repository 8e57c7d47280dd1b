from .saved_route_model import SavedRouteModel
from .journey_model import JourneyModel

__all__ = ["SavedRouteModel", "JourneyModel"]
