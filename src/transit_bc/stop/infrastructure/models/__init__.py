from .stop_model import StopAreaModel, StopPointModel
from .line_model import LineModel

__all__ = ["StopAreaModel", "StopPointModel", "LineModel"]
