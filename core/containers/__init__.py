from .transit_container import TransitContainer, container

__all__ = ["TransitContainer", "container"]
