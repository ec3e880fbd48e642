"""Services that run the engine over stored user data."""

from .projection_service import ProjectionService, ScenarioProjection

__all__ = ["ProjectionService", "ScenarioProjection"]
