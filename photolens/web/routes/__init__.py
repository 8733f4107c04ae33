"""Route blueprints for the photolens web API."""

from .api import api_bp

__all__ = ["api_bp"]
