"""Services for the photolens web API."""

from .session import ImageSessionService

__all__ = ["ImageSessionService"]
