"""Web API module for photolens.

This module provides a local HTTP interface for uploading or capturing an
image, following its processing, and downloading a metadata-free copy.
"""

from .app import create_app

__all__ = ["create_app"]
