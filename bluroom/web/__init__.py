"""
Bluroom Web Layer.

This package provides the REST API layer for Bluroom.

Components:
- WebServer: FastAPI application with all routes
"""

from bluroom.web.server import WebServer

__all__ = ["WebServer"]
