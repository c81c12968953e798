"""
Web Routes Package.

This package contains FastAPI route modules:
- players: Rooms, playback control and grouping (/api/players, /api/player/*)
- devices: Known-device administration (/api/known-devices)
"""

from bluroom.web.routes.devices import register_device_routes
from bluroom.web.routes.players import register_player_routes

__all__ = [
    "register_device_routes",
    "register_player_routes",
]
