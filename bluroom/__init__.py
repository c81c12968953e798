"""
Bluroom - BluOS player discovery and multi-room control.

Finds Bluesound/BluOS players on the local network, remembers them across
restarts, and presents them as rooms (single players, stereo pairs and
multi-room groups) behind a small REST API.
"""

__version__ = "0.1.0"

from bluroom.server import BluroomServer

__all__ = ["BluroomServer", "__version__"]
