"""
Player management for Bluroom.

This package handles BluOS players: their decoded state, the HTTP client
that talks to them, probing, the short-lived player cache, and the service
facade consumed by the web layer.

Consumers import from the specific module they need
(e.g. `bluroom.player.client`).
"""
