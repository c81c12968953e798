"""
Web Server Module for Bluroom.

This module provides the WebServer class that creates and manages the
FastAPI application and registers all routes.

The WebServer integrates:
- REST API for rooms, playback control and grouping
- Known-device administration
- Health check
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bluroom import __version__
from bluroom.web.routes.devices import register_device_routes
from bluroom.web.routes.players import register_player_routes

if TYPE_CHECKING:
    from bluroom.player.service import PlayerService

logger = logging.getLogger(__name__)


class WebServer:
    """
    FastAPI-based web server for Bluroom.

    Serves the REST API consumed by the room picker and remote-control UI.
    """

    def __init__(self, player_service: PlayerService) -> None:
        """
        Initialize the WebServer.

        Args:
            player_service: Facade over discovery, grouping and control
        """
        self.player_service = player_service

        self.app = FastAPI(
            title="Bluroom",
            description="BluOS player discovery and multi-room control",
            version=__version__,
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        # Server state
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._host = "0.0.0.0"
        self._port = 8000

        self._register_routes()

    def _register_routes(self) -> None:
        """Register all routes with the FastAPI app."""

        @self.app.get("/health")
        async def health_check() -> dict[str, str]:
            """Health check endpoint."""
            return {"status": "ok", "server": "bluroom"}

        register_player_routes(self.app, self.player_service)
        register_device_routes(self.app, self.player_service)

    async def start(self, host: str = "0.0.0.0", port: int = 8000) -> None:
        """
        Start the web server.

        Args:
            host: Host address to bind to
            port: Port to listen on
        """
        self._host = host
        self._port = port

        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)

        # Start server in background
        self._serve_task = asyncio.create_task(self._server.serve())

        logger.info("Web server started on http://%s:%d", host, port)

    async def stop(self) -> None:
        """Stop the web server."""
        if self._server is not None:
            self._server.should_exit = True
            self._server = None

        if self._serve_task is not None:
            try:
                await asyncio.wait_for(self._serve_task, timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("Web server did not shut down in time")
                self._serve_task.cancel()
            self._serve_task = None

        logger.info("Web server stopped")

    @property
    def port(self) -> int:
        """Get the server port."""
        return self._port

    @property
    def host(self) -> str:
        """Get the server host."""
        return self._host
