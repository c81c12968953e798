"""
Bluroom - Main Server Module

This module contains the main BluroomServer class that wires the discovery
pipeline together and manages the application lifecycle.
"""

import asyncio
import logging
import signal

from bluroom.config import Settings
from bluroom.core.discovery import DiscoveryOrchestrator
from bluroom.core.known_devices import KnownDeviceStore
from bluroom.player.cache import PlayerCache
from bluroom.player.client import BluOSClient
from bluroom.player.prober import NetworkProber
from bluroom.player.service import PlayerService
from bluroom.protocol.discovery import MdnsBrowser
from bluroom.web.server import WebServer

logger = logging.getLogger(__name__)


class BluroomServer:
    """
    Main Bluroom server that coordinates all components.

    The server manages:
    - Known-device store (SQLite) that remembers every player ever seen
    - BluOS HTTP client and the mDNS browser used for sweeps
    - Discovery orchestrator with its short-lived memory cache
    - Web server for the REST API

    Nothing touches the network at startup; the first API request decides
    between a fast refresh of known devices and a full sweep.
    """

    def __init__(self, settings: Settings) -> None:
        """
        Initialize the Bluroom server.

        Args:
            settings: Loaded configuration (see `bluroom.config`).
        """
        self.settings = settings
        discovery = settings.discovery

        self.store = KnownDeviceStore(settings.server.db_path)
        self.cache = PlayerCache()
        self.client = BluOSClient(timeout=discovery.probe_timeout)
        self.browser = MdnsBrowser(
            service_type=discovery.service_type,
            default_port=discovery.device_port,
        )
        self.prober = NetworkProber(
            self.client,
            self.browser,
            probe_timeout=discovery.probe_timeout,
            max_concurrency=discovery.max_concurrency,
        )
        self.orchestrator = DiscoveryOrchestrator(
            self.prober,
            self.store,
            self.cache,
            sweep_seconds=discovery.sweep_seconds,
            cache_max_age=discovery.cache_max_age,
        )
        self.player_service = PlayerService(self.orchestrator, self.client, self.store)

        # Web server (created on start)
        self.web_server: WebServer | None = None

        # Server state
        self._running = False
        self._shutdown_event: asyncio.Event | None = None

    async def start(self) -> None:
        """Start all server components."""
        server = self.settings.server
        logger.info("Starting Bluroom server on %s:%d", server.host, server.port)

        self._running = True
        self._shutdown_event = asyncio.Event()

        # Known-device DB (schema/migrations)
        await self.store.open()
        await self.store.ensure_schema()

        self.web_server = WebServer(self.player_service)
        await self.web_server.start(host=server.host, port=server.port)

        logger.info("Bluroom server started successfully")
        logger.info("Known devices: %s", server.db_path)

    async def stop(self) -> None:
        """Stop all server components gracefully."""
        if not self._running:
            return

        logger.info("Stopping Bluroom server...")
        self._running = False

        # Stop Web server first so no request races the DB close
        if self.web_server:
            await self.web_server.stop()

        await self.client.close()

        # Close DB last, after all components are stopped.
        await self.store.close()

        if self._shutdown_event:
            self._shutdown_event.set()

        logger.info("Bluroom server stopped")

    async def run(self) -> None:
        """
        Run the server until shutdown is requested.

        This method starts all components and waits for a shutdown signal
        (SIGINT or SIGTERM).
        """
        await self.start()

        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("Received shutdown signal")
            if self._shutdown_event:
                self._shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, handle_signal)
            except NotImplementedError:
                # Signal handlers not supported on Windows
                pass

        if self._shutdown_event:
            await self._shutdown_event.wait()

        await self.stop()

    @property
    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running
