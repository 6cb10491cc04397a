#!/usr/bin/env python3
"""
Sensor Gateway - Main Entry Point

This server sits between a browser control panel and one embedded
sensor/actuator node:
- Serves the last-known readings and relay/fan states over HTTP
- Accepts the device over WebSocket at /device
- Relays toggle commands to the device, best-effort

Environment Variables:
    PORT: Listening port (default: 80)
    HOST: Bind address (default: 0.0.0.0)
    SEND_TIMEOUT_MS: Deadline for one device send in milliseconds (default: 2000)
    ONLINE_WINDOW_S: Report age in seconds still counted as online (default: 30)
    LOG_LEVEL: Logging level (default: INFO)

Usage:
    export PORT=8080
    python -m sensor_gateway.main
"""

import asyncio
import logging
import os
import signal
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Mapping, Optional

import uvicorn
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import create_router
from .registry import DeviceLinkRegistry
from .relay import CommandRelay
from .state import StateStore
from .ws_server import DeviceAcceptor

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


@dataclass
class GatewayConfig:
    """Runtime settings, read from the environment."""
    host: str = "0.0.0.0"
    port: int = 80
    send_timeout_ms: int = 2000
    online_window_s: float = 30.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'GatewayConfig':
        """
        Load configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            GatewayConfig with defaults for unset variables

        Raises:
            ValueError: If a numeric variable cannot be parsed or is out of range
        """
        env = os.environ if environ is None else environ
        config = cls(
            host=env.get("HOST", cls.host),
            port=int(env.get("PORT", cls.port)),
            send_timeout_ms=int(env.get("SEND_TIMEOUT_MS", cls.send_timeout_ms)),
            online_window_s=float(env.get("ONLINE_WINDOW_S", cls.online_window_s)),
            log_level=env.get("LOG_LEVEL", cls.log_level).upper(),
        )
        if not 0 < config.port < 65536:
            raise ValueError(f"PORT out of range: {config.port}")
        if config.send_timeout_ms <= 0:
            raise ValueError(f"SEND_TIMEOUT_MS must be positive: {config.send_timeout_ms}")
        if not isinstance(logging.getLevelName(config.log_level), int):
            raise ValueError(f"Unknown LOG_LEVEL: {config.log_level}")
        return config


class SensorGateway:
    """
    Main gateway wiring the core to its HTTP and WebSocket surfaces.

    Architecture:
        Browser -> HTTP API -> CommandRelay -> StateStore
                                           -> DeviceLinkRegistry -> device
        Device  -> WebSocket /device -> DeviceAcceptor -> DeviceLinkRegistry
    """

    def __init__(self, config: Optional[GatewayConfig] = None):
        """
        Initialize gateway.

        Args:
            config: Runtime settings (defaults when omitted)
        """
        self.config = config or GatewayConfig()

        # Core
        self.store = StateStore()
        self.registry = DeviceLinkRegistry()
        self.relay = CommandRelay(
            self.store,
            self.registry,
            send_timeout=self.config.send_timeout_ms / 1000.0,
        )

        # Surfaces
        self.acceptor = DeviceAcceptor(self.registry)
        self.app = self._build_app()

    def _build_app(self) -> FastAPI:
        """Create the FastAPI application."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            logger.info("Sensor Gateway started")
            yield
            await self.stop()

        app = FastAPI(title="Sensor Gateway", version=__version__, lifespan=lifespan)
        app.state.gateway = self

        # Add CORS middleware
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        app.include_router(
            create_router(
                self.store,
                self.registry,
                self.relay,
                online_window_s=self.config.online_window_s,
            )
        )

        @app.get("/health")
        async def health_check():
            """Health check endpoint."""
            return {
                "status": "ok",
                "device_connected": self.registry.connected,
                "acceptor": self.acceptor.get_stats(),
                "relay": self.relay.get_stats(),
            }

        @app.websocket("/device")
        async def device_channel(websocket: WebSocket):
            """WebSocket endpoint for the device."""
            await self.acceptor.handle(websocket)

        return app

    async def stop(self) -> None:
        """Wait for in-flight device sends before shutting down."""
        logger.info("Stopping Sensor Gateway...")
        await self.relay.drain()
        logger.info("Sensor Gateway stopped")

    def get_stats(self) -> dict:
        """Get gateway statistics."""
        return {
            "acceptor": self.acceptor.get_stats(),
            "relay": self.relay.get_stats(),
        }


def create_app(config: Optional[GatewayConfig] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Usable as a uvicorn factory:
        uvicorn sensor_gateway.main:create_app --factory

    Args:
        config: Runtime settings (read from the environment when omitted)

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = GatewayConfig.from_env()
    return SensorGateway(config).app


def create_server(gateway: SensorGateway) -> uvicorn.Server:
    """Build the uvicorn server for the gateway application."""
    config = uvicorn.Config(
        gateway.app,
        host=gateway.config.host,
        port=gateway.config.port,
        log_level=gateway.config.log_level.lower(),
        access_log=True,
    )
    return uvicorn.Server(config)


async def main_async(config: GatewayConfig) -> None:
    """
    Async main entry point.

    In-flight device sends are drained by the application lifespan, so
    shutdown always goes through uvicorn's graceful exit.
    """
    gateway = SensorGateway(config)
    server = create_server(gateway)

    # Setup signal handlers
    loop = asyncio.get_running_loop()

    shutdown_event = asyncio.Event()

    def signal_handler():
        logger.info("Shutdown signal received")
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    logger.info(f"Listening on {config.host}:{config.port}")

    # Run server until shutdown
    server_task = asyncio.create_task(server.serve())
    shutdown_task = asyncio.create_task(shutdown_event.wait())

    try:
        await asyncio.wait(
            [server_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED,
        )

        if not server_task.done():
            server.should_exit = True
        await server_task

    except Exception as e:
        logger.error(f"Server error: {e}")
    finally:
        shutdown_task.cancel()


def main() -> None:
    """Main entry point."""
    try:
        config = GatewayConfig.from_env()
    except ValueError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)

    try:
        asyncio.run(main_async(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
