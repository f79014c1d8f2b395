"""Launch the gateway under uvicorn.

The credential is checked before anything binds a socket. SIGINT and SIGTERM
both set one shutdown event; uvicorn then stops accepting, drains in-flight
responses, runs lifespan shutdown, and the process exits 0.
"""
from __future__ import annotations
import asyncio
import logging
import signal
import sys
from contextlib import contextmanager
from typing import Iterator

import uvicorn

from gemini_gateway.common.config import Settings, SettingsError, load_settings
from gemini_gateway.common.logging_setup import setup_logging
from gemini_gateway.serve.fastapi_app import create_app

LOGGER = logging.getLogger("gemini_gateway.serve.server")

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class GatewayServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to ``serve()`` below.

    uvicorn's own handlers re-raise the caught signal once the server has
    drained, which would kill the process instead of letting it exit 0.
    """

    def install_signal_handlers(self) -> None:  # uvicorn < 0.29
        pass

    @contextmanager
    def capture_signals(self) -> Iterator[None]:  # uvicorn >= 0.29
        yield


def build_server(settings: Settings) -> GatewayServer:
    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,  # keep our root handler
    )
    return GatewayServer(config)


async def serve(server: uvicorn.Server, shutdown: asyncio.Event | None = None) -> None:
    """
    Run ``server`` until ``shutdown`` is set.

    Args:
        server: Server to run; anything with ``serve()``, ``should_exit`` and ``force_exit``.
        shutdown: Event that stops the server; SIGINT and SIGTERM set it.
    """
    loop = asyncio.get_running_loop()
    shutdown = shutdown or asyncio.Event()

    def _on_signal(sig: signal.Signals) -> None:
        if shutdown.is_set():
            LOGGER.warning("%s received again, forcing exit", sig.name)
            server.force_exit = True
            return
        LOGGER.info("%s received, shutting down gracefully", sig.name)
        shutdown.set()

    async def _stop_when_requested() -> None:
        await shutdown.wait()
        server.should_exit = True

    for sig in SHUTDOWN_SIGNALS:
        loop.add_signal_handler(sig, _on_signal, sig)
    watcher = asyncio.create_task(_stop_when_requested())
    try:
        await server.serve()
    finally:
        watcher.cancel()
        for sig in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(sig)


def main() -> None:
    setup_logging()
    try:
        settings = load_settings()
    except SettingsError as e:
        LOGGER.error("ERROR: %s", e)
        sys.exit(1)

    setup_logging(settings.log_level)
    server = build_server(settings)

    LOGGER.info("Starting server on port %s", settings.port)
    LOGGER.info("Health check available at http://localhost:%s/health", settings.port)
    LOGGER.info("Generate endpoint available at http://localhost:%s/generate", settings.port)
    asyncio.run(serve(server))
    LOGGER.info("Server closed")


if __name__ == "__main__":
    main()
