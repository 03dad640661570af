"""
Main entry point — the StatusPageServer orchestrator.

Builds the aiohttp application, serves it until interrupted and tears the
connection registry down together with the transport server.

Usage:
    python -m statuspage
    statuspage-server
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from aiohttp import web

from statuspage import notifier
from statuspage.api import create_app
from statuspage.config import load_config
from statuspage.models import ServerSettings

log = logging.getLogger(__name__)


class StatusPageServer:
    """
    Top-level orchestrator.

    Owns the aiohttp runner for the lifetime of the process.
    """

    def __init__(self, settings: ServerSettings) -> None:
        self.settings = settings
        self._stopped = asyncio.Event()

    async def run(self) -> None:
        """Serve until ``shutdown()`` is called."""
        notifier.print_banner()

        app = create_app(self.settings)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, self.settings.host, self.settings.port)
        await site.start()
        notifier.print_listening(self.settings.host, self.settings.port)
        log.info("WebSocket server initialized")

        try:
            await self._stopped.wait()
        finally:
            # Runs on_shutdown (close sockets) then on_cleanup (close registry)
            await runner.cleanup()

    def shutdown(self) -> None:
        self._stopped.set()


def _handle_signals(server: StatusPageServer, loop: asyncio.AbstractEventLoop) -> None:
    """Register signal handlers for graceful shutdown."""
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda: _do_shutdown(server))
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass


def _do_shutdown(server: StatusPageServer) -> None:
    notifier.print_shutdown()
    server.shutdown()


async def async_main() -> None:
    """Async entry point."""
    settings = load_config()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    server = StatusPageServer(settings)
    _handle_signals(server, asyncio.get_running_loop())
    await server.run()


def main() -> None:
    """Sync entry point."""
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        # Signal handler already printed shutdown message
        sys.exit(0)


if __name__ == "__main__":
    main()
