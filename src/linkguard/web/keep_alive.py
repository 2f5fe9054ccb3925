"""Keep-alive HTTP server.

Hosting platforms that idle processes without inbound traffic can be pointed
(or an uptime pinger can be pointed) at ``GET /``.
"""

from __future__ import annotations

from aiohttp import web

from linkguard.util.logger import get_logger

logger = get_logger("keep_alive")


async def index(request: web.Request) -> web.Response:
    return web.Response(text="Bot is running.")


async def health(request: web.Request) -> web.Response:
    """Health check endpoint for uptime monitors."""
    return web.json_response({"status": "ok", "service": "linkguard"})


def create_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/", index)
    app.router.add_get("/health", health)
    return app


class KeepAliveServer:
    """Runs :func:`create_app` on ``host:port`` inside the bot's event loop."""

    def __init__(self, port: int, host: str = "0.0.0.0") -> None:
        self.port = port
        self.host = host
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        runner = web.AppRunner(create_app())
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        await site.start()
        self._runner = runner
        logger.info("Web server running on port %d", self.port)

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        logger.info("Web server stopped")
