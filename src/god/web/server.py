import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any, Dict, Optional

from hypercorn.asyncio import serve
from hypercorn.config import Config
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route

if TYPE_CHECKING:
    from god.supervisor import TaskManager

log = logging.getLogger(__name__)


async def health_handler(request: Request) -> PlainTextResponse:
    """Reports the aggregate health of all tasks: 200 when healthy, 500 otherwise."""
    report = request.app.state.manager.health_report()
    return PlainTextResponse(report.text, status_code=report.status_code)


def create_app(manager: "TaskManager", path: str = "/health") -> Starlette:
    """Builds the ASGI application exposing the manager's health report."""
    app = Starlette(debug=False, routes=[Route(path, endpoint=health_handler, methods=["GET"])])
    app.state.manager = manager
    return app


def normalize_listen_addr(addr: str) -> str:
    """Accepts Go-style ':port' addresses by binding them on all interfaces."""
    addr = addr.strip()
    if addr.startswith(":"):
        return f"0.0.0.0{addr}"
    return addr


def _quiet_exception_handler(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
    # A failed bind leaves Hypercorn's lifespan task behind; asyncio.run() reports it while closing.
    log.debug(f"Health server event loop: {context.get('message')}", exc_info=context.get("exception"))


class HealthServer:
    """
    Serves the health endpoint with Hypercorn on a dedicated daemon thread.

    The server is best-effort: if it cannot bind, the error is logged and task
    supervision carries on without it.
    """

    def __init__(self, manager: "TaskManager", listen_addr: str, path: str = "/health") -> None:
        self.app = create_app(manager, path)
        self.config = Config()
        self.config.bind = [normalize_listen_addr(listen_addr)]
        self.config.accesslog = None
        self.config.graceful_timeout = 1
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop: Optional[asyncio.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._stop_requested = threading.Event()

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, daemon=True, name="HealthServerThread")
        self._thread.start()

    def _run(self) -> None:
        log.info(f"Starting HTTP server for health check on {self.config.bind[0]}")
        try:
            asyncio.run(self._serve())
        except OSError as e:
            log.critical(f"Failed to start HTTP server on {self.config.bind[0]}: {e}")
        except Exception as e:
            log.critical(f"Health server stopped unexpectedly: {e}", exc_info=True)

    async def _serve(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._loop.set_exception_handler(_quiet_exception_handler)
        self._stop = asyncio.Event()
        if self._stop_requested.is_set():
            return
        await serve(self.app, self.config, shutdown_trigger=self._stop.wait)

    def is_serving(self) -> bool:
        """Whether the server thread is still up. False once binding failed or the server stopped."""
        return self._thread is not None and self._thread.is_alive()

    def stop(self, timeout: float = 5) -> None:
        """Asks the server to close and waits up to `timeout` seconds for its thread."""
        self._stop_requested.set()
        if self._loop is not None and self._stop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._stop.set)
        if self._thread is not None:
            self._thread.join(timeout)
