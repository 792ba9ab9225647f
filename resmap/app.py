"""Application bootstrap for the resmap server.

Startup order: config → logging → session store → REST
Shutdown stops the REST server first, then drops the session store.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from resmap.api.sessions import HighlightSessionStore
from resmap.config import load_config
from resmap.models.config import ResMapConfig
from resmap.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class ResMapApp:
    """Application root.  Owns the session store and the REST server.

    ``stop()`` is safe on an app that was never started or already stopped.
    """

    def __init__(self, config: ResMapConfig | None = None) -> None:
        self.config: ResMapConfig | None = config

        self._sessions: HighlightSessionStore | None = None
        self._rest_server: object | None = None
        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            self.config = load_config()

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level, self.config.log.renderer)
        self._log = get_logger("app")
        self._log.info("resmap starting", version=_resmap_version(), layout=self.config.graph.layout)

        # --- 3. Session store -------------------------------------------
        self._sessions = HighlightSessionStore(max_sessions=self.config.sessions.max_sessions)

        # --- 4. REST API ------------------------------------------------
        await self._start_rest()

        self._running = True
        self._log.info("resmap started", host=self.config.api.host, port=self.config.api.port)

    async def _start_rest(self) -> None:
        """Start the uvicorn REST server."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting rest api")
        try:
            import uvicorn

            from resmap.api import build_app

            fastapi_app = build_app(config=self.config, sessions=self._sessions)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host=self.config.api.host,
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest api started", port=self.config.api.port)
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop the REST server and release the session store."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("resmap shutting down")

        self._running = False

        if self._rest_server is not None:
            # uvicorn finishes in-flight requests once should_exit is set
            self._rest_server.should_exit = True  # type: ignore[attr-defined]

        if self._background_tasks:
            done, pending = await asyncio.wait(self._background_tasks, timeout=_SHUTDOWN_GRACE_SECONDS)
            for task in pending:
                log.warning("component stop timed out", component=task.get_name(), timeout=_SHUTDOWN_GRACE_SECONDS)
                task.cancel()
            for task in done:
                if not task.cancelled() and task.exception() is not None:
                    log.error("component stop raised an error", component=task.get_name(), error=str(task.exception()))
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        self._background_tasks.clear()
        self._rest_server = None
        self._sessions = None

        log.info("resmap stopped")


def _resmap_version() -> str:
    from resmap import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = ResMapApp()
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        while app.running:
            await asyncio.sleep(1)
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app.running:
            await app.stop()
