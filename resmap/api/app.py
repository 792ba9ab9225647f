"""FastAPI application factory for resmap.

Usage::

    from resmap.api.app import create_app

    app = create_app(config=config)

The factory is used by the production bootstrap (``resmap.app``), the
``resmap serve`` command and unit tests.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from resmap.api.errors import APIError
from resmap.api.routes import router
from resmap.api.schemas import ErrorResponse
from resmap.api.sessions import HighlightSessionStore
from resmap.models.config import ResMapConfig

_log = structlog.get_logger(component="api.app")

_API_PREFIX = "/api/v1"

_EVENT_FIELDS = frozenset({"type", "node_id"})


def _validation_error_code(field: str, path: str) -> str:
    if field == "layout":
        return "INVALID_LAYOUT"
    if field in _EVENT_FIELDS or path.endswith("/events"):
        return "INVALID_EVENT"
    return "INVALID_SNAPSHOT"


def create_app(
    config: ResMapConfig | None = None,
    sessions: HighlightSessionStore | None = None,
) -> FastAPI:
    """Create and configure the resmap FastAPI application.

    Args:
        config:   ResMapConfig. Supplies the default layout, geometry and
                  session limit. Defaults to ``ResMapConfig()``.
        sessions: Optional pre-built session store (tests inject small ones).

    Returns:
        Configured FastAPI application, ready to be served by uvicorn.
    """
    from resmap import __version__

    config = config or ResMapConfig()
    if sessions is None:
        sessions = HighlightSessionStore(max_sessions=config.sessions.max_sessions)

    app = FastAPI(
        title="resmap",
        summary="Infrastructure resource map API",
        version=__version__,
        description=(
            "resmap turns a snapshot of servers, services, credentials and domains "
            "into a positioned node/edge graph and tracks click/hover highlighting."
        ),
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
        openapi_url="/api/v1/openapi.json",
    )

    app.state.config = config
    app.state.sessions = sessions

    app.include_router(router, prefix=_API_PREFIX)

    # -----------------------------------------------------------------------
    # Exception handlers
    # -----------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Map Pydantic validation errors to the error envelope.

        The error code follows the first offending field: ``layout`` is a
        layout error, pointer-event fields (or any body posted to an events
        endpoint) are event errors, and anything else is treated as a
        malformed snapshot request.
        """
        errors = exc.errors()
        first_field = ""
        first_msg = ""
        if errors:
            locs = errors[0].get("loc", ())
            fields = [str(loc) for loc in locs if isinstance(loc, str) and loc != "body"]
            first_field = fields[0] if fields else ""
            first_msg = str(errors[0].get("msg", ""))

        return JSONResponse(
            status_code=400,
            content=ErrorResponse(error=_validation_error_code(first_field, request.url.path), detail=first_msg).model_dump(),
        )

    @app.exception_handler(APIError)
    async def api_error_handler(_request: Request, exc: APIError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.error, detail=exc.detail).model_dump(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Catch-all for unhandled exceptions; never exposes stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="INTERNAL_ERROR",
                detail="An unexpected error occurred.",
            ).model_dump(),
        )

    return app
