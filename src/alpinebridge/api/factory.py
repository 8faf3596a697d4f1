"""FastAPI application factory."""

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from alpinebridge.infra.settings import get_app_settings
from alpinebridge.observability.context import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

from .routers import public
from .routes import admin, alpinebits, submit

# Browser preflight cache for the booking form
CORS_MAX_AGE_SECONDS = 86400


def create_app() -> FastAPI:
    """Create the FastAPI app with all routes mounted.

    Returns:
        Configured FastAPI application.
    """
    settings = get_app_settings()

    app = FastAPI(
        title="AlpineBridge",
        docs_url=None,
        redoc_url=None,
    )

    # Correlation ID middleware
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_methods=["POST", "OPTIONS"],
            allow_headers=["Content-Type"],
            max_age=CORS_MAX_AGE_SECONDS,
        )

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "success": False,
                    "error": "NOT_FOUND",
                    "message": "Endpoint not found",
                },
            )
        return await http_exception_handler(request, exc)

    app.include_router(public.router)
    app.include_router(submit.router)
    app.include_router(alpinebits.router)
    app.include_router(admin.router)

    return app
