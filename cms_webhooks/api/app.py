"""FastAPI application factory.

Creates the application, registers exception handlers, the webhook
routes and the Prometheus metrics endpoint.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from cms_webhooks import __version__
from cms_webhooks.api.dependencies import reset_dependencies
from cms_webhooks.api.routes import router as webhooks_router
from cms_webhooks.config import get_settings
from cms_webhooks.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await reset_dependencies()
    logger.info("app_shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()
    log_config = settings.observability.logging
    setup_logging(
        level=log_config.level,
        format=log_config.format,
        redact_pii=log_config.redact_pii,
    )

    app = FastAPI(
        title="CMS Webhooks API",
        description="Outbound webhook management and delivery for CMS content events",
        version=__version__,
        lifespan=lifespan,
    )

    _register_exception_handlers(app)
    app.include_router(webhooks_router, prefix=settings.api.prefix)

    if settings.observability.metrics.enabled:

        @app.get(settings.observability.metrics.path, include_in_schema=False)
        async def get_metrics() -> Response:
            """Prometheus metrics in text format."""
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    logger.info("app_created", debug=settings.debug, prefix=settings.api.prefix)
    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle FastAPI request validation errors as 400s."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
        )
        details = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"detail": "Request validation failed", "errors": details},
        )
