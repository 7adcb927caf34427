"""
FastAPI application: ATS webhooks and internal retention endpoints.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

import talent_engine.integrations.ats.models  # noqa: F401
import talent_engine.matching.models  # noqa: F401
import talent_engine.tenants.models  # noqa: F401
from talent_engine.config import get_settings
from talent_engine.integrations.ats.webhooks.handler import WebhookEventRegistry
from talent_engine.integrations.ats.webhooks.router import router as ats_webhooks_router
from talent_engine.integrations.errors import AtsProviderError
from talent_engine.retention.router import router as retention_router
from talent_engine.shared.database import get_database_manager
from talent_engine.shared.exceptions import NotFoundError
from talent_engine.shared.logging import correlation_id_var, get_logger, setup_logging

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Domain exceptions surfaced as plain {"detail": ...} responses.
_DOMAIN_ERROR_STATUS: dict[type[Exception], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Talent engine starting", extra={"env": get_settings().app_env})
    yield
    await get_database_manager().close()
    logger.info("Talent engine stopped")


async def correlation_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Bind the caller's correlation id (or a fresh one) for the request's logs."""
    correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(uuid4())
    token = correlation_id_var.set(correlation_id)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token)
    response.headers[CORRELATION_ID_HEADER] = correlation_id
    return response


def register_exception_handlers(app: FastAPI) -> None:
    async def domain_error(_: Request, exc: Exception) -> JSONResponse:
        status_code = next(code for cls, code in _DOMAIN_ERROR_STATUS.items() if isinstance(exc, cls))
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    for exc_type in _DOMAIN_ERROR_STATUS:
        app.add_exception_handler(exc_type, domain_error)

    @app.exception_handler(AtsProviderError)
    async def provider_error(_: Request, exc: AtsProviderError) -> JSONResponse:
        # The upstream ATS failed; report it as a gateway error, not ours.
        logger.error(
            "ATS provider call failed",
            extra={"error_code": exc.error_code, "upstream_status": exc.status_code},
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": str(exc), "code": exc.error_code},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "errors": [
                        {
                            "field": ".".join(str(part) for part in error["loc"]),
                            "message": error["msg"],
                            "type": error["type"],
                        }
                        for error in exc.errors()
                    ],
                }
            },
        )


def create_app() -> FastAPI:
    """Build the application with its routers, handlers and middleware."""
    settings = get_settings()

    app = FastAPI(
        title="EDGE Talent Engine API",
        description="Tenant data retention and ATS integrations",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    # One dedup registry per app instance; Bullhorn redelivers on timeouts.
    app.state.webhook_registry = WebhookEventRegistry()

    register_exception_handlers(app)
    app.middleware("http")(correlation_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(ats_webhooks_router)
    app.include_router(retention_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


app = create_app()
