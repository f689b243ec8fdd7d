"""
FastAPI application entry point.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.middleware import LoggingMiddleware, RequestIDMiddleware
from api.routes import payments as payments_routes
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import configure_logging, get_logger
from core.response import success_response
from core.settings import payment_settings
from infrastructure.external.payments import build_payment_client


configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the orchestrator once; configuration errors abort startup."""
    if payment_settings.any_provider_enabled:
        app.state.payments = build_payment_client(payment_settings)
        logger.info(
            "payments_initialized",
            providers=[p.value for p in app.state.payments.get_registered_providers()],
            strategy=payment_settings.resolution.strategy,
        )
    else:
        app.state.payments = None
        logger.warning("payments_not_configured", message="No payment provider enabled")

    yield

    if app.state.payments is not None:
        await app.state.payments.aclose()
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Provider-agnostic payment orchestration",
)

# Middleware runs bottom-up: request id first so access logs carry it
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

register_exception_handlers(app)

app.include_router(payments_routes.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
async def root():
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/docs",
            "redoc": "/redoc"
        },
    )


@app.get("/health", tags=["Health"])
async def health_check():
    return success_response(data={"status": "healthy"})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
