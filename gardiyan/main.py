"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) so tests can
build an app with their own dependency overrides.

For local development:
    uvicorn gardiyan.main:app --reload

For production:
    gardiyan --log-level info
"""

import argparse
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from .api.routes import health, proxy
from .config.settings import Settings, get_settings
from .core.proxy import ObjectStreamError

LOG_LEVEL_CHOICES = ["debug", "info", "warning", "error", "critical"]

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Apply the configured log level to the root logger."""
    logging.getLogger().setLevel(level.upper())
    logger.debug("Log level set to: %s", level)


def log_startup_summary(settings: Settings) -> None:
    """Describe where objects will be served from."""
    logger.info("🔒 Gardiyan is starting shift - Guard post: %s", settings.port)
    logger.info("📋 Prison facility: %s", settings.s3_bucket_name)
    logger.info("🏢 Storage facility format: %s", settings.object_url("{prisoner}"))
    logger.info("📝 Visiting example:")
    logger.info("  👤 Visitor request: http://localhost:%s/images/logo.png", settings.port)
    if settings.s3_endpoint:
        logger.info("  🔓 Released from: %s", settings.object_url("images/logo.png"))


def check_required_settings(settings: Settings) -> None:
    """
    Refuse to start without a complete configuration.

    Raises:
        RuntimeError: if any required environment variable is missing
    """
    missing_fields = settings.validate_required_fields()
    if not missing_fields:
        logger.info("✅ All required environment variables validated successfully")
        return

    logger.critical("🚨 CRITICAL: Missing required environment variables!")
    for name in missing_fields:
        logger.critical("   ❌ %s", name)
    logger.critical("🚫 Gardiyan cannot start without complete configuration!")
    raise RuntimeError(
        f"Environment validation failed - missing: {', '.join(missing_fields)}"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Validates configuration and logs the serving summary on startup.
    """
    settings = get_settings()

    if not Path(".env").exists():
        logger.warning(".env file not found, environment variables will be read from system")

    check_required_settings(settings)
    log_startup_summary(settings)

    yield

    logger.info("Gardiyan is ending shift")


def create_app() -> FastAPI:
    """
    Application factory.

    API docs are disabled: every path is a potential object key, so
    /docs or /openapi.json must reach storage like any other path.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Gardiyan",
        description="Read-only HTTP proxy in front of an S3-compatible bucket.",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    # Health first: the proxy route matches every path
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        proxy.router,
        tags=["Proxy"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """
        Catch-all exception handler.

        Logs the full error server-side and returns a generic message.
        Object stream failures are already logged by the proxy route and
        only reach here so the server drops the connection.
        """
        if isinstance(exc, ObjectStreamError):
            return PlainTextResponse("Internal server error", status_code=500)

        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return PlainTextResponse(
            "Internal server error",
            status_code=500,
        )

    logger.debug(
        "FastAPI application created",
        extra={"bucket": settings.s3_bucket_name, "mock_mode": settings.storage_mock_mode},
    )

    return app


# Create the application instance
# This is what uvicorn imports
app = create_app()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gardiyan",
        description="Serve objects from an S3-compatible bucket over HTTP.",
    )
    parser.add_argument(
        "--log-level",
        type=str.lower,
        choices=LOG_LEVEL_CHOICES,
        default=None,
        help="Log level. Overrides LOG_LEVEL.",
    )
    parser.add_argument("--host", default=None, help="Interface to bind. Overrides HOST.")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on. Overrides PORT.")
    return parser.parse_args(argv)


def run(argv: Optional[list[str]] = None) -> None:
    """Console entry point."""
    import uvicorn

    args = parse_args(argv)
    settings = get_settings()

    log_level = args.log_level or settings.log_level
    configure_logging(log_level)

    uvicorn.run(
        app,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    run()
