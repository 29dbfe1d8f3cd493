"""
Token Service - issues and rotates access/refresh token pairs
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import logging
import sys

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .auth import TokenIssuer
from .config import ConfigurationError, Settings, get_settings
from .db import build_engine, build_session_factory, init_db
from .exceptions import (
    TokenServiceError,
    request_validation_error_handler,
    token_service_error_handler,
)
from .routes import auth
from .schemas import HealthResponse
from .seed import seed_test_accounts
from .utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


def bootstrap(app: FastAPI) -> None:
    """
    Create the schema and seed the test accounts.

    Runs before the application accepts traffic. Any failure disposes the
    engine and propagates, so the process does not start half-initialised.
    """
    state = app.state
    try:
        init_db(state.engine)
        if state.settings.SEED_TEST_ACCOUNTS:
            db = state.session_factory()
            try:
                created = seed_test_accounts(db, state.issuer)
            finally:
                db.close()
            logger.info("[Seed] Test accounts created: %d", created)
    except Exception:
        logger.exception("Startup failed, disconnecting from the database")
        state.engine.dispose()
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    bootstrap(app)
    yield
    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Token Service",
        description="Issues and rotates signed access/refresh token pairs",
        version="1.0.0",
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.issuer = TokenIssuer(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TokenServiceError, token_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    app.include_router(auth.router)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    def health_check():
        return HealthResponse(status="healthy", timestamp=datetime.now(timezone.utc).isoformat())

    return app


def run() -> None:
    """Console entry point: load settings and serve with uvicorn."""
    import uvicorn

    try:
        settings = get_settings()
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    configure_logging(settings)
    logger.info("Token service listening on port %s", settings.PORT)
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
