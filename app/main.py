import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import (
    ReadingError,
    http_error_handler,
    reading_error_handler,
    validation_error_handler,
)
from app.core.logging import setup_logging
from app.core.middleware import request_id_middleware
from app.core.rate_limit import limiter
from app.core.security import SecurityHeadersMiddleware, SessionIdentityProvider
from app.routers import cards, health, reading, readings
from app.services.captcha_service import RecaptchaVerifier
from app.services.card_store import JsonCardStore, PostgresCardStore
from app.services.interpret_service import GeminiGenerator
from app.services.reading_repository import PostgresReadingRepository, ReadingRepository

logger = logging.getLogger(__name__)


def _build_stores(app: FastAPI) -> None:
    # Choose stores (DB or bundled JSON / in-memory)
    if settings.use_db and settings.db_url:
        app.state.card_store = PostgresCardStore(settings.db_url)
        try:
            app.state.reading_repo = PostgresReadingRepository(settings.db_url)
        except Exception:
            # Fallback to in-memory if DB init fails
            logger.exception("Reading history DB unavailable, using in-memory store")
            app.state.reading_repo = ReadingRepository()
        return
    store = JsonCardStore(settings.data_path)
    # Fail fast on startup if card data cannot be loaded
    store.load()
    app.state.card_store = store
    app.state.reading_repo = ReadingRepository()


def create_app() -> FastAPI:
    setup_logging(settings.log_level)

    # Validate CORS in non-local env
    if settings.env in {"dev", "prod"} and not settings.cors_origins:
        raise RuntimeError("CORS_ORIGINS must be set in dev/prod environments")

    app = FastAPI(title="Tarot Reading API", version="0.1.0")

    # Middleware: CORS → RequestID → RateLimit → SecurityHeaders
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_id_middleware)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    # Error handlers
    app.add_exception_handler(ReadingError, reading_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, http_error_handler)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    _build_stores(app)
    app.state.identity_provider = SessionIdentityProvider(
        settings.session_jwt_secret,
        settings.session_jwt_audience,
        settings.session_cookie_name,
    )
    app.state.captcha_verifier = RecaptchaVerifier(
        settings.recaptcha_secret,
        settings.recaptcha_verify_url,
        timeout=settings.recaptcha_timeout_seconds,
    )
    app.state.generator = GeminiGenerator(
        settings.gemini_api_key,
        settings.llm_model,
        temperature=settings.llm_temperature,
        max_output_tokens=settings.llm_max_output_tokens,
        timeout=settings.llm_timeout_seconds,
    )

    app.include_router(health.router)
    app.include_router(cards.router)
    app.include_router(reading.router)
    app.include_router(readings.router)

    return app


app = create_app()
