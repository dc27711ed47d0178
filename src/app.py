import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.base.config.logging_config import LoggingConfig
from src.base.config.settings import Settings, get_settings
from src.base.core.error_handlers import register_exception_handlers
from src.base.core.lifespan import lifespan
from src.base.middleware.correlation_middleware import CorrelationMiddleware
from src.base.middleware.global_exception_handler_middleware import (
    GlobalExceptionHandlerMiddleware,
)
from src.base.routes.health import router as health_router
from src.domain.routes.auth_routes import router as auth_router
from src.domain.routes.user_routes import router as user_router

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    # --- Logging configuration ---
    LoggingConfig.setup_logging(settings.log_level)
    logger.info("Starting FastAPI application (environment=%s)", settings.environment)

    # --- FastAPI app ---
    app = FastAPI(title="User Directory API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    register_exception_handlers(app)

    # --- Middleware (last added runs first) ---
    app.add_middleware(GlobalExceptionHandlerMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["x-correlation-id"],
    )
    app.add_middleware(CorrelationMiddleware)

    # --- Routes ---
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(user_router)

    return app


app = create_app()
