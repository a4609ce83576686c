import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .database import init_db, make_engine, make_session_factory
from .errors import register_exception_handlers
from .logging_setup import setup_logging
from .routes import auth_router, tasks_router
from .settings import DEFAULT_SECRET_KEY, Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.SECRET_KEY == DEFAULT_SECRET_KEY and not settings.is_development:
            logger.warning("SECRET_KEY is the built-in default; set it in the environment")
        init_db(app.state.engine)
        logger.info("Taskify API started (env=%s)", settings.APP_ENV)
        yield
        app.state.engine.dispose()

    # -------------------------------------------------------------------------
    # App & CORS
    # -------------------------------------------------------------------------
    app = FastAPI(title="Taskify", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = make_engine(settings.DATABASE_URL)
    app.state.session_factory = make_session_factory(app.state.engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.is_development:
        access_logger = logging.getLogger("taskify_app.access")

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            access_logger.info(
                "%s %s %s %.1fms",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            return response

    register_exception_handlers(app, verbose=settings.is_development)

    # -------------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------------
    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(auth_router, prefix=settings.API_PREFIX)
    app.include_router(tasks_router, prefix=settings.API_PREFIX)
    return app


app = create_app()
