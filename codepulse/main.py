"""
CodePulse API

FastAPI application: queue repository analyses, poll their progress and
read the resulting reports.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from . import __version__
from .config import Settings
from .database import init_db, make_engine, make_session_factory
from .logging_config import setup_logging
from .routers.analysis import limiter, router
from .services import (
    AnalysisPipeline,
    GitHubSourceFetcher,
    JobScheduler,
    SqlReportStore,
)
from .services.analyzer import SourceFetcher

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, *, fetcher: SourceFetcher | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Defaults to Settings.from_env()
        fetcher: Source fetcher override (tests pass a local fake)
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()

        engine = make_engine(settings.database_url)
        init_db(engine)
        session_factory = make_session_factory(engine)

        source = fetcher
        owned_fetcher = None
        if source is None:
            owned_fetcher = GitHubSourceFetcher(
                token=settings.github_token,
                clone_depth=settings.clone_depth,
                clone_timeout=settings.clone_timeout_seconds,
            )
            source = owned_fetcher

        store = SqlReportStore(session_factory)
        scheduler = JobScheduler(
            session_factory,
            store,
            AnalysisPipeline(source, rule_workers=settings.rule_workers),
            workers=settings.workers,
            max_attempts=settings.max_attempts,
            backoff_base=settings.backoff_base_seconds,
            dedup_window=settings.dedup_window,
        )
        app.state.store = store
        app.state.scheduler = scheduler

        scheduler.start()
        logger.info(f"CodePulse {__version__} started with {settings.workers} worker(s)")
        try:
            yield
        finally:
            scheduler.shutdown(wait=True)
            if owned_fetcher is not None:
                owned_fetcher.close()
            engine.dispose()
            logger.info("CodePulse stopped")

    app = FastAPI(
        title="CodePulse API",
        description="Repository quality analyzer: strengths, weaknesses and per-category scores",
        version=__version__,
        lifespan=lifespan,
    )

    # Rate limiting
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests. Please try again later."},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type"],
    )

    @app.get("/")
    def read_root():
        """Health check endpoint."""
        return {"status": "ok", "version": __version__, "message": "CodePulse API"}

    app.include_router(router)
    return app


app = create_app()
