import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.admin.routes import router as admin_router
from backend.config import Settings, get_settings
from backend.context import build_context, warn_missing_settings
from backend.errors import AppError, ValidationError
from backend.services.recall_client import RecallClient
from backend.services.repository import MeetingRepository
from backend.services.summarization import Summarizer
from backend.session.routes import router as session_router
from backend.summary.routes import router as summary_router
from backend.utils.logging_setup import configure_logging
from backend.webhook.routes import router as webhook_router

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    repository: MeetingRepository | None = None,
    recall: RecallClient | None = None,
    summarizer: Summarizer | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    warn_missing_settings(settings)
    ctx = build_context(settings, repository=repository, recall=recall, summarizer=summarizer)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Meeting notetaker ready (summarizer=%s)", ctx.summarizer.name)
        yield
        await ctx.aclose()

    app = FastAPI(title="Meeting Notetaker API", lifespan=lifespan)
    app.state.ctx = ctx

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}" for err in exc.errors()
        )
        return await app_error_handler(request, ValidationError(f"Invalid request: {problems}"))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": str(exc) or "Internal Server Error"}, status_code=500)

    app.include_router(session_router, prefix="/api", tags=["session"])
    app.include_router(webhook_router, prefix="/api/webhook", tags=["webhook"])
    app.include_router(summary_router, prefix="/api", tags=["summary"])
    app.include_router(admin_router, prefix="/api", tags=["meetings"])

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app
