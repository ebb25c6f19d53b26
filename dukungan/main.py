from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dukungan.clients.github_store import GitHubTransactionStore
from dukungan.clients.memory_store import InMemoryTransactionStore
from dukungan.clients.mutasi import MutasiClient
from dukungan.clients.telegram import TelegramNotifier
from dukungan.config import Settings, get_settings
from dukungan.errors import DukunganError, ValidationError
from dukungan.logging_config import setup_logging
from dukungan.services.app_config import AppConfigStore

logger = structlog.get_logger(__name__)


def build_store(http: httpx.AsyncClient, settings: Settings):
    if settings.store_backend == "memory":
        return InMemoryTransactionStore()
    if not settings.github_configured:
        logger.warning(
            "store_not_configured",
            owner=settings.repo_owner,
            repo=settings.repo_name,
            branch=settings.branch,
            path=settings.json_file_path,
            has_token=bool(settings.github_token),
        )
        return None
    return GitHubTransactionStore(http, settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings)

    http = httpx.AsyncClient(timeout=settings.http_timeout)
    app.state.settings = settings
    app.state.store = build_store(http, settings)
    app.state.mutation_source = MutasiClient(http, settings)
    app.state.notifier = TelegramNotifier(http, settings)
    app.state.config_store = AppConfigStore(settings.app_config_path)
    logger.info(
        "app_started",
        store_backend=settings.store_backend,
        has_qris=bool(settings.data_statis_qris),
        has_telegram=settings.telegram_configured,
        has_mutasi=settings.mutasi_configured,
    )
    try:
        yield
    finally:
        await http.aclose()


app = FastAPI(
    title="Dukungan QRIS API",
    description="Donation page backend: dynamic QRIS generation, GitHub-backed transaction store and payment detection",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(DukunganError)
async def domain_error_handler(request: Request, exc: DukunganError):
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        status=exc.status_code,
        message=exc.message,
        detail=exc.detail,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "error": exc.detail or exc.message},
    )


def _field_name(loc) -> str:
    # Drop the "body" / "query" / "path" prefix FastAPI puts in front
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Schema failures get the same envelope as domain errors, as a 400."""
    errors = exc.errors()
    fields = sorted({_field_name(e.get("loc", ())) for e in errors if e.get("loc")})
    detail = "; ".join(f"{_field_name(e.get('loc', ()))}: {e.get('msg')}" for e in errors)
    message = f"Missing or invalid fields: {', '.join(fields)}" if fields else "Invalid request"
    return await domain_error_handler(request, ValidationError(message, detail=detail))


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "dukungan-qris"}


from dukungan.routers import config, transactions  # noqa: E402
app.include_router(transactions.router, prefix="/api/v1/transactions", tags=["transactions"])
app.include_router(config.router, prefix="/api/v1/config", tags=["config"])
