# bookstream/main.py
# BookStream FastAPI application entry point
#
# Startup:  logging, storage backend + upload pipeline construction, DB check
# Shutdown: storage client + connection pool disposal
# Routes:   /api/health, /api/* (all endpoints via master router)
# Errors:   every error response is JSON with a "message" field

import logging
import traceback
from contextlib import asynccontextmanager

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookstream.api.router import api_router
from bookstream.core.config import settings
from bookstream.core.errors import BookStreamError
from bookstream.core.logging_config import configure_logging
from bookstream.core.storage_config import load_storage_config
from bookstream.db.session import check_db_connection, engine
from bookstream.services.book_parser import MetadataExtractor
from bookstream.services.file_storage import build_file_store
from bookstream.services.upload_pipeline import UploadPipeline

configure_logging(settings.log_level)
logger = logging.getLogger("bookstream")


def run_startup_migrations() -> bool:
    """Run `alembic upgrade head` using the project alembic.ini."""
    try:
        command.upgrade(Config("alembic.ini"), "head")
        logger.info("Database migrations: OK")
        return True
    except Exception as exc:
        logger.warning(f"Database migrations failed -- {exc}")
        return False


def init_services(app: FastAPI) -> None:
    """
    Build the storage configuration once and hand it to the services.
    Endpoints reach them through bookstream.core.dependencies.
    """
    storage_config = load_storage_config()
    file_store = build_file_store(storage_config)
    app.state.storage_config = storage_config
    app.state.file_store = file_store
    app.state.upload_pipeline = UploadPipeline(storage_config, file_store, MetadataExtractor())
    logger.info(f"Storage backend: {storage_config.kind.value}")


# ── Lifespan ──────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.app_version} [{settings.app_env}]")

    if settings.auto_migrate_on_startup:
        run_startup_migrations()

    if check_db_connection():
        logger.info("Database connection: OK")
    else:
        logger.warning("Database connection failed -- check DATABASE_URL")

    yield  # App runs here

    logger.info("Shutting down -- closing storage client and DB connection pool")
    app.state.file_store.close()
    engine.dispose()


# ── App Instance ──────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="BookStream -- upload, catalog and read PDF / EPUB books.",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
    debug=settings.debug,
)

init_services(app)


# ── CORS ──────────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error Responses ───────────────────────────────────────────────────────────

def jsonable_errors(errors) -> list:
    """Validation error details minus the raw input / ctx objects."""
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in errors
    ]


@app.exception_handler(BookStreamError)
async def bookstream_error_handler(request: Request, exc: BookStreamError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"message": message, "errors": jsonable_errors(errors)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} crashed: {exc}\n{traceback.format_exc()}")
    content = {"message": str(exc) or "Internal server error"}
    if not settings.is_production:
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=content)


# ── Routes ────────────────────────────────────────────────────────────────────

app.include_router(api_router, prefix="/api")


# ── Health Check ──────────────────────────────────────────────────────────────

@app.get("/api/health", tags=["Health"])
def health_check():
    """
    Liveness probe. Returns 200 while the process is up;
    database status is included for observability.
    """
    return JSONResponse(
        status_code=200,
        content={
            "status": "ok",
            "message": "BookStream API is running",
            "version": settings.app_version,
            "services": {
                "database": "ok" if check_db_connection() else "unavailable",
            },
        },
    )
