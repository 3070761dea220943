from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.config import AppSettings, get_app_settings
from app.domain.errors import ExternalServiceError, FileIngestionError, UploadTooLargeError
from app.schemas.base import ErrorResponse
from db.repositories.errors import StorageError
from db.repositories.metric_store import MetricStore

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: datetime
    version: str


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db(store: MetricStore) -> None:
    """Run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    try:
        with store.session() as session:
            session.execute(text("SELECT 1"))
    except StorageError as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema(store: MetricStore) -> None:
    """
    Compare Base.metadata table names against the live DB schema.

    Every table registered on Base.metadata must exist in the database.
    If any are missing, log a critical error and abort startup so that
    the operator is forced to run migrations before serving traffic.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401 registers all ORM models on Base.metadata
    from db.base import Base

    inspector = sa_inspect(store.engine)
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        logger.critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


def _error_body(error: str, message: str | None = None) -> dict:
    return ErrorResponse(error=error, message=message).model_dump(exclude_none=True)


def _register_exception_handlers(application: FastAPI, settings: AppSettings) -> None:
    """
    Map the error taxonomy onto HTTP status codes.

    500 and 502 bodies only carry the underlying message in development
    environments.
    """

    def _detail(exc: Exception) -> str | None:
        return str(exc) if settings.is_development else None

    @application.exception_handler(UploadTooLargeError)
    async def _upload_too_large(_request: Request, exc: UploadTooLargeError) -> JSONResponse:
        return JSONResponse(
            status_code=413,
            content=_error_body(str(exc)),
        )

    @application.exception_handler(FileIngestionError)
    async def _file_ingestion_error(_request: Request, exc: FileIngestionError) -> JSONResponse:
        logger.info("Upload rejected: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(str(exc)),
        )

    @application.exception_handler(StorageError)
    async def _storage_error(_request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Storage operation failed", _detail(exc)),
        )

    @application.exception_handler(ExternalServiceError)
    async def _external_service_error(_request: Request, exc: ExternalServiceError) -> JSONResponse:
        logger.error("External service failure service=%s: %s", exc.service, exc.message)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=_error_body(
                f"Upstream {exc.service} request failed",
                exc.message if settings.is_development else None,
            ),
        )

    @application.exception_handler(HTTPException)
    async def _http_exception(_request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @application.exception_handler(RequestValidationError)
    async def _request_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                **_error_body("Invalid request"),
                "detail": jsonable_encoder(exc.errors()),
            },
        )


def create_app(
    *,
    metric_store: MetricStore | None = None,
    settings: AppSettings | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    An injected ``metric_store`` is used as-is and left open on shutdown;
    otherwise the lifespan opens one from the configured database URL.
    """

    _configure_logging()
    app_settings = settings or get_app_settings()

    @asynccontextmanager
    async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
        owns_store = metric_store is None
        store = metric_store or MetricStore.from_url()
        application.state.metric_store = store
        try:
            _check_db(store)
            logger.info("Database connectivity confirmed")
            if app_settings.auto_create_schema:
                store.create_schema()
                logger.info("Database schema created where missing")
            _check_schema(store)
            logger.info("Database schema validated")
            yield
        finally:
            if owns_store:
                store.close()
                logger.info("Metric store closed")

    application = FastAPI(
        title="Quarterly Metrics Dashboard API",
        version=app_settings.version,
        lifespan=_lifespan,
    )
    # Routes may run without the lifespan (plain TestClient construction).
    application.state.metric_store = metric_store

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[app_settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_exception_handlers(application, app_settings)

    from app.api.routers import analysis_router, data_router, hubspot_router, upload_router

    application.include_router(data_router)
    application.include_router(upload_router)
    application.include_router(analysis_router)
    application.include_router(hubspot_router)

    @application.get("/health", response_model=HealthResponse)
    def healthcheck() -> HealthResponse:
        return HealthResponse(
            timestamp=datetime.now(timezone.utc),
            version=app_settings.version,
        )

    return application


app = create_app()
