from __future__ import annotations

import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from docstore.db import Engine, create_engine
from docstore.errors import StoreError
from docstore.runtime_profile import StoreSettings
from docstore.schema_registry import DEFAULT_REGISTRY, SchemaRegistry
from docstore.schemas import error_envelope
from docstore.store import DocumentStore


def trace_id_from_request(request: Request) -> str:
    trace_id = getattr(request.state, "trace_id", None)
    if trace_id:
        return trace_id
    return uuid.uuid4().hex


def tenant_id_from_request(request: Request) -> str | None:
    return getattr(request.state, "tenant_id", None)


def install_store(
    app: FastAPI,
    *,
    engine: Engine | None = None,
    settings: StoreSettings | None = None,
    registry: SchemaRegistry = DEFAULT_REGISTRY,
) -> None:
    cfg = settings or StoreSettings.from_env()
    app.state.docstore_settings = cfg
    app.state.docstore_engine = engine or create_engine(cfg)
    app.state.docstore_registry = registry

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        return JSONResponse(
            status_code=exc.http_status,
            content=error_envelope(
                code=exc.code,
                message=exc.message,
                error_class=exc.error_class,
                retryable=exc.retryable,
                trace_id=trace_id_from_request(request),
            ),
        )


def get_store(request: Request) -> DocumentStore:
    cached = getattr(request.state, "docstore", None)
    if cached is not None:
        return cached
    app_state = request.app.state
    store = DocumentStore(
        app_state.docstore_engine,
        settings=app_state.docstore_settings,
        registry=app_state.docstore_registry,
        tenant_id=tenant_id_from_request(request),
    )
    request.state.docstore = store
    return store
