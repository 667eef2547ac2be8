from __future__ import annotations

from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from docstore.deps import get_store, install_store
from docstore.runtime_profile import StoreSettings
from docstore.store import DocumentStore


def _build_app(engine, registry) -> FastAPI:
    app = FastAPI()
    install_store(app, engine=engine, settings=StoreSettings(), registry=registry)

    @app.middleware("http")
    async def tenant_context(request: Request, call_next):
        request.state.tenant_id = request.headers.get("x-tenant-id")
        request.state.trace_id = request.headers.get("x-trace-id")
        return await call_next(request)

    @app.post("/ledger")
    async def create_entry(payload: dict, store: DocumentStore = Depends(get_store)):
        return {"id": await store.insert("ledger", payload), "tenant_id": store.tenant_id}

    @app.get("/ledger")
    async def list_entries(status: str | None = None, store: DocumentStore = Depends(get_store)):
        predicate = {"status": status} if status else {}
        return {"items": await store.list("ledger", predicate)}

    @app.post("/ledger/search")
    async def search(predicate: dict, store: DocumentStore = Depends(get_store)):
        return {"count": await store.count("ledger", predicate)}

    return app


def test_store_dependency_reads_and_writes(engine, registry):
    client = TestClient(_build_app(engine, registry))

    created = client.post("/ledger", json={"status": "open", "note": "n"}, headers={"x-tenant-id": "tenant_a"})
    assert created.status_code == 200
    assert created.json()["tenant_id"] == "tenant_a"

    listed = client.get("/ledger", params={"status": "open"})
    assert listed.status_code == 200
    items = listed.json()["items"]
    assert [item["id"] for item in items] == [created.json()["id"]]
    assert items[0]["note"] == "n"


def test_store_errors_render_the_error_envelope(engine, registry):
    client = TestClient(_build_app(engine, registry))

    resp = client.post("/ledger/search", json={"amount": {"$where": "1"}}, headers={"x-trace-id": "trace_1"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "QUERY_UNSUPPORTED_OPERATOR"
    assert body["error"]["class"] == "validation"
    assert body["error"]["retryable"] is False
    assert body["meta"]["trace_id"] == "trace_1"
