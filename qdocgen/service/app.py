"""FastAPI application serving documentation lookups."""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from ..logging import get_logger
from ..models import DocumentModel


class HealthResponse(BaseModel):
    status: str
    entries: int


class EntrySummary(BaseModel):
    key: str
    kind: str
    summary: str
    href: str


class DiagnosticResponse(BaseModel):
    kind: str
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    symbol: Optional[str] = None


def create_app(model_factory: Callable[[], DocumentModel]) -> FastAPI:
    """Create the FastAPI application; the model is built on first use and then shared."""

    app = FastAPI(title="qdocgen", version="1.0.0")
    logger = get_logger("service")
    lock = threading.Lock()
    holder: Dict[str, DocumentModel] = {}

    def get_model() -> DocumentModel:
        with lock:
            model = holder.get("model")
            if model is None:
                logger.info("Building document model for service")
                model = holder["model"] = model_factory()
            return model

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", entries=len(get_model()))

    @app.get("/entries", response_model=List[EntrySummary])
    def list_entries() -> List[EntrySummary]:
        model = get_model()
        return [
            EntrySummary(key=entry.key, kind=entry.kind.value, summary=entry.summary, href=entry.href)
            for entry in (model.entries[key] for key in sorted(model.entries))
        ]

    @app.get("/entries/{key:path}")
    def get_entry(key: str) -> Dict[str, Any]:
        entry = get_model().get(key)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"No documentation for {key}")
        return entry.to_dict()

    @app.get("/lookup")
    def lookup(name: str, scope: Optional[str] = None) -> Dict[str, Any]:
        entry = get_model().lookup(name, scope)
        if entry is None:
            raise HTTPException(status_code=404, detail=f"No documentation for {name}")
        return entry.to_dict()

    @app.get("/diagnostics", response_model=List[DiagnosticResponse])
    def diagnostics() -> List[DiagnosticResponse]:
        return [DiagnosticResponse(**item.to_dict()) for item in get_model().diagnostics]

    return app


def run_service(
    model_factory: Callable[[], DocumentModel], host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(model_factory), host=host, port=port)


__all__ = ["create_app", "run_service"]
