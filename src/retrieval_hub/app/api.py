# retrieval_hub/app/api.py
from __future__ import annotations

from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field
from retrieval_hub.common import RetrievalQuery
from retrieval_hub.config import GlobalConfig
from retrieval_hub.app.container import build_container
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4
import logging
import os

SERVICE_NAME = "retrieval-hub"

app = FastAPI(title="Retrieval Hub API", version="0.1.0")
logger = logging.getLogger("retrieval_hub.api")


class IndexDocument(BaseModel):
    content: str
    metadata: dict[str, Any] | None = None


class IndexRequest(BaseModel):
    documents: list[IndexDocument]
    options: dict[str, Any] | None = None


class SearchRequest(BaseModel):
    query: str
    top_k: int | None = Field(default=None, validation_alias=AliasChoices("top_k", "topK"))
    filters: dict[str, Any] | None = None
    include_metadata: bool = Field(
        default=False,
        validation_alias=AliasChoices("include_metadata", "includeMetadata"),
    )


class IrcotRequest(BaseModel):
    query: str
    context: str | None = None


def _envelope(trace_id: str, *, data: Any = None, error: dict[str, Any] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {
        "trace_id": trace_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
        "success": error is None,
    }
    if error is None:
        body["data"] = data
    else:
        body["error"] = error
    return body


def _failure(trace_id: str, message: str) -> JSONResponse:
    error = {"code": "INTERNAL_ERROR", "message": message, "retryable": True}
    return JSONResponse(status_code=500, content=_envelope(trace_id, error=error))


def _hub():
    return app.state.container.hub


@app.on_event("startup")
def startup():
    # Use env var so Docker can pass config location
    cfg_path = os.environ.get("RETRIEVAL_HUB_CONFIG", "/app/config/config.yaml")
    if Path(cfg_path).is_file():
        cfg = GlobalConfig.load(cfg_path)
    else:
        cfg = GlobalConfig({})

    logging.basicConfig(level=str(cfg.logging["level"]).upper())
    if cfg.config_path is None:
        logger.warning("Config file %s not found, using defaults", cfg_path)

    app.state.container = build_container(cfg)


@app.get("/health")
def health():
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "vectorStore": os.environ.get("VECTOR_STORE_TYPE", "memory"),
    }


@app.post("/index")
def index_documents(req: IndexRequest, x_trace_id: str | None = Header(default=None)):
    trace_id = x_trace_id or str(uuid4())
    try:
        documents = [doc.model_dump() for doc in req.documents]
        data = _hub().index_documents(documents, req.options)
        return _envelope(trace_id, data=data)
    except Exception:
        logger.exception("Error while handling /index")
        return _failure(trace_id, "Failed to index documents")


@app.post("/search")
def search(req: SearchRequest, x_trace_id: str | None = Header(default=None)):
    trace_id = x_trace_id or str(uuid4())
    try:
        result = _hub().search(
            RetrievalQuery(
                query=req.query,
                top_k=req.top_k,
                filters=req.filters,
                include_metadata=req.include_metadata,
            )
        )
        return _envelope(trace_id, data=result.to_dict())
    except Exception:
        logger.exception("Error while handling /search")
        return _failure(trace_id, "Search failed")


@app.post("/ircot")
def ircot(req: IrcotRequest, x_trace_id: str | None = Header(default=None)):
    trace_id = x_trace_id or str(uuid4())
    try:
        return _envelope(trace_id, data=_hub().retrieve_for_ircot(req.query, req.context))
    except Exception:
        logger.exception("Error while handling /ircot")
        return _failure(trace_id, "IRCoT retrieval failed")


@app.delete("/document/{doc_id}")
def delete_document(doc_id: str):
    try:
        deleted = _hub().delete_document(doc_id)
        return {"success": True, "deleted": deleted}
    except Exception as e:
        logger.exception("Error while handling /document/%s", doc_id)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})


@app.get("/stats")
def stats():
    return _hub().get_stats()
