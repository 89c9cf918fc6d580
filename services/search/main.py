"""Search index service API built with FastAPI.

Holds one text document per food order and answers free-text queries
with matching order ids. The orders API keeps it up to date through
``HttpSearchIndexClient``; persistence is delegated to the
SQLAlchemy-backed ``repo.SearchRepo``.
"""

import logging
import time
import uuid

from fastapi import FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, Field
from pythonjsonlogger.json import JsonFormatter
from sqlalchemy import text

from repo import SearchRepo, engine, init_db

app = FastAPI(title="Search Service")

MAX_RESULTS = 1000

logger = logging.getLogger("search")
if not logger.handlers:
    h = logging.StreamHandler()
    h.setFormatter(JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"))
    logger.addHandler(h)
    logger.setLevel(logging.INFO)


@app.on_event("startup")
def _startup_db():
    # wait briefly until the database accepts connections
    deadline = time.time() + 30
    while True:
        try:
            with engine.connect() as conn:
                conn.execute(text("select 1"))
            break
        except Exception:
            if time.time() > deadline:
                raise
            time.sleep(1)
    init_db()


class DocumentIn(BaseModel):
    """Request body for indexing a food order.

    Attributes:
        text: Searchable attributes of the order, whitespace separated.
    """
    text: str = Field(max_length=10_000)


class SearchResponse(BaseModel):
    ids: list[int]


@app.get("/health")
def health():
    return {"ok": True}


@app.put("/documents/{doc_id}")
def upsert_document(doc_id: int, doc: DocumentIn):
    """Create or replace the document of food order ``doc_id``."""
    SearchRepo().upsert(doc_id, doc.text)
    return {"id": doc_id}


@app.delete("/documents/{doc_id}")
def delete_document(doc_id: int):
    """Remove a document.

    Raises:
        HTTPException: 404 when nothing is indexed under ``doc_id``.
    """
    if not SearchRepo().delete(doc_id):
        raise HTTPException(status_code=404, detail="NOT_FOUND")
    return {"id": doc_id}


@app.get("/search", response_model=SearchResponse)
def search(q: str = Query(default=""), limit: int = Query(default=MAX_RESULTS, gt=0, le=MAX_RESULTS)):
    """Return ids of documents containing every whitespace term of ``q``."""
    return SearchResponse(ids=SearchRepo().search(q, limit))


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = rid
    try:
        response = await call_next(request)
    finally:
        logger.info("request handled", extra={"request_id": rid, "path": request.url.path, "method": request.method})
    response.headers["X-Request-ID"] = rid
    return response
