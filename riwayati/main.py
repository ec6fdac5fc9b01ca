"""FastAPI application for the novel service.

This module defines the JSON API used by the writing UI: novels and
their chapters can be listed, fetched, created, overwritten and
deleted, and a novel can be downloaded as a document. Handlers are
stateless; each request gets its own SQLite connection through the
``get_db`` dependency, so the persistence helpers never see a global
handle.

Failures follow one policy. A missing novel or chapter on a read is a
404. Anything unexpected, including constraint violations raised by the
store (missing title, unknown ``novel_id``), is logged with its
traceback and answered with a plain 500. Mutations on unknown ids are
not errors: they report ``changes: 0``.

Use ``create_app(db_path)`` to build an application bound to a specific
database; the module-level ``app`` uses ``config.DB_PATH``.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Iterator, List, Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response

from . import config, db, exporter

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"


def get_db(request: Request) -> Iterator[sqlite3.Connection]:
    """Yield a connection to the app's database, closed after the response."""
    conn = db.connect(request.app.state.db_path)
    try:
        yield conn
    finally:
        conn.close()


async def _read_body(request: Request) -> Dict[str, Any]:
    data = await request.json()
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def create_app(db_path: Optional[str] = None) -> FastAPI:
    """Build the API application bound to ``db_path``."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        conn = db.connect(app.state.db_path)
        try:
            db.init_db(conn)
        finally:
            conn.close()
        logger.info("Database ready at %s", app.state.db_path)
        yield

    app = FastAPI(title="Riwayati Novel Writing Service", lifespan=lifespan)
    app.state.db_path = db_path or config.DB_PATH

    @app.get("/api/novels")
    async def list_novels(conn: sqlite3.Connection = Depends(get_db)) -> List[Dict[str, Any]]:
        try:
            return db.list_novels(conn)
        except Exception:
            logger.exception("Error fetching novels")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    @app.post("/api/novels")
    async def create_novel(request: Request, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
        """Create a novel from ``{title, author?, description?}``."""
        try:
            data = await _read_body(request)
            novel_id = db.create_novel(conn, data.get("title"), data.get("author"), data.get("description"))
        except Exception:
            logger.exception("Error creating novel")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        logger.info("Created novel %s", novel_id)
        return {"id": novel_id}

    @app.get("/api/novels/{novel_id}")
    async def get_novel(novel_id: int, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
        """Return the novel with its chapters sorted by ``order_index``."""
        try:
            novel = db.get_novel(conn, novel_id)
        except Exception:
            logger.exception("Error fetching novel details")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        if not novel:
            raise HTTPException(status_code=404, detail="Novel not found")
        return novel

    @app.delete("/api/novels/{novel_id}")
    async def delete_novel(novel_id: int, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
        logger.info("Deleting novel with id: %s", novel_id)
        try:
            changes = db.delete_novel(conn, novel_id)
        except Exception:
            logger.exception("Error deleting novel")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        logger.info("Delete novel %s removed %d row(s)", novel_id, changes)
        return {"success": True, "changes": changes}

    @app.get("/api/novels/{novel_id}/export")
    async def export_novel(novel_id: int, fmt: str = Query("html", alias="format"),
                           conn: sqlite3.Connection = Depends(get_db)) -> Response:
        """Download the novel as ``html`` (a .doc file) or ``txt``."""
        if fmt not in exporter.EXPORT_FORMATS:
            raise HTTPException(status_code=400, detail="Unsupported format")
        try:
            novel = db.get_novel(conn, novel_id)
        except Exception:
            logger.exception("Error fetching novel for export")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        if not novel:
            raise HTTPException(status_code=404, detail="Novel not found")
        try:
            filename, media_type, payload = exporter.export_novel(novel, fmt)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        # Titles are usually Arabic, so the name goes in the RFC 5987 form
        disposition = f"attachment; filename*=utf-8''{quote(filename)}"
        return Response(content=payload, media_type=media_type,
                        headers={"Content-Disposition": disposition})

    @app.post("/api/novels/{novel_id}/chapters")
    async def create_chapter(novel_id: int, request: Request,
                             conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
        """Create a chapter from ``{title, content, order_index}``.

        An unknown ``novel_id`` fails the foreign key and yields a 500.
        """
        try:
            data = await _read_body(request)
            chapter_id = db.create_chapter(conn, novel_id, data.get("title"), data.get("content"),
                                           data.get("order_index"))
        except Exception:
            logger.exception("Error creating chapter")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        logger.info("Created chapter %s for novel %s", chapter_id, novel_id)
        return {"id": chapter_id}

    @app.get("/api/chapters/{chapter_id}")
    async def get_chapter(chapter_id: int, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
        try:
            chapter = db.get_chapter(conn, chapter_id)
        except Exception:
            logger.exception("Error fetching chapter")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        if not chapter:
            raise HTTPException(status_code=404, detail="Chapter not found")
        return chapter

    @app.put("/api/chapters/{chapter_id}")
    async def update_chapter(chapter_id: int, request: Request,
                             conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
        """Overwrite a chapter's title and content with ``{title, content}``."""
        try:
            data = await _read_body(request)
            changes = db.update_chapter(conn, chapter_id, data.get("title"), data.get("content"))
        except Exception:
            logger.exception("Error updating chapter")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        return {"success": True, "changes": changes}

    @app.delete("/api/chapters/{chapter_id}")
    async def delete_chapter(chapter_id: int, conn: sqlite3.Connection = Depends(get_db)) -> Dict[str, Any]:
        logger.info("Deleting chapter with id: %s", chapter_id)
        try:
            changes = db.delete_chapter(conn, chapter_id)
        except Exception:
            logger.exception("Error deleting chapter")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        logger.info("Delete chapter %s removed %d row(s)", chapter_id, changes)
        return {"success": True, "changes": changes}

    return app


app = create_app()
