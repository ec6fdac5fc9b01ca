"""Client-side data access and view state for the writing UI.

``Workspace`` is what a front end binds to. It issues the API calls,
keeps the library and the open novel in memory and reconciles that state
after every mutation. Rendering is left to the caller: after any
coroutine returns, the attributes below describe what should be on
screen.

* ``novels`` - the library list, without chapters.
* ``selected_novel`` - the open novel including its ``chapters``.
* ``selected_chapter`` - the chapter being edited.
* ``chapter_title`` / ``chapter_content`` - the editor buffers. They are
  copied from the selected chapter on selection and only written back
  by ``save_chapter``.
* ``is_generating`` - true while an AI generation is in flight.

Two hooks connect the workspace to the user. ``confirm(message)`` must
return True before anything is deleted. ``alert(message)`` receives
user-facing error messages; when omitted they are only logged. Apart
from deletion and generation failures, fetch errors are logged and the
state is left as it was.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from . import exporter
from .generation import build_prompt, get_default_generator, has_enough_draft

logger = logging.getLogger(__name__)

CONFIRM_DELETE_NOVEL = "هل أنت متأكد من حذف هذه الرواية بالكامل؟"
CONFIRM_DELETE_CHAPTER = "هل أنت متأكد من حذف هذا الفصل؟"
DELETE_NOVEL_FAILED = "فشل حذف الرواية: {error}"
DELETE_CHAPTER_FAILED = "فشل حذف الفصل: {error}"
DRAFT_TOO_SHORT = "يرجى كتابة 3 كلمات على الأقل لكي يتمكن الذكاء الاصطناعي من فهم فكرتك وتوليد فصل كامل."
GENERATION_UNAVAILABLE = "التوليد بالذكاء الاصطناعي غير مُفعّل."
GENERATION_FAILED = "فشل توليد المحتوى بالذكاء الاصطناعي. يرجى المحاولة مرة أخرى."
DEFAULT_CHAPTER_TITLE = "الفصل {index}"


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return default
    if isinstance(data, dict) and data.get("detail"):
        return str(data["detail"])
    return default


class Workspace:
    """In-memory view of the library backed by the HTTP API.

    ``http`` is an ``httpx.AsyncClient`` whose ``base_url`` points at the
    service. ``generator`` is any object with an async
    ``generate(prompt) -> str`` method; without one, AI generation is
    reported as unavailable.
    """

    def __init__(self, http: httpx.AsyncClient, confirm: Callable[[str], bool],
                 alert: Optional[Callable[[str], None]] = None, generator: Any = None) -> None:
        self.http = http
        self.confirm = confirm
        self.alert = alert or (lambda message: logger.warning("alert: %s", message))
        self.generator = generator

        self.novels: List[Dict[str, Any]] = []
        self.selected_novel: Optional[Dict[str, Any]] = None
        self.selected_chapter: Optional[Dict[str, Any]] = None
        self.chapter_title = ""
        self.chapter_content = ""
        self.is_generating = False

    @classmethod
    def for_service(cls, base_url: str, confirm: Callable[[str], bool],
                    alert: Optional[Callable[[str], None]] = None) -> "Workspace":
        """Build a workspace for the service at ``base_url``.

        Uses the configured Gemini generator, if any. Call ``aclose()``
        when done.
        """
        return cls(httpx.AsyncClient(base_url=base_url), confirm, alert, get_default_generator())

    async def aclose(self) -> None:
        await self.http.aclose()

    # Library

    async def fetch_novels(self) -> None:
        try:
            response = await self.http.get("/api/novels")
            response.raise_for_status()
            self.novels = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching novels: %s", e)

    async def create_novel(self, title: str, author: str = "", description: str = "") -> Optional[int]:
        """Create a novel, refresh the library and open the new novel."""
        try:
            response = await self.http.post(
                "/api/novels", json={"title": title, "author": author, "description": description}
            )
            response.raise_for_status()
            novel_id = response.json()["id"]
        except httpx.HTTPError as e:
            logger.error("Error creating novel: %s", e)
            return None
        await self.fetch_novels()
        await self.select_novel(novel_id)
        return novel_id

    async def _fetch_novel(self, novel_id: int) -> Optional[Dict[str, Any]]:
        try:
            response = await self.http.get(f"/api/novels/{novel_id}")
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching novel details: %s", e)
            return None

    async def select_novel(self, novel_id: int) -> None:
        """Open a novel and select its first listed chapter, if any."""
        novel = await self._fetch_novel(novel_id)
        if novel is None:
            return
        self.selected_novel = novel
        chapters = novel.get("chapters") or []
        if chapters:
            self.select_chapter(chapters[0])
        else:
            self.clear_chapter()

    def close_novel(self) -> None:
        self.selected_novel = None
        self.clear_chapter()

    async def delete_novel(self, novel_id: int) -> bool:
        """Delete a novel after confirmation. Returns True when deleted."""
        if not self.confirm(CONFIRM_DELETE_NOVEL):
            return False
        logger.info("Attempting to delete novel: %s", novel_id)
        try:
            response = await self.http.delete(f"/api/novels/{novel_id}")
        except httpx.HTTPError as e:
            logger.error("Error deleting novel: %s", e)
            self.alert(DELETE_NOVEL_FAILED.format(error=e))
            return False
        if response.is_error:
            error = _error_message(response, "Failed to delete novel")
            logger.error("Error deleting novel %s: %s", novel_id, error)
            self.alert(DELETE_NOVEL_FAILED.format(error=error))
            return False
        self.close_novel()
        await self.fetch_novels()
        return True

    # Chapters

    def select_chapter(self, chapter: Dict[str, Any]) -> None:
        self.selected_chapter = chapter
        self.chapter_title = chapter.get("title") or ""
        self.chapter_content = chapter.get("content") or ""

    def clear_chapter(self) -> None:
        self.selected_chapter = None
        self.chapter_title = ""
        self.chapter_content = ""

    async def create_chapter(self) -> Optional[Dict[str, Any]]:
        """Append a chapter to the open novel and select it.

        The ordinal is the current chapter count plus one. The chapter
        is selected only once the refreshed novel detail contains the
        stored record, so the selection never holds client-made values.
        """
        if not self.selected_novel:
            return None
        novel_id = self.selected_novel["id"]
        index = len(self.selected_novel.get("chapters") or []) + 1
        try:
            response = await self.http.post(
                f"/api/novels/{novel_id}/chapters",
                json={"title": DEFAULT_CHAPTER_TITLE.format(index=index), "content": "", "order_index": index},
            )
            response.raise_for_status()
            chapter_id = response.json()["id"]
        except httpx.HTTPError as e:
            logger.error("Error creating chapter: %s", e)
            return None

        novel = await self._fetch_novel(novel_id)
        if novel is None:
            return None
        self.selected_novel = novel
        chapter = next((ch for ch in novel.get("chapters") or [] if ch["id"] == chapter_id), None)
        if chapter is None:
            logger.error("Created chapter %s missing from novel %s", chapter_id, novel_id)
            return None
        self.select_chapter(chapter)
        return chapter

    async def save_chapter(self) -> bool:
        """Write the editor buffers to the selected chapter.

        The novel detail is refreshed afterwards so the chapter list
        shows the new title; the buffers are left as they are.
        """
        if not self.selected_chapter:
            return False
        chapter_id = self.selected_chapter["id"]
        try:
            response = await self.http.put(
                f"/api/chapters/{chapter_id}",
                json={"title": self.chapter_title, "content": self.chapter_content},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Error saving chapter %s: %s", chapter_id, e)
            return False

        if self.selected_novel:
            novel = await self._fetch_novel(self.selected_novel["id"])
            if novel is not None:
                self.selected_novel = novel
                for chapter in novel.get("chapters") or []:
                    if chapter["id"] == chapter_id:
                        self.selected_chapter = chapter
        return True

    async def delete_chapter(self, chapter_id: int) -> bool:
        """Delete a chapter after confirmation. Returns True when deleted."""
        if not self.confirm(CONFIRM_DELETE_CHAPTER):
            return False
        logger.info("Attempting to delete chapter: %s", chapter_id)
        try:
            response = await self.http.delete(f"/api/chapters/{chapter_id}")
        except httpx.HTTPError as e:
            logger.error("Error deleting chapter: %s", e)
            self.alert(DELETE_CHAPTER_FAILED.format(error=e))
            return False
        if response.is_error:
            error = _error_message(response, "Failed to delete chapter")
            logger.error("Error deleting chapter %s: %s", chapter_id, error)
            self.alert(DELETE_CHAPTER_FAILED.format(error=error))
            return False

        if self.selected_chapter and self.selected_chapter["id"] == chapter_id:
            self.clear_chapter()
        if self.selected_novel:
            await self.select_novel(self.selected_novel["id"])
        return True

    # Generation

    async def generate_chapter(self) -> bool:
        """Replace the content buffer with an AI-written chapter.

        The current buffer is the seed and must hold at least three
        words; shorter drafts are rejected without contacting the
        provider. On failure the buffer is kept and the user is alerted.
        """
        if not self.selected_novel or not self.selected_chapter:
            return False
        if self.is_generating:
            return False
        if not has_enough_draft(self.chapter_content):
            self.alert(DRAFT_TOO_SHORT)
            return False
        if self.generator is None:
            self.alert(GENERATION_UNAVAILABLE)
            return False

        prompt = build_prompt(
            self.selected_novel.get("title"),
            self.selected_novel.get("description"),
            self.chapter_title,
            self.chapter_content,
        )
        self.is_generating = True
        try:
            text = await self.generator.generate(prompt)
        except Exception:
            logger.exception("AI generation failed")
            self.alert(GENERATION_FAILED)
            return False
        finally:
            self.is_generating = False
        self.chapter_content = text
        return True

    # Export

    def export(self, fmt: str = "html") -> Optional[exporter.ExportResult]:
        """Build the open novel's document from the state held here."""
        if not self.selected_novel:
            return None
        return exporter.export_novel(self.selected_novel, fmt)

    def download(self, dest_dir: str, fmt: str = "html") -> Optional[str]:
        """Write the open novel's document into ``dest_dir``; returns the path."""
        if not self.selected_novel:
            return None
        return exporter.write_export(self.selected_novel, dest_dir, fmt)
