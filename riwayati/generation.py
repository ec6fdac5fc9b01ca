"""AI-assisted chapter generation.

The writer types a short idea or opening into the chapter editor; a
generative text provider turns it into a full chapter which replaces the
editor content. This module holds the pieces that do not depend on view
state: the minimum-draft gate, prompt construction and the provider
adapter.

Providers are plain classes with a ``name`` attribute and an async
``generate(prompt)`` method returning the generated text. The workspace
only relies on that shape, so tests can substitute any object that has
it. ``GeminiGenerator`` talks to Google's Gemini REST API via ``httpx``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from . import config

logger = logging.getLogger(__name__)

# Below this many words there is not enough of an idea to expand.
MIN_DRAFT_WORDS = 3

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GenerationError(Exception):
    """Raised when the provider answers but the answer holds no usable text."""


def count_words(text: Optional[str]) -> int:
    """Count whitespace-separated tokens in ``text``."""
    return len((text or "").split())


def has_enough_draft(text: Optional[str]) -> bool:
    return count_words(text) >= MIN_DRAFT_WORDS


def build_prompt(novel_title: Optional[str], novel_description: Optional[str],
                 chapter_title: Optional[str], draft: str) -> str:
    """Assemble the instruction sent to the provider."""
    return (
        "أنت كاتب روايات محترف ومبدع.\n"
        f"عنوان الرواية: {novel_title or ''}\n"
        f"وصف الرواية: {novel_description or ''}\n"
        f"عنوان الفصل الحالي: {chapter_title or ''}\n"
        "\n"
        "الفكرة أو البداية التي قدمها المستخدم:\n"
        f"{draft}\n"
        "\n"
        "المهمة: بناءً على الفكرة أعلاه، اكتب فصلاً كاملاً ومفصلاً بأسلوب أدبي رفيع.\n"
        "يجب أن يكون الفصل غنياً بالوصف والحوارات وتطور الأحداث.\n"
        "استخدم تنسيق Markdown (مثل استخدام **للخط العريض** أو *للخط المائل* عند الحاجة للتأكيد الدرامي).\n"
        "اكتب باللغة العربية الفصحى."
    )


class GeminiGenerator:
    """Chapter generator backed by the Gemini ``generateContent`` endpoint.

    Usage::

        generator = GeminiGenerator(api_key=os.environ["GEMINI_API_KEY"])
        text = await generator.generate(prompt)

    Transport and HTTP status failures surface as ``httpx.HTTPError``;
    a response without candidate text raises ``GenerationError``.
    Nothing is retried. ``transport`` is handed to ``httpx.AsyncClient``
    and exists so callers can route requests elsewhere.
    """

    name = "gemini"

    def __init__(self, api_key: str, model: str = config.GEMINI_MODEL,
                 timeout: float = config.GEMINI_TIMEOUT, base_url: str = GEMINI_BASE_URL,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def generate(self, prompt: str) -> str:
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        logger.debug("Requesting generation from %s (%d prompt chars)", self.model, len(prompt))
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.endpoint, headers=headers, json=payload)
            response.raise_for_status()
            try:
                data = response.json()
            except ValueError as e:
                raise GenerationError(f"Provider returned a non-JSON body: {e}") from e
        return _extract_text(data)


def _extract_text(data: Dict[str, Any]) -> str:
    """Join the text parts of the first candidate."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as e:
        raise GenerationError(f"Unexpected response from provider: {e!r}") from e
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text.strip():
        raise GenerationError("Provider returned an empty chapter")
    return text


def get_default_generator() -> Optional[GeminiGenerator]:
    """Return a Gemini generator when an API key is configured, else None."""
    if not config.GEMINI_API_KEY:
        return None
    return GeminiGenerator(api_key=config.GEMINI_API_KEY)
