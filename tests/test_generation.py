"""Tests for the generation helpers and the Gemini provider."""

import json

import httpx
import pytest

from riwayati import config, generation
from riwayati.generation import GeminiGenerator, GenerationError


def _gemini_reply(*texts):
    return {"candidates": [{"content": {"parts": [{"text": t} for t in texts], "role": "model"}}]}


class TestDraftGate:
    @pytest.mark.parametrize("text,expected", [
        ("", 0),
        (None, 0),
        ("   \n\t ", 0),
        ("one", 1),
        ("one  two", 2),
        ("one\ntwo\tthree", 3),
        ("بطل يستيقظ في مدينة", 4),
    ])
    def test_count_words(self, text, expected):
        assert generation.count_words(text) == expected

    def test_has_enough_draft(self):
        assert not generation.has_enough_draft("two words")
        assert generation.has_enough_draft("now three words")


class TestBuildPrompt:
    def test_includes_context(self):
        prompt = generation.build_prompt("عنوان", "وصف", "فصل", "فكرة البداية هنا")
        assert "عنوان الرواية: عنوان" in prompt
        assert "وصف الرواية: وصف" in prompt
        assert "عنوان الفصل الحالي: فصل" in prompt
        assert "فكرة البداية هنا" in prompt

    def test_missing_description(self):
        prompt = generation.build_prompt("عنوان", None, "فصل", "a b c")
        assert "None" not in prompt


class TestGeminiGenerator:
    async def test_generate_posts_prompt(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_gemini_reply("الجزء الأول ", "والجزء الثاني"))

        generator = GeminiGenerator(api_key="secret", model="test-model",
                                    transport=httpx.MockTransport(handler))
        text = await generator.generate("اكتب فصلاً")

        assert text == "الجزء الأول والجزء الثاني"
        assert seen["url"] == f"{generation.GEMINI_BASE_URL}/models/test-model:generateContent"
        assert seen["key"] == "secret"
        assert seen["body"] == {"contents": [{"parts": [{"text": "اكتب فصلاً"}]}]}

    async def test_http_error_propagates(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503, json={"error": "busy"}))
        generator = GeminiGenerator(api_key="secret", transport=transport)
        with pytest.raises(httpx.HTTPStatusError):
            await generator.generate("prompt")

    @pytest.mark.parametrize("payload", [
        {},
        {"candidates": []},
        {"candidates": [{"finishReason": "SAFETY"}]},
        _gemini_reply("   "),
    ])
    async def test_unusable_response(self, payload):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
        generator = GeminiGenerator(api_key="secret", transport=transport)
        with pytest.raises(GenerationError):
            await generator.generate("prompt")

    async def test_non_json_body(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>proxy error</html>"))
        generator = GeminiGenerator(api_key="secret", transport=transport)
        with pytest.raises(GenerationError, match="non-JSON"):
            await generator.generate("prompt")


class TestDefaultGenerator:
    def test_none_without_key(self, monkeypatch):
        monkeypatch.setattr(config, "GEMINI_API_KEY", None)
        assert generation.get_default_generator() is None

    def test_gemini_with_key(self, monkeypatch):
        monkeypatch.setattr(config, "GEMINI_API_KEY", "abc")
        generator = generation.get_default_generator()
        assert isinstance(generator, GeminiGenerator)
        assert generator.api_key == "abc"
