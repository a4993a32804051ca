"""Tests for the Gemini transport, with the SDK patched out."""

import pytest

from expense_parser.services.extraction import (
    ExtractionServiceError,
    ExtractorUnavailableError,
)
from expense_parser.services.extraction import gemini_service
from expense_parser.services.extraction.gemini_service import GeminiTextExtractor


class FakeResponse:
    def __init__(self, text=None, blocked=False):
        self._text = text
        self._blocked = blocked

    @property
    def text(self):
        if self._blocked:
            raise ValueError("response was blocked")
        return self._text


class FakeModel:
    instances: list["FakeModel"] = []

    def __init__(self, model_name, generation_config):
        self.model_name = model_name
        self.generation_config = generation_config
        self.prompts: list[str] = []
        self.response = FakeResponse('{"items": "x", "amount": 1}')
        FakeModel.instances.append(self)

    async def generate_content_async(self, prompt):
        self.prompts.append(prompt)
        return self.response


@pytest.fixture
def fake_sdk(monkeypatch):
    configured = []
    FakeModel.instances = []
    monkeypatch.setattr(gemini_service.genai, "configure", lambda api_key: configured.append(api_key))
    monkeypatch.setattr(gemini_service.genai, "GenerativeModel", FakeModel)
    return configured


class TestGeminiTextExtractor:
    def test_empty_key_is_unavailable(self, fake_sdk):
        with pytest.raises(ExtractorUnavailableError):
            GeminiTextExtractor(api_key="")

    def test_configures_sdk(self, fake_sdk):
        extractor = GeminiTextExtractor(api_key="k1", temperature=0.2, max_output_tokens=256)
        assert fake_sdk == ["k1"]
        model = FakeModel.instances[0]
        assert model.model_name == "gemini-2.5-flash-lite"
        assert model.generation_config == {"temperature": 0.2, "max_output_tokens": 256}
        assert extractor.model_name == "gemini-2.5-flash-lite"

    def test_construction_failure(self, monkeypatch):
        def broken(api_key):
            raise RuntimeError("bad key")

        monkeypatch.setattr(gemini_service.genai, "configure", broken)
        with pytest.raises(ExtractorUnavailableError):
            GeminiTextExtractor(api_key="k1")

    @pytest.mark.asyncio
    async def test_extract_returns_text(self, fake_sdk):
        extractor = GeminiTextExtractor(api_key="k1")
        text = await extractor.extract("prompt")
        assert text == '{"items": "x", "amount": 1}'
        assert FakeModel.instances[0].prompts == ["prompt"]

    @pytest.mark.asyncio
    async def test_blocked_response(self, fake_sdk):
        extractor = GeminiTextExtractor(api_key="k1")
        FakeModel.instances[0].response = FakeResponse(blocked=True)
        with pytest.raises(ExtractionServiceError):
            await extractor.extract("prompt")

    @pytest.mark.asyncio
    async def test_empty_text(self, fake_sdk):
        extractor = GeminiTextExtractor(api_key="k1")
        FakeModel.instances[0].response = FakeResponse(text=None)
        assert await extractor.extract("prompt") == ""
