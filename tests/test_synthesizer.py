"""
Tests for model selection, prompt construction and the Gemini client.
"""

import json

import httpx
import pytest
import respx

from readmegen.errors import ConfigurationError, NoModelAvailable, ProviderError
from readmegen.gemini_client import GeminiClient
from readmegen.settings import Settings
from readmegen.synthesizer import (
    NO_README_SENTINEL,
    build_prompt,
    extract_text,
    select_model,
    synthesize,
)

GEMINI_API = "https://generativelanguage.googleapis.com/v1beta"

GEN = ["generateContent", "countTokens"]
EMBED = ["embedContent"]

METADATA = {
    "name": "widget",
    "description": "A widget",
    "topics": ["cli", "tools"],
    "html_url": "https://github.com/acme/widget",
}


def _model(name: str, methods: list[str]) -> dict:
    return {"name": name, "supportedGenerationMethods": methods}


def _generation(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


# ── Model selection ────────────────────────────────────────────
class TestSelectModel:
    def test_prefers_first_non_pro_model(self):
        models = [
            _model("models/gemini-1.5-pro", GEN),
            _model("models/gemini-1.5-flash", GEN),
            _model("models/gemini-2.0-flash", GEN),
        ]
        assert select_model(models) == "models/gemini-1.5-flash"

    def test_falls_back_to_first_pro_model(self):
        models = [
            _model("models/embedding-001", EMBED),
            _model("models/gemini-1.5-pro", GEN),
            _model("models/gemini-2.5-pro", GEN),
        ]
        assert select_model(models) == "models/gemini-1.5-pro"

    def test_pro_match_is_case_insensitive(self):
        models = [
            _model("models/Gemini-PRO-vision", GEN),
            _model("models/gemini-1.0-Pro", GEN),
        ]
        assert select_model(models) == "models/Gemini-PRO-vision"

    def test_skips_models_without_generate_content(self):
        models = [
            _model("models/text-embedding-004", EMBED),
            _model("models/aqa", []),
            {"name": "models/no-methods"},
            _model("models/gemini-1.5-flash", GEN),
        ]
        assert select_model(models) == "models/gemini-1.5-flash"

    def test_no_capable_model_raises(self):
        models = [_model("models/text-embedding-004", EMBED), {"name": "models/x"}]
        with pytest.raises(NoModelAvailable):
            select_model(models)

    def test_empty_listing_raises(self):
        with pytest.raises(NoModelAvailable):
            select_model([])

    def test_selection_is_deterministic(self):
        models = [
            _model("models/gemini-1.5-pro", GEN),
            _model("models/gemini-1.5-flash-8b", GEN),
            _model("models/gemini-1.5-flash", GEN),
        ]
        assert select_model(models) == select_model(models) == "models/gemini-1.5-flash-8b"


# ── Prompt construction ────────────────────────────────────────
class TestBuildPrompt:
    def test_embeds_metadata(self):
        prompt = build_prompt(METADATA, {})
        assert "- Name: widget" in prompt
        assert "- Description: A widget" in prompt
        assert "- Topics: cli, tools" in prompt
        assert "- URL: https://github.com/acme/widget" in prompt

    def test_asks_for_every_readme_section(self):
        prompt = build_prompt(METADATA, {}).lower()
        for section in (
            "table of contents", "features", "installation", "prerequisites",
            "usage", "technologies", "contributing", "license", "roadmap",
        ):
            assert section in prompt
        assert "return only the final readme.md" in prompt

    def test_includes_files_in_map_order(self):
        files = {
            "package.json": '{"name": "widget"}',
            "src/index.ts": "export const answer = 42;",
        }
        prompt = build_prompt(METADATA, files)
        first = prompt.index("File: package.json\n\n{\"name\": \"widget\"}")
        second = prompt.index("File: src/index.ts\n\nexport const answer = 42;")
        assert first < second

    def test_includes_full_file_text(self):
        long_text = "line\n" * 5000
        prompt = build_prompt(METADATA, {"README.md": long_text})
        assert long_text in prompt

    def test_handles_missing_description_and_topics(self):
        prompt = build_prompt(
            {"name": "bare", "description": None, "topics": None, "html_url": "u"}, {},
        )
        assert "- Description: No description provided." in prompt
        assert "- Topics: none" in prompt
        assert "File:" not in prompt


# ── Response extraction ────────────────────────────────────────
class TestExtractText:
    def test_returns_first_candidate_first_part(self):
        response = {
            "candidates": [
                {"content": {"parts": [{"text": "# widget"}, {"text": "ignored"}]}},
                {"content": {"parts": [{"text": "second candidate"}]}},
            ]
        }
        assert extract_text(response) == "# widget"

    @pytest.mark.parametrize(
        "response",
        [
            {},
            {"candidates": []},
            {"candidates": [{"finishReason": "SAFETY"}]},
            {"candidates": [{"content": {"parts": []}}]},
            {"candidates": [{"content": {"parts": [{"text": ""}]}}]},
            {"candidates": None},
        ],
    )
    def test_missing_text_yields_sentinel(self, response):
        assert extract_text(response) == NO_README_SENTINEL


# ── Gemini client + synthesize ─────────────────────────────────
@pytest.mark.asyncio
@respx.mock
async def test_synthesize_happy_path(settings):
    list_route = respx.get(f"{GEMINI_API}/models").mock(
        return_value=httpx.Response(200, json={"models": [
            _model("models/gemini-1.5-pro", GEN),
            _model("models/gemini-1.5-flash", GEN),
        ]})
    )
    gen_route = respx.post(f"{GEMINI_API}/models/gemini-1.5-flash:generateContent").mock(
        return_value=httpx.Response(200, json=_generation("# widget\n..."))
    )

    gemini = GeminiClient(settings)
    try:
        readme = await synthesize(gemini, METADATA, {"LICENSE": "MIT"})
    finally:
        await gemini.aclose()

    assert readme == "# widget\n..."
    assert list_route.calls.last.request.headers["x-goog-api-key"] == "test-key"

    sent = json.loads(gen_route.calls.last.request.content)
    assert list(sent) == ["contents"]
    prompt = sent["contents"][0]["parts"][0]["text"]
    assert "File: LICENSE\n\nMIT" in prompt


@pytest.mark.asyncio
@respx.mock
async def test_synthesize_sends_generation_config_when_set():
    settings = Settings(
        _env_file=None, gemini_api_key="k",
        gemini_temperature=0.3, gemini_max_output_tokens=2048,
    )
    respx.get(f"{GEMINI_API}/models").mock(
        return_value=httpx.Response(200, json={"models": [_model("models/flash", GEN)]})
    )
    gen_route = respx.post(f"{GEMINI_API}/models/flash:generateContent").mock(
        return_value=httpx.Response(200, json=_generation("# ok"))
    )

    gemini = GeminiClient(settings)
    try:
        await synthesize(gemini, METADATA, {})
    finally:
        await gemini.aclose()

    sent = json.loads(gen_route.calls.last.request.content)
    assert sent["generationConfig"] == {"temperature": 0.3, "maxOutputTokens": 2048}


@pytest.mark.asyncio
@respx.mock
async def test_list_models_follows_pages(settings):
    respx.get(f"{GEMINI_API}/models").mock(
        side_effect=[
            httpx.Response(200, json={
                "models": [_model("models/embedding-001", EMBED)],
                "nextPageToken": "page-2",
            }),
            httpx.Response(200, json={"models": [_model("models/gemini-1.5-flash", GEN)]}),
        ]
    )

    gemini = GeminiClient(settings)
    try:
        models = await gemini.list_models()
    finally:
        await gemini.aclose()

    assert [m["name"] for m in models] == ["models/embedding-001", "models/gemini-1.5-flash"]
    assert respx.calls.last.request.url.params["pageToken"] == "page-2"


@pytest.mark.asyncio
async def test_synthesize_without_api_key_makes_no_calls():
    settings = Settings(_env_file=None, gemini_api_key="")

    with respx.mock(assert_all_called=False) as router:
        route = router.get(f"{GEMINI_API}/models")
        gemini = GeminiClient(settings)
        try:
            with pytest.raises(ConfigurationError):
                await synthesize(gemini, METADATA, {})
        finally:
            await gemini.aclose()

    assert not route.called


@pytest.mark.asyncio
@respx.mock
async def test_list_models_error_wraps_body(settings):
    respx.get(f"{GEMINI_API}/models").mock(
        return_value=httpx.Response(403, text='{"error": {"message": "API key not valid"}}')
    )

    gemini = GeminiClient(settings)
    try:
        with pytest.raises(ProviderError) as exc_info:
            await synthesize(gemini, METADATA, {})
    finally:
        await gemini.aclose()

    assert str(exc_info.value).startswith("Gemini ListModels error: ")
    assert "API key not valid" in exc_info.value.body


@pytest.mark.asyncio
@respx.mock
async def test_generation_error_wraps_body(settings):
    respx.get(f"{GEMINI_API}/models").mock(
        return_value=httpx.Response(200, json={"models": [_model("models/flash", GEN)]})
    )
    respx.post(f"{GEMINI_API}/models/flash:generateContent").mock(
        return_value=httpx.Response(500, text="internal")
    )

    gemini = GeminiClient(settings)
    try:
        with pytest.raises(ProviderError) as exc_info:
            await synthesize(gemini, METADATA, {})
    finally:
        await gemini.aclose()

    assert str(exc_info.value) == "Gemini API error: internal"


@pytest.mark.asyncio
@respx.mock
async def test_no_generation_model_raises(settings):
    respx.get(f"{GEMINI_API}/models").mock(
        return_value=httpx.Response(200, json={"models": [_model("models/embed", EMBED)]})
    )

    gemini = GeminiClient(settings)
    try:
        with pytest.raises(NoModelAvailable):
            await synthesize(gemini, METADATA, {})
    finally:
        await gemini.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_timeout_becomes_provider_error(settings):
    respx.get(f"{GEMINI_API}/models").mock(side_effect=httpx.ConnectTimeout("slow"))

    gemini = GeminiClient(settings)
    try:
        with pytest.raises(ProviderError):
            await gemini.list_models()
    finally:
        await gemini.aclose()
