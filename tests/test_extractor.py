"""Tests for extraction providers and error mapping."""

from types import SimpleNamespace

import httpx
import openai
import pytest

from leadengine.extractor import (
    ConfigurationError,
    GeminiProvider,
    MockProvider,
    ModelResponse,
    OpenAIProvider,
    UpstreamError,
    get_extraction_provider,
)


@pytest.fixture
def no_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("GEMINI_API_KEY", "API_KEY", "OPENAI_API_KEY", "LEADENGINE_PROVIDER"):
        monkeypatch.delenv(var, raising=False)


def _raiser(exc: Exception):
    def call(**_kwargs: object) -> None:
        raise exc

    return call


class TestProviderFactory:
    """Tests for get_extraction_provider."""

    def test_mock_by_name(self) -> None:
        assert isinstance(get_extraction_provider("mock"), MockProvider)

    def test_env_selects_provider(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LEADENGINE_PROVIDER", "MOCK")
        assert isinstance(get_extraction_provider(), MockProvider)

    def test_unknown_provider(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown provider"):
            get_extraction_provider("nope")

    def test_default_gemini_without_key(self, no_keys: None) -> None:
        """Missing credential is a configuration error naming the env var."""
        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
            get_extraction_provider()

    def test_openai_without_key(self, no_keys: None) -> None:
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            get_extraction_provider("openai")


class TestMockProvider:
    """Tests for MockProvider."""

    def test_records_prompts(self) -> None:
        provider = MockProvider([ModelResponse(text="[]")])
        provider.generate("hello")
        assert provider.prompts == ["hello"]

    def test_returns_responses_in_order(self) -> None:
        provider = MockProvider([ModelResponse(text="one"), ModelResponse(text="two")])
        assert provider.generate("a").text == "one"
        assert provider.generate("b").text == "two"
        assert provider.generate("c").text == "two"

    def test_empty_default(self) -> None:
        assert MockProvider().generate("x").text == "[]"

    def test_raises_configured_error(self) -> None:
        provider = MockProvider(error=UpstreamError("quota exceeded"))
        with pytest.raises(UpstreamError, match="quota exceeded"):
            provider.generate("x")


class TestGeminiProvider:
    """Tests for GeminiProvider with a stubbed client."""

    @pytest.fixture
    def provider(self) -> GeminiProvider:
        return GeminiProvider(api_key="test-key", model="gemini-test")

    def test_api_key_fallback_env(self, no_keys: None, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_KEY", "legacy-key")
        assert GeminiProvider().api_key == "legacy-key"

    def test_grounding_sources(self, provider: GeminiProvider) -> None:
        response = SimpleNamespace(
            text='[{"username": "a"}]',
            candidates=[
                SimpleNamespace(
                    grounding_metadata=SimpleNamespace(
                        grounding_chunks=[
                            SimpleNamespace(web=SimpleNamespace(title="Profile", uri="https://a")),
                            SimpleNamespace(web=SimpleNamespace(title=None, uri="https://b")),
                            SimpleNamespace(web=None),
                        ]
                    )
                )
            ],
        )
        captured: dict = {}

        def generate_content(**kwargs: object) -> SimpleNamespace:
            captured.update(kwargs)
            return response

        provider.client = SimpleNamespace(models=SimpleNamespace(generate_content=generate_content))
        result = provider.generate("prompt", grounding=True, structured=True)

        assert result.text == '[{"username": "a"}]'
        assert [(s.title, s.uri) for s in result.sources] == [
            ("Profile", "https://a"),
            ("Social Source", "https://b"),
        ]
        assert result.structured is False
        assert captured["model"] == "gemini-test"
        assert captured["config"].tools
        assert captured["config"].response_mime_type is None

    def test_default_model_sends_grounded_json(
        self, no_keys: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The default model accepts google_search together with a JSON mime type."""
        monkeypatch.delenv("LEADENGINE_MODEL", raising=False)
        provider = GeminiProvider(api_key="test-key")
        captured: dict = {}

        def generate_content(**kwargs: object) -> SimpleNamespace:
            captured.update(kwargs)
            return SimpleNamespace(text="[]", candidates=[])

        provider.client = SimpleNamespace(models=SimpleNamespace(generate_content=generate_content))
        provider.generate("prompt", grounding=True, structured=True)

        assert captured["model"] == GeminiProvider.DEFAULT_MODEL
        assert captured["model"].startswith("gemini-3")
        assert captured["config"].tools
        assert captured["config"].response_mime_type == "application/json"

    @pytest.mark.parametrize(
        ("model", "grounding", "expected"),
        [
            ("gemini-2.5-flash", True, False),
            ("gemini-2.0-flash", True, False),
            ("gemini-2.5-flash", False, True),
            ("gemini-3-flash-preview", True, True),
            ("models/gemini-3-pro-preview", True, True),
        ],
    )
    def test_json_mode_support(self, model: str, grounding: bool, expected: bool) -> None:
        """Gemini 2.x cannot combine search grounding with a JSON mime type."""
        provider = GeminiProvider(api_key="test-key", model=model)
        assert provider.supports_json_mode(grounding) is expected

    def test_older_model_grounded_request_omits_mime(self) -> None:
        provider = GeminiProvider(api_key="test-key", model="gemini-2.5-flash")
        captured: dict = {}

        def generate_content(**kwargs: object) -> SimpleNamespace:
            captured.update(kwargs)
            return SimpleNamespace(text="[]", candidates=[])

        provider.client = SimpleNamespace(models=SimpleNamespace(generate_content=generate_content))
        provider.generate("prompt", grounding=True, structured=True)

        assert captured["config"].tools
        assert captured["config"].response_mime_type is None

    def test_no_candidates(self, provider: GeminiProvider) -> None:
        response = SimpleNamespace(text=None, candidates=None)
        provider.client = SimpleNamespace(
            models=SimpleNamespace(generate_content=lambda **_kw: response)
        )
        result = provider.generate("prompt")
        assert result.text == ""
        assert result.sources == []

    def test_invalid_key_is_configuration_error(self, provider: GeminiProvider) -> None:
        provider.client = SimpleNamespace(
            models=SimpleNamespace(generate_content=_raiser(RuntimeError("API key not valid")))
        )
        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
            provider.generate("prompt")

    def test_other_errors_are_upstream(self, provider: GeminiProvider) -> None:
        provider.client = SimpleNamespace(
            models=SimpleNamespace(generate_content=_raiser(RuntimeError("Resource exhausted")))
        )
        with pytest.raises(UpstreamError, match="Resource exhausted"):
            provider.generate("prompt")


class TestOpenAIProvider:
    """Tests for OpenAIProvider with a stubbed client."""

    @pytest.fixture
    def provider(self) -> OpenAIProvider:
        return OpenAIProvider(api_key="sk-test", model="gpt-test")

    def test_citations_and_strict_format(self, provider: OpenAIProvider) -> None:
        response = SimpleNamespace(
            output_text='{"leads": []}',
            output=[
                SimpleNamespace(type="web_search_call"),
                SimpleNamespace(
                    type="message",
                    content=[
                        SimpleNamespace(
                            annotations=[
                                SimpleNamespace(type="url_citation", url="https://x", title="X"),
                                SimpleNamespace(type="file_citation"),
                            ]
                        )
                    ],
                ),
            ],
        )
        captured: dict = {}

        def create(**kwargs: object) -> SimpleNamespace:
            captured.update(kwargs)
            return response

        provider.client = SimpleNamespace(responses=SimpleNamespace(create=create))
        result = provider.generate("prompt", grounding=True, structured=True)

        assert result.structured is True
        assert [(s.title, s.uri) for s in result.sources] == [("X", "https://x")]
        assert captured["tools"] == [{"type": "web_search"}]
        assert captured["text"]["format"]["strict"] is True

    def test_free_text_mode(self, provider: OpenAIProvider) -> None:
        captured: dict = {}

        def create(**kwargs: object) -> SimpleNamespace:
            captured.update(kwargs)
            return SimpleNamespace(output_text="[]", output=[])

        provider.client = SimpleNamespace(responses=SimpleNamespace(create=create))
        result = provider.generate("prompt", grounding=False, structured=False)
        assert result.structured is False
        assert "tools" not in captured
        assert "text" not in captured

    def test_authentication_error(self, provider: OpenAIProvider) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/responses")
        error = openai.AuthenticationError(
            "Incorrect API key provided",
            response=httpx.Response(401, request=request),
            body=None,
        )
        provider.client = SimpleNamespace(responses=SimpleNamespace(create=_raiser(error)))
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            provider.generate("prompt")

    def test_connection_error_is_upstream(self, provider: OpenAIProvider) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/responses")
        error = openai.APIConnectionError(request=request)
        provider.client = SimpleNamespace(responses=SimpleNamespace(create=_raiser(error)))
        with pytest.raises(UpstreamError):
            provider.generate("prompt")
