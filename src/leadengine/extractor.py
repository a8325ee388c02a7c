"""
LeadEngine extractor - grounded generation against an LLM provider.

Key design:
- One outbound call per search; no retry loop (the caller re-issues)
- Credential problems surface as ConfigurationError with a remediation hint
- Everything else the provider raises becomes UpstreamError with its message
- Citations ("grounding") are normalized to Source records
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .models import Source
from .query import extraction_schema


class LeadEngineError(Exception):
    """Base class for errors surfaced to the user."""

    pass


class ConfigurationError(LeadEngineError):
    """Raised when the provider credential is missing or invalid."""

    pass


class UpstreamError(LeadEngineError):
    """Raised when the provider call fails for any other reason."""

    pass


@dataclass
class ModelResponse:
    """Raw provider output: text expected to hold a JSON array, plus citations."""

    text: str = ""
    sources: list[Source] = field(default_factory=list)
    structured: bool = False


def _looks_like_auth_error(message: str) -> bool:
    message = message.lower()
    return any(
        marker in message
        for marker in ("api key", "api_key", "apikey", "unauthenticated", "permission denied")
    )


def _missing_key_message(env_var: str) -> str:
    return (
        f"{env_var} is not set or is invalid. "
        f"Add {env_var} to your environment or .env file and try again."
    )


class ExtractionProvider(ABC):
    """Abstract grounded-generation provider."""

    name: str = "base"
    # Structured responses follow extraction_schema() ({"leads": [...]})
    strict_schema: bool = False

    @abstractmethod
    def generate(
        self, prompt: str, grounding: bool = True, structured: bool = False
    ) -> ModelResponse:
        """Send one prompt and return the raw response."""
        pass


# =============================================================================
# GEMINI (default)
# =============================================================================


class GeminiProvider(ExtractionProvider):
    """Google Gemini with Google Search grounding."""

    name = "gemini"
    DEFAULT_MODEL = "gemini-3-flash-preview"
    ENV_KEY = "GEMINI_API_KEY"

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.api_key = api_key or os.getenv(self.ENV_KEY) or os.getenv("API_KEY")
        if not self.api_key:
            raise ConfigurationError(_missing_key_message(self.ENV_KEY))
        # Model can be set via env var LEADENGINE_MODEL
        self.model = model or os.getenv("LEADENGINE_MODEL", self.DEFAULT_MODEL)

        from google import genai

        self.client = genai.Client(api_key=self.api_key)

    def generate(
        self, prompt: str, grounding: bool = True, structured: bool = False
    ) -> ModelResponse:
        from google.genai import types

        json_mode = self.supports_json_mode(grounding) and structured
        config = types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())] if grounding else None,
            response_mime_type="application/json" if json_mode else None,
        )

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            # google.genai.errors.APIError carries .code and .message; transport errors don't
            message = getattr(e, "message", None) or str(e)
            if getattr(e, "code", None) in (401, 403) or _looks_like_auth_error(message):
                raise ConfigurationError(_missing_key_message(self.ENV_KEY)) from e
            raise UpstreamError(message) from e

        return ModelResponse(
            text=response.text or "",
            sources=self._grounding_sources(response),
            structured=False,
        )

    def supports_json_mode(self, grounding: bool) -> bool:
        """
        Whether the JSON mime type may be sent with this request.

        Gemini 2.x rejects the google_search tool combined with a JSON
        response mime type (400); Gemini 3 models accept it. Grounded
        requests to older models go out as free text and are parsed leniently.
        """
        if not grounding:
            return True
        return self.model.removeprefix("models/").startswith("gemini-3")

    @staticmethod
    def _grounding_sources(response: object) -> list[Source]:
        """Collect web citations from the first candidate's grounding chunks."""
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return []
        metadata = getattr(candidates[0], "grounding_metadata", None)
        chunks = getattr(metadata, "grounding_chunks", None) or []

        sources = []
        for chunk in chunks:
            web = getattr(chunk, "web", None)
            uri = getattr(web, "uri", None) if web else None
            if not uri:
                continue
            sources.append(Source(title=getattr(web, "title", None) or "Social Source", uri=uri))
        return sources


# =============================================================================
# OPENAI
# =============================================================================


class OpenAIProvider(ExtractionProvider):
    """OpenAI Responses API with the web_search tool."""

    name = "openai"
    strict_schema = True
    DEFAULT_MODEL = "gpt-5-mini"
    ENV_KEY = "OPENAI_API_KEY"

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.api_key = api_key or os.getenv(self.ENV_KEY)
        if not self.api_key:
            raise ConfigurationError(_missing_key_message(self.ENV_KEY))
        self.model = model or os.getenv("LEADENGINE_MODEL", self.DEFAULT_MODEL)

        from openai import OpenAI

        self.client = OpenAI(api_key=self.api_key)

    def generate(
        self, prompt: str, grounding: bool = True, structured: bool = False
    ) -> ModelResponse:
        import openai

        kwargs: dict = {"model": self.model, "input": prompt}
        if grounding:
            kwargs["tools"] = [{"type": "web_search"}]
        if structured:
            kwargs["text"] = {
                "format": {
                    "type": "json_schema",
                    "name": "CreatorLeads",
                    "strict": True,
                    "schema": extraction_schema(),
                }
            }

        try:
            response = self.client.responses.create(**kwargs)
        except openai.AuthenticationError as e:
            raise ConfigurationError(_missing_key_message(self.ENV_KEY)) from e
        except openai.OpenAIError as e:
            raise UpstreamError(str(e)) from e

        return ModelResponse(
            text=response.output_text or "",
            sources=self._citation_sources(response),
            structured=structured,
        )

    @staticmethod
    def _citation_sources(response: object) -> list[Source]:
        """Collect url_citation annotations from message output."""
        sources = []
        for item in getattr(response, "output", None) or []:
            if getattr(item, "type", None) != "message":
                continue
            for content in getattr(item, "content", None) or []:
                for annotation in getattr(content, "annotations", None) or []:
                    if getattr(annotation, "type", None) != "url_citation":
                        continue
                    url = getattr(annotation, "url", None)
                    if url:
                        sources.append(
                            Source(
                                title=getattr(annotation, "title", None) or "Social Source",
                                uri=url,
                            )
                        )
        return sources


# =============================================================================
# MOCK
# =============================================================================


class MockProvider(ExtractionProvider):
    """Mock provider for testing - returns canned responses in order."""

    name = "mock"

    def __init__(
        self, responses: list[ModelResponse] | None = None, error: Exception | None = None
    ):
        self.responses = list(responses or [])
        self.error = error
        self.prompts: list[str] = []

    def generate(
        self, prompt: str, grounding: bool = True, structured: bool = False
    ) -> ModelResponse:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if not self.responses:
            return ModelResponse(text="[]")
        if len(self.responses) == 1:
            return self.responses[0]
        return self.responses.pop(0)


PROVIDERS: dict[str, type[ExtractionProvider]] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
    "mock": MockProvider,
}


def get_extraction_provider(name: str | None = None) -> ExtractionProvider:
    """Factory to get the configured provider (LEADENGINE_PROVIDER, default gemini)."""
    name = (name or os.getenv("LEADENGINE_PROVIDER") or "gemini").lower()
    if name not in PROVIDERS:
        raise ConfigurationError(
            f"Unknown provider: {name}. Choose one of: {', '.join(sorted(PROVIDERS))}"
        )
    return PROVIDERS[name]()
