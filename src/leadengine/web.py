"""
LeadEngine web API - the POST endpoint behind the search form.
"""

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .extractor import (
    ConfigurationError,
    ExtractionProvider,
    LeadEngineError,
    get_extraction_provider,
)
from .logger import ProgressLogger
from .models import SearchQuery
from .pipeline import new_run_id, search
from .presets import FOLLOWER_OPTIONS, INDUSTRIES, PLATFORMS, ROLES

_error_logger = ProgressLogger("web", quiet=True)

SEARCH_FAILED_MESSAGE = "Lead search failed."


class SearchRequest(BaseModel):
    """Request body: facets plus the usernames already on screen."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    query: SearchQuery
    existing_usernames: list[str] = Field(default_factory=list, alias="existingUsernames")


def _describe_validation(exc: RequestValidationError) -> str:
    """Flatten validation errors into one message string."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "Invalid request. " + "; ".join(problems)


def get_provider() -> ExtractionProvider:
    """Dependency: the configured extraction provider."""
    return get_extraction_provider()


def create_app() -> FastAPI:
    app = FastAPI(
        title="LeadEngine",
        version="0.1.0",
        description="Creator lead search with grounded generation",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "GET"],
        allow_headers=["*"],
    )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        _error_logger.error(str(exc))
        return JSONResponse(status_code=500, content={"error": f"API configuration error. {exc}"})

    @app.exception_handler(LeadEngineError)
    async def lead_engine_error_handler(request: Request, exc: LeadEngineError) -> JSONResponse:
        _error_logger.error(str(exc))
        return JSONResponse(status_code=500, content={"error": str(exc) or SEARCH_FAILED_MESSAGE})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=422, content={"error": _describe_validation(exc)})

    @app.exception_handler(404)
    @app.exception_handler(405)
    async def http_error_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=getattr(exc, "status_code", 500),
            content={"error": str(getattr(exc, "detail", "")) or SEARCH_FAILED_MESSAGE},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        _error_logger.error(f"{type(exc).__name__}: {exc}")
        return JSONResponse(status_code=500, content={"error": str(exc) or SEARCH_FAILED_MESSAGE})

    @app.get("/api/options")
    def options() -> dict:
        """Choices for the search form."""
        return {
            "roles": ROLES,
            "industries": INDUSTRIES,
            "platforms": PLATFORMS,
            "followerOptions": [{"value": v, "label": label} for v, label in FOLLOWER_OPTIONS],
        }

    @app.post("/api/search-creators")
    def search_creators(
        request: SearchRequest,
        provider: ExtractionProvider = Depends(get_provider),
    ) -> dict:
        """Run one search and return {leads, sources}."""
        logger = ProgressLogger(new_run_id())
        result = search(request.query, request.existing_usernames, provider=provider, logger=logger)
        return result.to_payload()

    return app


app = create_app()
