"""
LeadEngine pipeline - orchestrates query -> model -> parse -> filter.

The pipeline is stateless. Accumulation across "load more" calls lives in a
caller-owned Session that is threaded through each search.
"""

import uuid
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from .extractor import ExtractionProvider, get_extraction_provider
from .filtering import FilterPolicy, dedupe_sources, filter_leads
from .logger import ProgressLogger
from .models import SearchQuery, SearchResult, Session
from .parser import parse_leads
from .query import build_extraction_prompt, build_search_query

NO_RESULTS_MESSAGE = "No new profiles found with these criteria. Try changing city or niche."


def new_run_id() -> str:
    return datetime.now().strftime("%Y%m%d_%H%M%S") + "_" + uuid.uuid4().hex[:6]


def search(
    query: SearchQuery,
    existing_usernames: Sequence[str] = (),
    provider: ExtractionProvider | None = None,
    policy: FilterPolicy | None = None,
    logger: ProgressLogger | None = None,
) -> SearchResult:
    """
    Run one extraction call for a set of facets.

    Args:
        query: The facets chosen by the user.
        existing_usernames: Usernames already collected; excluded from results.
        provider: Extraction provider (defaults to LEADENGINE_PROVIDER).
        policy: Which local checks to enforce.
        logger: Progress logger; a quiet one is used if omitted.

    Returns:
        SearchResult with identified leads and deduplicated sources. An empty
        lead list is a normal outcome.

    Raises:
        ConfigurationError: The provider credential is missing or invalid.
        UpstreamError: The provider call failed.
    """
    logger = logger or ProgressLogger(new_run_id(), quiet=True)
    provider = provider or get_extraction_provider()

    logger.phase("Building query", f"{query.role} / {query.industry} / {query.city}")
    search_query = build_search_query(query, existing_usernames)
    prompt = build_extraction_prompt(
        query, search_query, existing_usernames, wrapped=provider.strict_schema
    )
    logger.query(search_query, excluded=len(existing_usernames))

    logger.phase("Querying model", provider.name)
    response = provider.generate(prompt, grounding=True, structured=True)
    logger.response(len(response.text), len(response.sources))

    logger.phase("Parsing response")
    raw_leads = parse_leads(response.text, structured=response.structured)
    if not raw_leads and response.text.strip() not in ("", "[]"):
        logger.warning("Model response contained no parseable lead array")

    report = filter_leads(
        raw_leads,
        existing_usernames=existing_usernames,
        min_followers=query.min_followers,
        city=query.city,
        policy=policy,
    )
    logger.extracted(report.total, len(report.leads), report.dropped)
    logger.rejections(report.rejected)

    return SearchResult(leads=report.leads, sources=dedupe_sources(response.sources))


def search_more(
    query: SearchQuery,
    session: Session,
    provider: ExtractionProvider | None = None,
    policy: FilterPolicy | None = None,
    logger: ProgressLogger | None = None,
) -> tuple[Session, SearchResult]:
    """Load more: search excluding the session's usernames, then merge."""
    result = search(
        query,
        existing_usernames=session.usernames(),
        provider=provider,
        policy=policy,
        logger=logger,
    )
    return session.merge(result), result


def run_search(
    query: SearchQuery,
    pages: int = 1,
    output: Path | None = None,
    output_format: str = "csv",
    provider: ExtractionProvider | None = None,
    policy: FilterPolicy | None = None,
    verbose: bool = False,
) -> Session:
    """
    Convenience function for the CLI: search `pages` times, then export.

    Stops early when a page yields no new leads.
    """
    from .exporter import export_leads

    logger = ProgressLogger(new_run_id(), verbose=verbose)
    provider = provider or get_extraction_provider()
    session = Session()

    logger.phase("Starting search", f"ID={logger.run_id}")
    for page in range(1, pages + 1):
        logger.page(page, pages)
        session, result = search_more(
            query, session, provider=provider, policy=policy, logger=logger
        )
        if result.is_empty:
            logger.warning(NO_RESULTS_MESSAGE)
            break

    output_str = ""
    if output is not None and session.leads:
        export_leads(session.leads, output, output_format, sources=session.sources)
        output_str = str(output)

    logger.finish(len(session.leads), output_str)
    return session
