"""
LeadEngine query builder - facets to search query and extraction prompt.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from .models import RawLead, SearchQuery

# How many already-seen usernames go into -inurl: terms
MAX_EXCLUSIONS = 15

# How many profiles the model is asked for per call
TARGET_COUNT = 6

# Minimum posts a profile needs to count as active
MIN_POSTS = 10

QUALITY_SIGNALS = ['"reels"', '"posts"']

CONTACT_MARKERS = ['"email"', '"mail"', '"whatsapp"', '"cell"', '"+39"']


def build_search_query(
    query: SearchQuery,
    existing_usernames: Iterable[str] = (),
    max_exclusions: int = MAX_EXCLUSIONS,
) -> str:
    """
    Compose the weighted search-engine query for a set of facets.

    Only the first `max_exclusions` usernames become -inurl: terms, to keep
    the query short.
    """
    if query.has_default_floor:
        follower_phrase = '"followers"'
    else:
        follower_phrase = f'"{query.min_followers} followers"'

    facets = " ".join(p for p in (query.role, query.industry, query.city) if p)
    parts = [facets, follower_phrase, f"site:{query.platform}"]

    signals = list(QUALITY_SIGNALS)
    if query.city:
        signals.append(f'"{query.city}"')
    parts.append(" ".join(signals))
    parts.append(f"({' OR '.join(CONTACT_MARKERS)})")

    handles = [u.strip().lstrip("@") for u in existing_usernames]
    handles = [h for h in handles if h][:max_exclusions]
    if handles:
        parts.append(" ".join(f"-inurl:{h}" for h in handles))

    return " ".join(p for p in parts if p)


EXAMPLE_LEAD = {
    "name": "Display Name",
    "username": "handle",
    "profileUrl": "https://{platform}/handle",
    "followers": "12.5k",
    "bio": "Short excerpt of the bio",
    "email": "email or empty string",
    "phone": "phone or empty string",
    "category": "{role}",
    "city": "{city}",
    "industry": "{industry}",
}


ARRAY_OUTPUT = "Return ONLY a valid JSON array, no commentary. Use exactly these fields:"

OBJECT_OUTPUT = (
    'Return ONLY a JSON object of the form {"leads": [...]}, no commentary. '
    "Use exactly these fields for each lead:"
)


EXTRACTION_PROMPT = """You are an AI lead extraction agent for social-media creators.

Search query: {search_query}

TASK:
Use web search to identify {target_count} REAL creator profiles on {platform} based in {city}.
For each profile extract:
- Exact username and profile URL
- Follower count as shown on the profile (e.g. 12.5k, 2k)
- Profile bio (short excerpt)
- Email or mobile/WhatsApp number if publicly listed
- Category: {role}

HARD RULES (skip any profile that breaks one):
1. At least {min_followers} followers
2. At least {min_posts} posts
3. The profile shows visual content (reels, posts, photos)
4. The bio mentions {city}
5. The bio is relevant to {role} in {industry}
6. A public email or phone number is present
7. Never return these usernames: {excluded}

{output_instruction}
{example}
"""


def build_extraction_prompt(
    query: SearchQuery,
    search_query: str,
    existing_usernames: Iterable[str] = (),
    target_count: int = TARGET_COUNT,
    wrapped: bool = False,
) -> str:
    """
    Render the natural-language instructions sent to the model.

    With `wrapped`, the output instruction matches extraction_schema()
    ({"leads": [...]}) instead of a bare array.
    """
    example = {
        key: value.format(
            platform=query.platform, role=query.role, city=query.city, industry=query.industry
        )
        for key, value in EXAMPLE_LEAD.items()
    }
    excluded = [u for u in existing_usernames if u][:MAX_EXCLUSIONS]
    sample = {"leads": [example]} if wrapped else [example]

    return EXTRACTION_PROMPT.format(
        search_query=search_query,
        target_count=target_count,
        platform=query.platform,
        city=query.city or "any city",
        role=query.role,
        industry=query.industry,
        min_followers=query.min_followers,
        min_posts=MIN_POSTS,
        excluded=", ".join(excluded) if excluded else "(none)",
        output_instruction=OBJECT_OUTPUT if wrapped else ARRAY_OUTPUT,
        example=json.dumps(sample, indent=2, ensure_ascii=False),
    )


def extraction_schema() -> dict[str, Any]:
    """JSON schema for a strict response: {"leads": [RawLead, ...]}."""
    item = RawLead.model_json_schema(by_alias=True)
    item.pop("title", None)
    item["additionalProperties"] = False
    for prop in item.get("properties", {}).values():
        prop.pop("default", None)
        prop.pop("title", None)
    item["required"] = list(item.get("properties", {}).keys())

    return {
        "type": "object",
        "properties": {"leads": {"type": "array", "items": item}},
        "required": ["leads"],
        "additionalProperties": False,
    }
