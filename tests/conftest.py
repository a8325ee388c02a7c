"""Pytest configuration and fixtures."""

import json

import pytest

from leadengine.extractor import MockProvider, ModelResponse
from leadengine.models import CreatorLead, RawLead, SearchQuery, Source


def _record(username: str, followers: str, bio: str, email: str = "", phone: str = "") -> dict:
    return {
        "name": username.replace("_", " ").title(),
        "username": username,
        "profileUrl": f"https://instagram.com/{username}",
        "followers": followers,
        "bio": bio,
        "email": email,
        "phone": phone,
        "category": "UGC Creator",
        "city": "Napoli",
        "industry": "Beauty",
    }


@pytest.fixture
def sample_query() -> SearchQuery:
    """The default Napoli beauty search."""
    return SearchQuery(
        role="UGC Creator",
        industry="Beauty",
        city="Napoli",
        platform="instagram.com",
        min_followers="300",
    )


@pytest.fixture
def first_page_records() -> list[dict]:
    """Six raw records; four pass follower, contact and city checks."""
    return [
        _record("giulia_ugc", "12.5k", "UGC creator beauty | Napoli", email="giulia@example.it"),
        _record("marco.fit", "2k", "Skincare e make-up, Napoli", phone="+39 333 1234567"),
        _record("sara_beauty", "850", "Beauty tips from napoli", email="sara@example.it"),
        _record("luca_makeup", "1.2M", "Make-up artist NAPOLI", email="luca@example.it"),
        _record("tiny_account", "150", "Napoli beauty", email="tiny@example.it"),
        _record("no_contact", "5k", "Napoli beauty lover"),
    ]


@pytest.fixture
def second_page_records() -> list[dict]:
    """Overlaps the first page on two usernames and adds one new creator."""
    return [
        _record("giulia_ugc", "12.5k", "UGC creator beauty | Napoli", email="giulia@example.it"),
        _record("marco.fit", "2k", "Skincare e make-up, Napoli", phone="+39 333 1234567"),
        _record("anna.napoli", "3.4k", "Beauty UGC da Napoli", email="anna@example.it"),
    ]


@pytest.fixture
def sample_sources() -> list[Source]:
    return [
        Source(title="Giulia on Instagram", uri="https://instagram.com/giulia_ugc"),
        Source(title="Marco", uri="https://instagram.com/marco.fit"),
    ]


@pytest.fixture
def mock_provider(
    first_page_records: list[dict],
    second_page_records: list[dict],
    sample_sources: list[Source],
) -> MockProvider:
    """Mock provider returning the first page wrapped in prose, then the second page."""
    first = "Here are the results:\n" + json.dumps(first_page_records) + "\nThanks!"
    return MockProvider(
        responses=[
            ModelResponse(text=first, sources=sample_sources),
            ModelResponse(text=json.dumps(second_page_records), sources=sample_sources[:1]),
        ]
    )


@pytest.fixture
def sample_raw_lead() -> RawLead:
    return RawLead.model_validate(
        _record("giulia_ugc", "12.5k", "UGC creator | Napoli", email="giulia@example.it")
    )


@pytest.fixture
def sample_lead(sample_raw_lead: RawLead) -> CreatorLead:
    return CreatorLead.from_raw(sample_raw_lead, "1700000000000-0-abc123xyz")
