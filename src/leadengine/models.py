"""
LeadEngine data models - pydantic schemas for creator lead search.

Design principles:
- SearchQuery is frozen: once sent it never changes
- RawLead is lenient (the model invents fields, nulls and numbers)
- CreatorLead is strict and always carries a process-generated id
- Session is caller-owned; the pipeline itself holds no state
- camelCase aliases on the wire, snake_case in Python
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_MIN_FOLLOWERS = "300"

# Strings the model uses to mean "not found"
SENTINEL_VALUES = {
    "not provided",
    "n/a",
    "none",
    "unknown",
    "not available",
    "not specified",
    "-",
    "null",
    "na",
    "email o vuoto",
    "telefono o vuoto",
    "vuoto",
}


def clean_value(value: Any) -> str:
    """Coerce a model-supplied value to a string, mapping sentinels to ''."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    if isinstance(value, bool):
        return ""
    text = str(value).strip()
    if text.lower() in SENTINEL_VALUES:
        return ""
    return text


# =============================================================================
# SEARCH QUERY
# =============================================================================


class SearchQuery(BaseModel):
    """Facets chosen by the user for one search submission."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    role: str = Field(default="UGC Creator", description="Creator role, e.g. 'UGC Creator'")
    industry: str = Field(default="Generale", description="Niche / industry")
    city: str = Field(default="Napoli", description="Target city, matched against the bio")
    platform: str = Field(default="instagram.com", description="Host suffix for site: scoping")
    min_followers: str = Field(
        default=DEFAULT_MIN_FOLLOWERS, description="Follower floor, e.g. '300', '1k', '50k'"
    )

    @field_validator("role", "industry", "city", "platform", "min_followers", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("platform")
    @classmethod
    def _normalize_platform(cls, value: str) -> str:
        value = value.lower()
        for prefix in ("https://", "http://", "www."):
            if value.startswith(prefix):
                value = value[len(prefix) :]
        return value.rstrip("/")

    @property
    def has_default_floor(self) -> bool:
        """True when the follower floor is the catch-all default or disabled ("0")."""
        return self.min_followers in ("", "0", DEFAULT_MIN_FOLLOWERS)


# =============================================================================
# LEADS
# =============================================================================

LEAD_FIELDS = (
    "name",
    "username",
    "profile_url",
    "followers",
    "bio",
    "email",
    "phone",
    "category",
    "industry",
    "city",
)


class RawLead(BaseModel):
    """A candidate record as emitted by the model (CreatorLead minus id)."""

    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    name: str = ""
    username: str = ""
    profile_url: str = ""
    followers: str = ""
    bio: str = ""
    email: str = ""
    phone: str = ""
    category: str = ""
    industry: str = ""
    city: str = ""

    @field_validator(*LEAD_FIELDS, mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> str:
        return clean_value(value)

    @field_validator("username")
    @classmethod
    def _strip_handle(cls, value: str) -> str:
        return value.lstrip("@").strip()


class CreatorLead(RawLead):
    """A validated lead with its process-generated identifier."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(..., min_length=1, description="Process-generated unique token")
    username: str = Field(..., min_length=1)

    @classmethod
    def from_raw(cls, raw: RawLead, lead_id: str) -> CreatorLead:
        """Attach an id to a raw record."""
        return cls(id=lead_id, **raw.model_dump())


# =============================================================================
# SOURCES & RESULTS
# =============================================================================


class Source(BaseModel):
    """A grounding citation returned alongside the model's answer."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(default="Social Source")
    uri: str = Field(..., min_length=1)


class SearchResult(BaseModel):
    """The atomic unit returned by one extraction call."""

    model_config = ConfigDict(extra="forbid")

    leads: list[CreatorLead] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.leads

    def to_payload(self) -> dict[str, Any]:
        """Serialize with camelCase keys for the HTTP surface."""
        return self.model_dump(mode="json", by_alias=True)


class Session(BaseModel):
    """
    Leads and sources accumulated across repeated "load more" searches.

    Owned by the caller and threaded explicitly through each search.
    merge() returns a new Session rather than mutating this one.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    leads: list[CreatorLead] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)

    def usernames(self) -> list[str]:
        """Exclusion list for the next search."""
        return [lead.username for lead in self.leads]

    def merge(self, result: SearchResult) -> Session:
        """Append new leads (skipping known usernames) and merge sources by uri."""
        from .filtering import merge_sources, normalize_username

        seen = {normalize_username(u) for u in self.usernames()}
        leads = list(self.leads)
        for lead in result.leads:
            key = normalize_username(lead.username)
            if key in seen:
                continue
            seen.add(key)
            leads.append(lead)

        return Session(leads=leads, sources=merge_sources(self.sources, result.sources))
