"""
LeadEngine filtering - local re-validation of model output.

Every hard constraint stated in the extraction prompt is re-checked here,
since the model does not reliably follow instructions:
- follower floor (after normalizing "10.5k" style counts)
- contact presence (email or phone)
- duplicate usernames (against the exclusion list and within the batch)
- target city mentioned in the bio
"""

from __future__ import annotations

import random
import re
import string
import time
from collections.abc import Iterable
from dataclasses import dataclass, field

from .models import DEFAULT_MIN_FOLLOWERS, CreatorLead, RawLead, Source

# =============================================================================
# FOLLOWER COUNT NORMALIZATION
# =============================================================================

# Unit words stripped before parsing, longest first
FOLLOWER_WORDS = ("followers", "follower", "seguaci", "seguidores", "abonnés")

# Suffix multipliers
FOLLOWER_UNITS = {
    "k": 1_000,
    "m": 1_000_000,
}

_NUMBER_RE = re.compile(r"^(\d+(?:\.\d+)?)([a-z]?)$")
_DECIMAL_COMMA_RE = re.compile(r"^(\d+),(\d{1,2})([km])$")
_DOTTED_THOUSANDS_RE = re.compile(r"^\d{1,3}(?:\.\d{3})+$")


def _parse_count(text: str | None) -> int | None:
    """Parse a follower count; None when the text is not a count at all."""
    if text is None:
        return None

    value = str(text).lower().strip()
    for word in FOLLOWER_WORDS:
        value = value.replace(word, "")
    value = value.replace(" ", "").replace("+", "")

    # "1,2k" is a decimal comma, "12,345" is a thousands separator
    match = _DECIMAL_COMMA_RE.match(value)
    if match:
        value = f"{match.group(1)}.{match.group(2)}{match.group(3)}"
    else:
        value = value.replace(",", "")

    # "1.234.567" and "12.345" use dots as thousands separators
    if _DOTTED_THOUSANDS_RE.match(value):
        value = value.replace(".", "")

    match = _NUMBER_RE.match(value)
    if not match:
        return None

    number, unit = match.groups()
    if unit:
        multiplier = FOLLOWER_UNITS.get(unit)
        if multiplier is None:
            return None
        return int(round(float(number) * multiplier))
    return int(float(number))


def parse_follower_count(text: str | None) -> int:
    """
    Normalize a free-form follower count to an integer.

    "10.5k" -> 10500, "1.2M" -> 1200000, "12,345 followers" -> 12345,
    "1.234.567 follower" -> 1234567. Anything unparseable (including "") -> 0.
    """
    return _parse_count(text) or 0


def parse_follower_floor(min_followers: str | None) -> int:
    """Numeric floor for a SearchQuery; "0" disables it, unparseable floors use the default."""
    floor = _parse_count(min_followers)
    if floor is None:
        return parse_follower_count(DEFAULT_MIN_FOLLOWERS)
    return floor


# =============================================================================
# RECORD CHECKS
# =============================================================================


def has_contact(lead: RawLead) -> bool:
    """Loose contact check: an email with '@' or a phone longer than 5 chars."""
    return "@" in lead.email or len(lead.phone) > 5


def normalize_username(username: str) -> str:
    """Normalize a handle for duplicate checks."""
    return username.strip().lstrip("@").lower()


def bio_mentions_city(lead: RawLead, city: str) -> bool:
    """Check that the lowercase bio contains the lowercase city."""
    city = city.strip().lower()
    if not city:
        return True
    return city in lead.bio.lower()


def generate_lead_id(index: int = 0) -> str:
    """Timestamp + random suffix; unique within one process, never stable."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{int(time.time() * 1000)}-{index}-{suffix}"


# =============================================================================
# FILTER
# =============================================================================


@dataclass
class FilterPolicy:
    """Which local checks to enforce. Floor and city are on unless disabled."""

    enforce_follower_floor: bool = True
    enforce_city: bool = True
    require_contact: bool = True


@dataclass
class FilterReport:
    """Outcome of filtering one batch."""

    leads: list[CreatorLead] = field(default_factory=list)
    rejected: dict[str, int] = field(default_factory=dict)
    total: int = 0

    def reject(self, reason: str) -> None:
        self.rejected[reason] = self.rejected.get(reason, 0) + 1

    @property
    def dropped(self) -> int:
        return sum(self.rejected.values())


def filter_leads(
    raw_leads: Iterable[RawLead],
    existing_usernames: Iterable[str] = (),
    min_followers: str = DEFAULT_MIN_FOLLOWERS,
    city: str = "",
    policy: FilterPolicy | None = None,
) -> FilterReport:
    """
    Validate, dedupe and identify raw records.

    Records failing any enforced check are dropped and counted by reason.
    Survivors receive a freshly generated id.
    """
    policy = policy or FilterPolicy()
    floor = parse_follower_floor(min_followers)
    seen = {normalize_username(u) for u in existing_usernames if u}
    report = FilterReport()

    for raw in raw_leads:
        report.total += 1
        key = normalize_username(raw.username)

        if not key:
            report.reject("missing_username")
            continue
        if policy.require_contact and not has_contact(raw):
            report.reject("no_contact")
            continue
        if key in seen:
            report.reject("duplicate")
            continue
        if policy.enforce_follower_floor and parse_follower_count(raw.followers) < floor:
            report.reject("below_floor")
            continue
        if policy.enforce_city and not bio_mentions_city(raw, city):
            report.reject("city_mismatch")
            continue

        seen.add(key)
        report.leads.append(CreatorLead.from_raw(raw, generate_lead_id(len(report.leads))))

    return report


# =============================================================================
# SOURCES
# =============================================================================


def dedupe_sources(sources: Iterable[Source]) -> list[Source]:
    """Unique by uri; the last entry for a uri wins, first-seen order is kept."""
    by_uri: dict[str, Source] = {}
    for source in sources:
        by_uri[source.uri] = source
    return list(by_uri.values())


def merge_sources(accumulated: Iterable[Source], new: Iterable[Source]) -> list[Source]:
    """Merge newly returned sources into an accumulated list."""
    return dedupe_sources([*accumulated, *new])
