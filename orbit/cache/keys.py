"""
Cache Key Builders

Key formats:
- {namespace}:{organization_id}                 org-scoped reference data
- {namespace}:{organization_id}:{filters}       org-scoped filtered lists
- {namespace}:{entity_id}                       single entities (ids are global)
- {namespace}:{user_id}                         per-user data

Filters are rendered by canonical_filters(), which is deterministic for
logically equal filter sets regardless of insertion order. Callers should
rely only on that, not on the exact rendering.
"""

import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Sequence
from uuid import UUID


class Namespace:
    """Fixed key namespaces, one per entity or aggregate kind."""
    ORGANIZATIONS = "orgs"
    ORGANIZATION = "org"
    MARKETS = "markets"
    VERTICALS = "verticals"
    PE_PLATFORMS = "pe-platforms"
    COMPANIES = "companies"
    CONTACTS = "contacts"
    CAMPAIGNS = "campaigns"
    ACTIVITIES = "activities"
    COMPANY = "company"
    CONTACT = "contact"
    CAMPAIGN = "campaign"
    QUERY = "query"
    USER_PROFILE = "profile"
    USER_ORGS = "user-orgs"
    STATS = "stats"
    COUNTS = "counts"


# Tag per non-JSON type, so a tagged value never equals a plain string
_TAGGED_TYPES = (
    (datetime, "__datetime__", lambda v: v.isoformat()),
    (date, "__date__", lambda v: v.isoformat()),
    (time, "__time__", lambda v: v.isoformat()),
    (UUID, "__uuid__", str),
    (Decimal, "__decimal__", str),
)


def _dump(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _canonical(value: Any) -> Any:
    """
    Reduce a filter value to plain JSON data with one form per logical value.

    - mappings: string keys only, values canonicalized
    - lists and tuples: order kept
    - sets and frozensets: ordered by the rendering of their members
    - dates, times, UUIDs and decimals: tagged objects

    Raises:
        TypeError: for non-string mapping keys and unsupported types
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Enum):
        return _canonical(value.value)
    if isinstance(value, Mapping):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(
                    f"Filter keys must be strings, got {type(key).__name__} key {key!r}"
                )
            result[key] = _canonical(item)
        return result
    if isinstance(value, (list, tuple)):
        return [_canonical(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted((_canonical(item) for item in value), key=_dump)
    for cls, tag, render in _TAGGED_TYPES:
        if isinstance(value, cls):
            return {tag: render(value)}
    raise TypeError(f"Unsupported filter value of type {type(value).__name__}: {value!r}")


def canonical_filters(filters: Optional[Mapping[str, Any]] = None) -> str:
    """
    Render a filter mapping as a stable string.

    Nested mappings are sorted too, and sets render the same whatever
    their iteration order. Dates, times, UUIDs and decimals are tagged so
    they never collide with an equal-looking string.

    Raises:
        TypeError: for non-string keys or values with no canonical form
    """
    return _dump(_canonical(filters or {}))


def _scoped(namespace: str, scope_id: str, filters: Optional[Mapping[str, Any]]) -> str:
    return f"{namespace}:{scope_id}:{canonical_filters(filters)}"


class CacheKeys:
    """Key builders for every cached entity and aggregate."""

    # Organization-scoped keys
    @staticmethod
    def organizations(user_id: str) -> str:
        return f"{Namespace.ORGANIZATIONS}:{user_id}"

    @staticmethod
    def organization(organization_id: str) -> str:
        return f"{Namespace.ORGANIZATION}:{organization_id}"

    # Reference data keys
    @staticmethod
    def markets(organization_id: str) -> str:
        return f"{Namespace.MARKETS}:{organization_id}"

    @staticmethod
    def verticals(organization_id: str) -> str:
        return f"{Namespace.VERTICALS}:{organization_id}"

    @staticmethod
    def pe_platforms(organization_id: str) -> str:
        return f"{Namespace.PE_PLATFORMS}:{organization_id}"

    # Filtered list keys
    @staticmethod
    def companies(organization_id: str, filters: Optional[Mapping[str, Any]] = None) -> str:
        return _scoped(Namespace.COMPANIES, organization_id, filters)

    @staticmethod
    def contacts(organization_id: str, filters: Optional[Mapping[str, Any]] = None) -> str:
        return _scoped(Namespace.CONTACTS, organization_id, filters)

    @staticmethod
    def campaigns(organization_id: str, filters: Optional[Mapping[str, Any]] = None) -> str:
        return _scoped(Namespace.CAMPAIGNS, organization_id, filters)

    @staticmethod
    def activities(organization_id: str, filters: Optional[Mapping[str, Any]] = None) -> str:
        return _scoped(Namespace.ACTIVITIES, organization_id, filters)

    # Single entity keys
    @staticmethod
    def company(company_id: str) -> str:
        return f"{Namespace.COMPANY}:{company_id}"

    @staticmethod
    def contact(contact_id: str) -> str:
        return f"{Namespace.CONTACT}:{contact_id}"

    @staticmethod
    def campaign(campaign_id: str) -> str:
        return f"{Namespace.CAMPAIGN}:{campaign_id}"

    # Query result keys
    @staticmethod
    def query(table: str, query: str, params: Sequence[Any] = ()) -> str:
        rendered = _dump(_canonical(list(params)))
        return f"{Namespace.QUERY}:{table}:{query}:{rendered}"

    # User-specific keys
    @staticmethod
    def user_profile(user_id: str) -> str:
        return f"{Namespace.USER_PROFILE}:{user_id}"

    @staticmethod
    def user_orgs(user_id: str) -> str:
        return f"{Namespace.USER_ORGS}:{user_id}"

    # Aggregation keys
    @staticmethod
    def stats(organization_id: str, kind: str) -> str:
        return f"{Namespace.STATS}:{organization_id}:{kind}"

    @staticmethod
    def counts(organization_id: str) -> str:
        return f"{Namespace.COUNTS}:{organization_id}"
