"""Compose outbound issue queries from search text, filters and pagination."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ciaa_dashboard.config import settings
from ciaa_dashboard.filters.state import ActiveFilterState
from ciaa_dashboard.models import IssueRecord, QueryKind, QueryParams, SearchType

# The backend's accepted name for this filter has changed more than once;
# all of them are sent together.
VULNERABILITY_ALIASES = ("vulnerability_type", "vulnerability", "vuln_type", "root_cause_tag")

# Listing parameters passed straight through from the initial request.
ECHOED_LISTING_PARAMS = ("cve_id", "issue_id", "version", "search", "vulnerability")

# Home-page search box: search type -> listing parameter.
_REDIRECT_PARAMS = {
    SearchType.CVE: "cve_id",
    SearchType.ISSUE: "issue_id",
    SearchType.COMPONENT: "component",
    SearchType.VERSION: "version",
    SearchType.VULNERABILITY: "vulnerability",
}


def parse_search_type(value: str | SearchType | None) -> SearchType:
    if not value:
        return SearchType.ALL
    try:
        return SearchType(str(getattr(value, "value", value)).strip().lower())
    except ValueError:
        allowed = ", ".join(t.value for t in SearchType)
        raise ValueError(f"Unsupported search type '{value}'. Supported: {allowed}") from None


def _join(values: list[str]) -> str | None:
    return ",".join(values) if values else None


def _has_cve_param(filters: ActiveFilterState) -> dict[str, str]:
    # Absent means "no filter"; never send has_cve=false.
    return {"has_cve": "true"} if filters.has_cve else {}


def _auxiliary_params(filters: ActiveFilterState) -> dict[str, str]:
    params = {
        "severity": _join(filters.severity),
        "priority": _join(filters.priority),
        "component": _join(filters.components),
        "os": _join(filters.os),
    }
    cleaned = {k: v for k, v in params.items() if v}
    cleaned.update(_has_cve_param(filters))
    return cleaned


def compose_query(
    free_text: str,
    search_type: str | SearchType | None,
    filters: ActiveFilterState,
    page: int | None = None,
    limit: int | None = None,
    initial: Mapping[str, Any] | None = None,
) -> QueryParams:
    """Build the request for the current search box, filters and page.

    Priority: free text -> search; selected vulnerability types -> search on
    the first selected label; otherwise a plain listing request.
    """
    pagination = {
        "page": page or settings.default_page,
        "limit": limit or settings.default_page_size,
    }
    term = (free_text or "").strip()

    if term:
        params: dict[str, str | int] = {
            "query": term,
            "type": parse_search_type(search_type).value,
            **pagination,
        }
        params.update(_auxiliary_params(filters))
        return QueryParams(kind=QueryKind.SEARCH, params=params)

    if filters.vulnerability_types:
        joined = ",".join(filters.vulnerability_types)
        params = {
            "query": filters.vulnerability_types[0],
            "type": SearchType.VULNERABILITY.value,
            **pagination,
        }
        params.update({alias: joined for alias in VULNERABILITY_ALIASES})
        params.update(_auxiliary_params(filters))
        return QueryParams(kind=QueryKind.SEARCH, params=params)

    listing = {
        "severity": _join(filters.severity),
        "priority": _join(filters.priority),
        "status": _join(filters.status),
        "component": _join(filters.components),
        "os": _join(filters.os),
    }
    params = {**pagination, **{k: v for k, v in listing.items() if v}}
    params.update(_has_cve_param(filters))
    for key in ECHOED_LISTING_PARAMS:
        value = (initial or {}).get(key)
        if value not in (None, ""):
            params[key] = str(value)
    return QueryParams(kind=QueryKind.LISTING, params=params)


def search_redirect_params(term: str, search_type: str | SearchType | None = None) -> dict[str, str]:
    """Listing parameters for a home-page search submission."""
    term = (term or "").strip()
    if not term:
        return {}
    key = _REDIRECT_PARAMS.get(parse_search_type(search_type), "search")
    return {key: term}


# --- Exact-match promotion ---

def _as_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _move_to_front(items: list[IssueRecord], index: int) -> list[IssueRecord]:
    return [items[index], *items[:index], *items[index + 1:]]


def _promote_issue_id(items: list[IssueRecord], issue_id: int) -> list[IssueRecord] | None:
    for index, item in enumerate(items):
        if item.issue_id == issue_id:
            return _move_to_front(items, index)
    return None


def _promote_cve(items: list[IssueRecord], cve_id: str) -> list[IssueRecord] | None:
    wanted = cve_id.strip().lower()
    for index, item in enumerate(items):
        if item.cve_id and item.cve_id.lower() == wanted:
            return _move_to_front(items, index)
    return None


def promote_exact_match(
    items: list[IssueRecord],
    issue_id: Any = None,
    cve_id: str | None = None,
    search: Any = None,
) -> list[IssueRecord]:
    """Move the single exactly-matching record to position 0.

    Checked in order: numeric ``issue_id``, case-insensitive ``cve_id``,
    numeric free-text ``search`` against issue ids. Other items keep their
    relative order; no match returns the items unchanged.
    """
    wanted_id = _as_int(issue_id)
    if wanted_id is not None:
        promoted = _promote_issue_id(items, wanted_id)
        if promoted is not None:
            return promoted

    if cve_id:
        promoted = _promote_cve(items, cve_id)
        if promoted is not None:
            return promoted

    search_id = _as_int(search)
    if search_id is not None:
        promoted = _promote_issue_id(items, search_id)
        if promoted is not None:
            return promoted

    return list(items)


def promote_search_match(items: list[IssueRecord], query: Any) -> list[IssueRecord]:
    """Promotion for the search endpoint: numeric ids and ``CVE-`` queries."""
    if _as_int(query) is not None:
        return promote_exact_match(items, issue_id=query)
    if isinstance(query, str) and query.strip().lower().startswith("cve-"):
        return promote_exact_match(items, cve_id=query)
    return list(items)
