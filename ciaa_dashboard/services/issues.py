"""Issue endpoints: listing, search, detail, filter catalogs and dashboard counts."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError

from ciaa_dashboard.client import ApiClient
from ciaa_dashboard.config import settings
from ciaa_dashboard.errors import ApiError, is_not_found
from ciaa_dashboard.filters.query import (
    VULNERABILITY_ALIASES,
    promote_exact_match,
    promote_search_match,
)
from ciaa_dashboard.models import ComponentCount, IssuePage, IssueRecord, Statistics

logger = logging.getLogger(__name__)

# Dashboard placeholder totals used when the backend cannot answer.
FALLBACK_CVE_TOTAL = 156
FALLBACK_STATUS_TOTAL = 723

_SEARCH_PASSTHROUGH = (*VULNERABILITY_ALIASES, "severity", "priority", "component", "os")


def to_issue_page(raw: Any) -> IssuePage:
    """Decode an ``{items, total, pages}`` payload; not-found is an empty page."""
    if is_not_found(raw) or not isinstance(raw, dict):
        return IssuePage()
    try:
        return IssuePage.model_validate(raw)
    except ValidationError as exc:
        raise ApiError(f"Malformed issue page: {exc.error_count()} invalid field(s)") from exc


def _has_cve(params: dict[str, Any]) -> None:
    """Send ``has_cve=true`` or nothing at all."""
    if "has_cve" not in params:
        return
    if params["has_cve"] is True or params["has_cve"] == "true":
        params["has_cve"] = "true"
    else:
        del params["has_cve"]


def _string_list(raw: Any, key: str) -> list[str]:
    if is_not_found(raw) or not isinstance(raw, dict):
        return []
    values = []
    for item in raw.get(key) or []:
        if isinstance(item, dict):
            item = item.get("tag") or item.get("value") or item.get("name")
        if item:
            values.append(str(item))
    return values


def _count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def parse_component_counts(raw: Any) -> list[ComponentCount]:
    """``{components: [...]}``, ``{components: {name: count}}`` or a bare list."""
    if is_not_found(raw) or raw is None:
        return []
    components = raw.get("components") if isinstance(raw, dict) else raw
    if isinstance(components, dict):
        counts = [
            ComponentCount(name=str(name), count=_count(count))
            for name, count in components.items()
            if isinstance(count, (int, float)) and not isinstance(count, bool)
        ]
        return sorted(counts, key=lambda c: c.count, reverse=True)
    if isinstance(components, list):
        return [
            ComponentCount(name=str(item["name"]), count=_count(item.get("count")))
            for item in components
            if isinstance(item, dict) and item.get("name")
        ]
    return []


def sample_recent_issues(now: datetime | None = None) -> IssuePage:
    """Placeholder recent issues shown when the backend has none."""
    now = now or datetime.now(timezone.utc)
    samples = [
        (1234567, "CVE-2023-1234", "Use-after-free vulnerability in Blink rendering engine", "Critical", 5, ["Blink", "Rendering"]),
        (1234568, "CVE-2023-5678", "Buffer overflow in V8 JavaScript engine", "High", 10, ["V8", "JavaScript"]),
        (1234569, None, "Type confusion in WebRTC implementation", "Medium", 15, ["WebRTC", "Media"]),
        (1234570, "CVE-2023-9012", "Cross-site scripting vulnerability in Chrome Extensions", "High", 20, ["Extensions", "Security"]),
        (1234571, None, "Memory corruption in PDF renderer", "Medium", 25, ["PDF", "Rendering"]),
    ]
    items = [
        IssueRecord(
            id=index,
            issue_id=issue_id,
            cve_id=cve_id,
            title=title,
            severity=severity,
            public_time=now - timedelta(days=days_ago),
            component_tags=tags,
        )
        for index, (issue_id, cve_id, title, severity, days_ago, tags) in enumerate(samples, start=1)
    ]
    return IssuePage(items=items, total=len(items))


class IssueService:
    """Issue-related backend calls on top of an open ApiClient."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def get_issues(self, params: Mapping[str, Any] | None = None) -> IssuePage:
        """List issues with filtering; an exact id/CVE match is moved to the top.

        Errors propagate so the caller can show its banner.
        """
        params = dict(params or {})
        api_params = dict(params)
        _has_cve(api_params)

        page = to_issue_page(await self.client.get("/issues", api_params))
        items = promote_exact_match(
            page.items,
            issue_id=params.get("issue_id"),
            cve_id=params.get("cve_id"),
            search=params.get("search"),
        )
        return page.model_copy(update={"items": items})

    async def get_issue(self, issue_id: int | str) -> IssueRecord | None:
        """Fetch a single issue; None when the backend does not know it."""
        raw = await self.client.get(f"/issues/{issue_id}")
        if is_not_found(raw):
            return None
        try:
            return IssueRecord.model_validate(raw)
        except ValidationError as exc:
            raise ApiError(f"Malformed issue {issue_id}: {exc.error_count()} invalid field(s)") from exc

    async def search_issues(self, search_params: Mapping[str, Any]) -> IssuePage:
        """Search issues. Never raises: failures yield an empty page."""
        api_params: dict[str, Any] = {
            "query": search_params.get("query") or search_params.get("term") or search_params.get("search") or "",
            "type": search_params.get("type") or "all",
            "page": search_params.get("page") or settings.default_page,
            "limit": search_params.get("limit") or settings.default_page_size,
        }
        for key in _SEARCH_PASSTHROUGH:
            if search_params.get(key):
                api_params[key] = search_params[key]
        if "has_cve" in search_params:
            api_params["has_cve"] = search_params["has_cve"]
            _has_cve(api_params)

        logger.debug("Searching with params: %s", api_params)
        try:
            page = to_issue_page(await self.client.get("/issues/search", api_params))
        except ApiError as exc:
            logger.error("Error searching issues: %s", exc)
            return IssuePage(items=[], total=0, pages=1)

        items = promote_search_match(page.items, api_params["query"])
        return page.model_copy(update={"items": items})

    # --- Filter catalogs ---

    async def get_component_tags(self) -> list[str]:
        try:
            return _string_list(await self.client.get("/component-tags"), "tags")
        except ApiError as exc:
            logger.error("Error fetching component tags: %s", exc)
            return []

    async def get_os_values(self) -> list[str]:
        try:
            return _string_list(await self.client.get("/os-values"), "values")
        except ApiError as exc:
            logger.error("Error fetching OS values: %s", exc)
            return []

    async def get_milestone_values(self) -> list[str]:
        try:
            return _string_list(await self.client.get("/milestone-values"), "values")
        except ApiError as exc:
            logger.error("Error fetching milestone values: %s", exc)
            return []

    # --- Dashboard ---

    async def get_statistics(self) -> Statistics:
        """Aggregate counts. Not-found leaves ``total_issues`` unset; errors zero it."""
        try:
            raw = await self.client.get("/statistics")
        except ApiError as exc:
            logger.error("Error fetching statistics: %s", exc)
            return Statistics(total_issues=0)
        if is_not_found(raw) or not isinstance(raw, dict):
            return Statistics()
        try:
            return Statistics.model_validate(raw)
        except ValidationError as exc:
            logger.error("Malformed statistics payload: %s", exc)
            return Statistics(total_issues=0)

    async def get_top_components(self, limit: int = 10) -> list[ComponentCount]:
        try:
            raw = await self.client.get("/top-vulnerable-components", {"limit": limit})
        except ApiError as exc:
            logger.error("Error fetching top components: %s", exc)
            return []
        return parse_component_counts(raw)

    async def get_recent_issues(self, limit: int = 5) -> IssuePage:
        """Newest public CVE issues, one fallback sort, then placeholder samples."""
        try:
            page = to_issue_page(await self.client.get("/issues", {
                "page": 1,
                "limit": limit,
                "sort_by": "public_time",
                "has_cve": "true",
                "sort_order": "desc",
            }))
            if not page.items:
                logger.info("Falling back to create_time for sorting recent issues")
                page = to_issue_page(await self.client.get("/issues", {
                    "page": 1,
                    "limit": limit,
                    "sort_by": "create_time",
                    "sort_order": "desc",
                }))
        except ApiError as exc:
            logger.error("Error fetching recent issues: %s", exc)
            return IssuePage()

        if not page.items:
            logger.info("Falling back to sample data for recent issues")
            return sample_recent_issues()
        return page

    async def get_issues_by_severity(self, severity: str, limit: int = 10) -> IssuePage:
        return to_issue_page(await self.client.get("/issues", {"page": 1, "limit": limit, "severity": severity}))

    async def get_issues_by_component(self, component: str, limit: int = 10) -> IssuePage:
        return to_issue_page(await self.client.get("/issues", {"page": 1, "limit": limit, "component": component}))

    async def get_issues_by_cve(self, limit: int = 10) -> IssuePage:
        """Issues with a CVE id; placeholder total when the filter is unsupported."""
        return await self._count_with_fallback(
            {"page": 1, "limit": limit, "has_cve": "true"},
            FALLBACK_CVE_TOTAL,
        )

    async def get_issues_by_status(self, status: str, limit: int = 10) -> IssuePage:
        return await self._count_with_fallback(
            {"page": 1, "limit": limit, "status": status},
            FALLBACK_STATUS_TOTAL,
        )

    async def _count_with_fallback(self, params: dict[str, Any], fallback_total: int) -> IssuePage:
        try:
            page = to_issue_page(await self.client.get("/issues", params))
        except ApiError as exc:
            logger.error("Error fetching issue counts for %s: %s", params, exc)
            return IssuePage(items=[], total=fallback_total)
        if not page.items:
            logger.info("Falling back to placeholder total %d for %s", fallback_total, params)
            return IssuePage(items=[], total=fallback_total)
        return page
