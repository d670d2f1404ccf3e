"""Analysis endpoints and vulnerability-type catalogs."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from ciaa_dashboard.client import ApiClient
from ciaa_dashboard.errors import ApiError, is_not_found
from ciaa_dashboard.filters.vuln_types import (
    DEFAULT_VULNERABILITY_TYPE_OPTIONS,
    fallback_vulnerability_types,
    normalize_vulnerability_types,
    vulnerability_type_options,
)
from ciaa_dashboard.models import (
    AnalysisRecord,
    ComponentCount,
    IssuePage,
    SearchType,
    VulnerabilityTypeCount,
)
from ciaa_dashboard.services.issues import parse_component_counts, to_issue_page

logger = logging.getLogger(__name__)


class AnalysisService:
    """Auto-generated analysis lookups on top of an open ApiClient."""

    def __init__(self, client: ApiClient):
        self.client = client

    async def get_analysis(self, issue_id: int | str) -> AnalysisRecord | None:
        """Analysis for an issue, or None.

        A missing analysis is not an error for the issue view, so failures
        are logged and mapped to None.
        """
        try:
            raw = await self.client.get(f"/analysis/{issue_id}")
        except ApiError as exc:
            logger.info("No analysis available for issue %s: %s", issue_id, exc)
            return None
        if is_not_found(raw) or not isinstance(raw, dict):
            return None
        try:
            return AnalysisRecord.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Malformed analysis for issue %s: %s", issue_id, exc)
            return None

    async def get_vulnerability_types(self) -> list[str]:
        """Option labels for the vulnerability-type filter."""
        try:
            raw = await self.client.get("/vulnerability-types")
        except ApiError as exc:
            logger.error("Error fetching vulnerability types: %s", exc)
            return list(DEFAULT_VULNERABILITY_TYPE_OPTIONS)
        return vulnerability_type_options(raw)

    async def get_top_vulnerability_types(self, limit: int = 5) -> list[VulnerabilityTypeCount]:
        """Ranked vulnerability types. Never raises; falls back to a fixed catalog."""
        try:
            raw = await self.client.get("/top-vulnerability-types", {"limit": limit})
        except ApiError as exc:
            logger.error("Error fetching top vulnerability types, using fallback: %s", exc)
            return fallback_vulnerability_types()
        return normalize_vulnerability_types(raw, limit)

    async def get_cvss_statistics(self) -> dict[str, Any]:
        try:
            raw = await self.client.get("/cvss-statistics")
        except ApiError as exc:
            logger.error("Error fetching CVSS statistics: %s", exc)
            return {}
        return raw if isinstance(raw, dict) else {}

    async def get_top_vulnerable_components(self, limit: int = 10) -> list[ComponentCount]:
        try:
            raw = await self.client.get("/top-vulnerable-components", {"limit": limit})
        except ApiError as exc:
            logger.error("Error fetching top vulnerable components: %s", exc)
            return []
        return parse_component_counts(raw)

    async def get_issues_by_vulnerability_type(self, vuln_type: str, limit: int = 10) -> IssuePage:
        return to_issue_page(await self.client.get("/issues/search", {
            "type": SearchType.VULNERABILITY.value,
            "query": vuln_type,
            "limit": limit,
        }))

    async def get_high_cvss_issues(self, min_score: float = 7.0, limit: int = 10) -> IssuePage:
        return to_issue_page(await self.client.get("/issues", {"min_cvss": min_score, "limit": limit}))
