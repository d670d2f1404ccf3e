"""View loaders: dashboard summary, issue detail, filter catalogs and the issue list."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from ciaa_dashboard.config import settings
from ciaa_dashboard.errors import ApiError
from ciaa_dashboard.filters.query import compose_query
from ciaa_dashboard.filters.state import ActiveFilterState, FilterOptions
from ciaa_dashboard.filters.vuln_types import fallback_vulnerability_types
from ciaa_dashboard.models import (
    ComponentCount,
    DashboardData,
    IssueDetail,
    IssuePage,
    IssueRecord,
    QueryKind,
    QueryParams,
    SearchType,
)
from ciaa_dashboard.sequencer import RequestSequencer
from ciaa_dashboard.services.analysis import AnalysisService
from ciaa_dashboard.services.issues import IssueService

logger = logging.getLogger(__name__)

MOCK_DATA_WARNING = "Warning: Using mock data. Backend API may not be fully implemented."
CONNECTION_FAILED = "Failed to connect to backend API. Using mock data instead."
ISSUE_LOAD_FAILED = "Failed to load issue details. Please try again later."
ISSUE_LIST_FAILED = "Failed to load issues. Please try again later."


def mock_dashboard(banner: str) -> DashboardData:
    """Placeholder dashboard shown when the backend data is unusable."""
    recent = [
        (1, 1234567, "Use-after-free in V8", "High", "Fixed", "V8", "CVE-2023-1234", "2023-05-15T10:30:00Z"),
        (2, 1234568, "Buffer overflow in PDF renderer", "Critical", "Fixed", "PDF", "CVE-2023-5678", "2023-05-14T14:45:00Z"),
        (3, 1234569, "Type confusion in JavaScript engine", "High", "Assigned", "JavaScript", "CVE-2023-9012", "2023-05-13T09:15:00Z"),
        (4, 1234570, "Cross-site scripting in Extensions", "Medium", "New", "Extensions", None, "2023-05-12T16:20:00Z"),
        (5, 1234571, "Memory corruption in Media", "High", "Verified", "Media", "CVE-2023-3456", "2023-05-11T11:10:00Z"),
    ]
    return DashboardData(
        total_issues=1245,
        cve_count=156,
        fixed_count=723,
        recent_count=24,
        top_components=[
            ComponentCount(name=name, count=count)
            for name, count in (("Blink", 187), ("V8", 156), ("UI", 124), ("Security", 98), ("Network", 76))
        ],
        top_vulnerability_types=fallback_vulnerability_types(),
        recent_issues=[
            IssueRecord(
                id=id_,
                issue_id=issue_id,
                title=title,
                severity=severity,
                status=status,
                component_tags=[component],
                cve_id=cve_id,
                public_time=public_time,
            )
            for id_, issue_id, title, severity, status, component, cve_id, public_time in recent
        ],
        banner=banner,
    )


async def load_dashboard(
    issues: IssueService,
    analysis: AnalysisService,
    limit: int = 0,
) -> DashboardData:
    """Gather the home-page summary, substituting mock data when unusable."""
    limit = limit or settings.top_items_limit
    try:
        stats = await issues.get_statistics()

        cve_count = stats.cve_count
        if not cve_count:
            cve_count = (await issues.get_issues_by_cve()).total
        fixed_count = stats.fixed_count
        if not fixed_count:
            fixed_count = (await issues.get_issues_by_status("Fixed")).total

        top_components = await issues.get_top_components(limit)
        recent = await issues.get_recent_issues(settings.recent_issues_limit)
        recent_count = stats.recently_added_issues or len(recent.items)
        top_types = await analysis.get_top_vulnerability_types(limit)
    except ApiError as exc:
        logger.error("Error fetching dashboard data: %s", exc)
        return mock_dashboard(CONNECTION_FAILED)

    if stats.total_issues is None or not top_components:
        logger.warning("Invalid data received from API, using mock data")
        return mock_dashboard(MOCK_DATA_WARNING)

    return DashboardData(
        total_issues=stats.total_issues,
        cve_count=cve_count or 0,
        fixed_count=fixed_count or 0,
        recent_count=recent_count,
        top_components=top_components,
        top_vulnerability_types=top_types,
        recent_issues=recent.items,
    )


async def load_issue_detail(
    issues: IssueService,
    analysis: AnalysisService,
    issue_id: int | str,
) -> IssueDetail:
    """Issue plus its analysis; the analysis is fetched independently and is optional."""
    try:
        issue = await issues.get_issue(issue_id)
    except ApiError as exc:
        logger.error("Error fetching issue details for %s: %s", issue_id, exc)
        return IssueDetail(error=ISSUE_LOAD_FAILED)
    if issue is None:
        return IssueDetail(error=f"Issue {issue_id} not found.")

    return IssueDetail(issue=issue, analysis=await analysis.get_analysis(issue_id))


async def load_filter_options(issues: IssueService, analysis: AnalysisService) -> FilterOptions:
    """Fetch the option catalogs. Each call already falls back on its own."""
    components, os_values, milestones, vuln_types = await asyncio.gather(
        issues.get_component_tags(),
        issues.get_os_values(),
        issues.get_milestone_values(),
        analysis.get_vulnerability_types(),
    )
    return FilterOptions(
        components=components,
        os=os_values,
        milestones=milestones,
        vulnerability_types=vuln_types,
    )


class IssueListController:
    """Issue list state: filters in, latest page out.

    Only the response to the most recently issued request is applied; an
    older response that arrives late is discarded.
    """

    def __init__(
        self,
        issues: IssueService,
        state: ActiveFilterState | None = None,
        sequencer: RequestSequencer | None = None,
    ):
        self.issues = issues
        self.state = state if state is not None else ActiveFilterState()
        self.sequencer = sequencer or RequestSequencer()
        self.page = IssuePage()
        self.query: QueryParams | None = None
        self.error: str | None = None

    async def refresh(
        self,
        free_text: str = "",
        search_type: str | SearchType | None = SearchType.ALL,
        page: int | None = None,
        limit: int | None = None,
        initial: Mapping[str, Any] | None = None,
    ) -> IssuePage:
        query = compose_query(free_text, search_type, self.state, page, limit, initial)
        ticket = self.sequencer.next()
        try:
            if query.kind is QueryKind.SEARCH:
                result = await self.issues.search_issues(query.params)
            else:
                result = await self.issues.get_issues(query.params)
        except ApiError as exc:
            logger.error("Error fetching issues: %s", exc)
            self.sequencer.apply(ticket, lambda: self._fail(query))
            return self.page

        if self.sequencer.apply(ticket, lambda: self._show(query, result)) is None:
            logger.debug("Discarding stale response for request %d", ticket)
        return self.page

    def _show(self, query: QueryParams, result: IssuePage) -> bool:
        self.query = query
        self.page = result
        self.error = None
        return True

    def _fail(self, query: QueryParams) -> bool:
        self.query = query
        self.page = IssuePage()
        self.error = ISSUE_LIST_FAILED
        return True
