"""Filter selections and option catalogs for the issue list."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ciaa_dashboard.filters.vuln_types import DEFAULT_VULNERABILITY_TYPE_OPTIONS

FILTER_CATEGORIES = (
    "severity",
    "priority",
    "status",
    "components",
    "os",
    "vulnerability_types",
)


class ActiveFilterState(BaseModel):
    """Selected values per category plus the CVE toggle.

    Every category is multi-select. Lists keep selection order, which matters
    for vulnerability types (the first selected label drives the search).
    """

    severity: list[str] = []
    priority: list[str] = []
    status: list[str] = []
    components: list[str] = []
    os: list[str] = []
    vulnerability_types: list[str] = []
    has_cve: bool = False

    def selected(self, category: str) -> list[str]:
        if category not in FILTER_CATEGORIES:
            raise ValueError(f"Unknown filter category '{category}'")
        return getattr(self, category)

    def toggle(self, category: str, value: str) -> None:
        values = self.selected(category)
        if value in values:
            values.remove(value)
        else:
            values.append(value)

    def toggle_has_cve(self) -> None:
        self.has_cve = not self.has_cve

    def clear(self) -> None:
        for category in FILTER_CATEGORIES:
            setattr(self, category, [])
        self.has_cve = False

    def is_empty(self) -> bool:
        return not self.has_cve and not any(self.selected(c) for c in FILTER_CATEGORIES)


class FilterOptions(BaseModel):
    """Read-only option catalogs, fetched once per session."""

    severities: list[str] = ["Critical", "High", "Medium", "Low"]
    priorities: list[str] = ["P0", "P1", "P2", "P3"]
    statuses: list[str] = []
    components: list[str] = []
    os: list[str] = []
    milestones: list[str] = []
    vulnerability_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_VULNERABILITY_TYPE_OPTIONS)
    )
