"""Pydantic models for issues, analyses, filter catalogs and dashboard data."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)


# --- Enums ---

class Severity(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, value: str | None) -> Severity | None:
        """Case-insensitive lookup; unknown values map to None."""
        if not value:
            return None
        key = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


class QueryKind(str, Enum):
    LISTING = "listing"
    SEARCH = "search"


class SearchType(str, Enum):
    ALL = "all"
    CVE = "cve"
    ISSUE = "issue"
    COMPONENT = "component"
    VERSION = "version"
    VULNERABILITY = "vulnerability"


# --- Issue Models ---

class ComponentTag(BaseModel):
    tag: str


class OsValue(BaseModel):
    value: str


class MilestoneValue(BaseModel):
    value: str


def _wrap_strings(items: Any, key: str) -> Any:
    """Accept ``["Blink"]`` as well as ``[{"tag": "Blink"}]``."""
    if not isinstance(items, list):
        return items
    return [{key: item} if isinstance(item, str) else item for item in items]


def _lenient_time(value: Any, handler: ValidatorFunctionWrapHandler) -> datetime | None:
    """Blank or unparseable timestamps become None instead of failing the record."""
    if value in (None, ""):
        return None
    try:
        return handler(value)
    except ValidationError:
        return None


class IssueRecord(BaseModel):
    id: int | str | None = None
    issue_id: int | None = None
    title: str = ""
    severity: str | None = None
    priority: str | None = None
    status: str | None = None
    cve_id: str | None = None
    description: str = ""
    found_in: str | None = None
    vrp_reward: float | str | None = None
    issues_url: str | None = None
    component_tags: list[ComponentTag] = []
    os_values: list[OsValue] = []
    milestone_values: list[MilestoneValue] = []
    create_time: datetime | None = None
    modified_time: datetime | None = None
    publish_time: datetime | None = None
    public_time: datetime | None = None
    last_updated_time: datetime | None = None

    _times = field_validator(
        "create_time", "modified_time", "publish_time", "public_time", "last_updated_time",
        mode="wrap",
    )(_lenient_time)

    @field_validator("component_tags", mode="before")
    @classmethod
    def _tags(cls, v: Any) -> Any:
        return _wrap_strings(v, "tag") if v is not None else []

    @field_validator("os_values", "milestone_values", mode="before")
    @classmethod
    def _values(cls, v: Any) -> Any:
        return _wrap_strings(v, "value") if v is not None else []

    @field_validator("description", "title", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Any:
        return v or ""

    @property
    def severity_level(self) -> Severity | None:
        return Severity.parse(self.severity)

    @property
    def tags(self) -> list[str]:
        return [t.tag for t in self.component_tags]


class IssuePage(BaseModel):
    items: list[IssueRecord] = []
    total: int = 0
    pages: int = 1


# --- Analysis ---

class AnalysisRecord(BaseModel):
    issue_id: int | str | None = None
    overview_title: str | None = None
    overview_description: str | None = None
    cvss_base_score: float | None = None
    cvss_vector_string: str | None = None
    cvss_attack_vector: str | None = None
    cvss_privilege_required: str | None = None
    cvss_user_interaction: str | None = None
    root_cause_location: str | None = None
    root_cause_snippet: str | None = None
    root_cause_analysis: str | None = None
    root_cause_tag: str | None = None
    patch_commit_id: str | None = None
    patch_code_change: str | None = None
    updated_at: datetime | None = None

    _times = field_validator("updated_at", mode="wrap")(_lenient_time)


# --- Filter catalogs ---

class VulnerabilityTypeCount(BaseModel):
    label: str
    count: int = 0


class ComponentCount(BaseModel):
    name: str
    count: int = 0


class Statistics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_issues: int | None = Field(default=None, alias="totalIssues")
    critical_issues: int = Field(default=0, alias="criticalIssues")
    high_issues: int = Field(default=0, alias="highIssues")
    medium_issues: int = Field(default=0, alias="mediumIssues")
    low_issues: int = Field(default=0, alias="lowIssues")
    recently_added_issues: int = Field(default=0, alias="recentlyAddedIssues")
    cve_count: int | None = Field(default=None, alias="cveCount")
    fixed_count: int | None = Field(default=None, alias="fixedCount")


class QueryParams(BaseModel):
    kind: QueryKind
    params: dict[str, str | int] = {}

    @property
    def term(self) -> str | None:
        """Primary search term; None for listing requests."""
        value = self.params.get("query")
        return None if value is None else str(value)


# --- Views ---

class DashboardData(BaseModel):
    total_issues: int = 0
    cve_count: int = 0
    fixed_count: int = 0
    recent_count: int = 0
    top_components: list[ComponentCount] = []
    top_vulnerability_types: list[VulnerabilityTypeCount] = []
    recent_issues: list[IssueRecord] = []
    banner: str | None = None


class IssueDetail(BaseModel):
    issue: IssueRecord | None = None
    analysis: AnalysisRecord | None = None
    error: str | None = None
