"""Rich terminal rendering and JSON output for issues, analyses and the dashboard."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from ciaa_dashboard.filters.tag_tree import TagRow
from ciaa_dashboard.models import (
    AnalysisRecord,
    DashboardData,
    IssueDetail,
    IssuePage,
    IssueRecord,
    Severity,
    VulnerabilityTypeCount,
)

NOT_AVAILABLE = "N/A"

_SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "green",
}
_NEUTRAL_STYLE = "dim"


def to_json(model: BaseModel) -> str:
    return model.model_dump_json(indent=2)


def format_date(value: datetime | None) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:%b} {value.day}, {value:%Y}"


def _text(value: object) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    return escape(str(value))


def severity_badge(severity: str | None) -> str:
    """Styled severity label; unknown values render in a neutral style."""
    if not severity:
        return f"[{_NEUTRAL_STYLE}]{NOT_AVAILABLE}[/{_NEUTRAL_STYLE}]"
    style = _SEVERITY_STYLES.get(Severity.parse(severity), _NEUTRAL_STYLE)
    return f"[{style}]{escape(severity)}[/{style}]"


def render_banner(message: str, console: Console | None = None) -> None:
    """Inline failure banner; warnings are yellow, failures red."""
    if console is None:
        console = Console()
    style = "yellow" if message.startswith("Warning") else "red"
    console.print(Panel(
        f"{escape(message)}\n\nRe-run the command to retry with the backend.",
        border_style=style,
    ))


def render_issue_table(page: IssuePage, console: Console | None = None, title: str = "Issues") -> None:
    if console is None:
        console = Console()

    if not page.items:
        console.print("[yellow]No issues found.[/yellow]")
        return

    table = Table(title=f"{title} ({page.total} total, {page.pages} page(s))")
    table.add_column("Issue", style="bold cyan")
    table.add_column("Severity")
    table.add_column("Priority")
    table.add_column("Status")
    table.add_column("CVE")
    table.add_column("Title")
    table.add_column("Components")

    for issue in page.items:
        table.add_row(
            _text(issue.issue_id),
            severity_badge(issue.severity),
            _text(issue.priority),
            _text(issue.status),
            _text(issue.cve_id),
            escape(issue.title),
            escape(", ".join(issue.tags)),
        )

    console.print(table)


def _issue_header(issue: IssueRecord) -> str:
    lines = [
        f"[bold]{escape(issue.title) or NOT_AVAILABLE}[/bold]",
        "",
        f"Issue: {_text(issue.issue_id)}    CVE: {_text(issue.cve_id)}",
        f"Severity: {severity_badge(issue.severity)}    Priority: {_text(issue.priority)}    Status: {_text(issue.status)}",
        f"Found in: {_text(issue.found_in)}    VRP reward: {_text(issue.vrp_reward)}",
        f"Created: {format_date(issue.create_time)}    Published: {format_date(issue.public_time or issue.publish_time)}",
    ]
    if issue.tags:
        lines.append(f"Components: {escape(', '.join(issue.tags))}")
    if issue.os_values:
        lines.append(f"OS: {escape(', '.join(v.value for v in issue.os_values))}")
    if issue.milestone_values:
        lines.append(f"Milestones: {escape(', '.join(v.value for v in issue.milestone_values))}")
    if issue.issues_url:
        lines.append(f"URL: {escape(issue.issues_url)}")
    return "\n".join(lines)


def render_issue_detail(detail: IssueDetail, console: Console | None = None) -> None:
    if console is None:
        console = Console()

    if detail.error or detail.issue is None:
        render_banner(detail.error or "Issue not available.", console)
        return

    issue = detail.issue
    console.print(Panel(_issue_header(issue), title="Issue", border_style="cyan"))
    if issue.description:
        console.print(Panel(escape(issue.description), title="Description"))

    if detail.analysis is None:
        console.print("[dim]No analysis available for this issue.[/dim]")
        return
    render_analysis(detail.analysis, console)


def render_analysis(analysis: AnalysisRecord, console: Console | None = None) -> None:
    if console is None:
        console = Console()

    overview = analysis.overview_title or "Overview"
    console.print(Panel(_text(analysis.overview_description), title=escape(overview)))

    cvss = Table(title="CVSS")
    cvss.add_column("Metric", style="bold")
    cvss.add_column("Value")
    score = NOT_AVAILABLE if analysis.cvss_base_score is None else f"{analysis.cvss_base_score:.1f}"
    cvss.add_row("Base score", score)
    cvss.add_row("Vector", _text(analysis.cvss_vector_string))
    cvss.add_row("Attack vector", _text(analysis.cvss_attack_vector))
    cvss.add_row("Privileges required", _text(analysis.cvss_privilege_required))
    cvss.add_row("User interaction", _text(analysis.cvss_user_interaction))
    console.print(cvss)

    root_cause = (
        f"Tag: {_text(analysis.root_cause_tag)}\n"
        f"Location: {_text(analysis.root_cause_location)}\n\n"
        f"{_text(analysis.root_cause_analysis)}"
    )
    console.print(Panel(root_cause, title="Root Cause"))
    if analysis.root_cause_snippet:
        console.print(Syntax(analysis.root_cause_snippet, "cpp", line_numbers=False))

    console.print(f"[bold]Patch commit:[/bold] {_text(analysis.patch_commit_id)}")
    if analysis.patch_code_change:
        console.print(Syntax(analysis.patch_code_change, "diff", line_numbers=False))
    console.print(f"[dim]Updated: {format_date(analysis.updated_at)}[/dim]")


def render_tag_rows(rows: list[TagRow], console: Console | None = None) -> None:
    """Component filter rows: tree when browsing, flat list when searching."""
    if console is None:
        console = Console()

    if not rows:
        console.print("[dim]No components match your search[/dim]")
        return

    for row in rows:
        marker = "[x]" if row.selected else "[ ]"
        if row.has_children:
            arrow = "v" if row.expanded else ">"
        else:
            arrow = " "
        indent = "  " * row.depth
        console.print(f"{indent}{arrow} {escape(marker)} {escape(row.label)}", highlight=False)


def render_vulnerability_types(types: list[VulnerabilityTypeCount], console: Console | None = None) -> None:
    if console is None:
        console = Console()

    table = Table(title="Top Vulnerability Types")
    table.add_column("Type", style="bold")
    table.add_column("Count", justify="right")
    for entry in types:
        table.add_row(escape(entry.label), str(entry.count))
    console.print(table)


def render_dashboard(data: DashboardData, console: Console | None = None) -> None:
    if console is None:
        console = Console()

    if data.banner:
        render_banner(data.banner, console)

    summary = (
        f"Total issues: [bold]{data.total_issues}[/bold]\n"
        f"CVE issues: [bold]{data.cve_count}[/bold]\n"
        f"Fixed issues: [bold]{data.fixed_count}[/bold]\n"
        f"Recently added: [bold]{data.recent_count}[/bold]"
    )
    console.print(Panel(summary, title="Chromium Issues Auto Analysis", border_style="blue"))

    components = Table(title="Top Vulnerable Components")
    components.add_column("Component", style="bold")
    components.add_column("Count", justify="right")
    for entry in data.top_components:
        components.add_row(escape(entry.name), str(entry.count))
    console.print(components)

    render_vulnerability_types(data.top_vulnerability_types, console)
    render_issue_table(IssuePage(items=data.recent_issues, total=len(data.recent_issues)), console, title="Recent Issues")
