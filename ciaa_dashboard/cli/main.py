"""Typer CLI for ciaa-dashboard."""

import asyncio
import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from ciaa_dashboard.client import ApiClient
from ciaa_dashboard.config import settings
from ciaa_dashboard.dashboard import (
    IssueListController,
    load_dashboard,
    load_filter_options,
    load_issue_detail,
)
from ciaa_dashboard.filters.query import parse_search_type
from ciaa_dashboard.filters.state import ActiveFilterState
from ciaa_dashboard.filters.tag_tree import ExpansionState, TagTreeView
from ciaa_dashboard.render import (
    render_banner,
    render_dashboard,
    render_issue_detail,
    render_issue_table,
    render_tag_rows,
    render_vulnerability_types,
    to_json,
)
from ciaa_dashboard.services.analysis import AnalysisService
from ciaa_dashboard.services.issues import IssueService

app = typer.Typer(
    name="ciaa",
    help="Chromium Issues Auto Analysis: browse security issues and their generated analyses.",
)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    api_url: str = typer.Option("", "--api-url", help="Backend base URL (default: CIAA_API_BASE_URL)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and responses"),
):
    """Chromium Issues Auto Analysis terminal dashboard."""
    _configure_logging(verbose)
    if api_url:
        settings.api_base_url = api_url


@app.command()
def dashboard(json_output: bool = typer.Option(False, "--json", help="Output raw JSON")):
    """Show summary counts, top components, vulnerability types and recent issues."""

    async def _run():
        async with ApiClient() as client:
            return await load_dashboard(IssueService(client), AnalysisService(client))

    data = asyncio.run(_run())

    if json_output:
        console.print_json(to_json(data))
    else:
        render_dashboard(data, console)


@app.command()
def issues(
    search: str = typer.Option("", "--search", "-s", help="Free-text search term"),
    search_type: str = typer.Option("all", "--type", "-t", help="Search type: all, cve, issue, component, version, vulnerability"),
    severity: list[str] = typer.Option([], "--severity", help="Severity filter. Repeatable."),
    priority: list[str] = typer.Option([], "--priority", help="Priority filter. Repeatable."),
    status: list[str] = typer.Option([], "--status", help="Status filter. Repeatable."),
    component: list[str] = typer.Option([], "--component", help="Component path filter. Repeatable."),
    os_value: list[str] = typer.Option([], "--os", help="Operating system filter. Repeatable."),
    vuln_type: list[str] = typer.Option([], "--vuln-type", help="Vulnerability type filter. Repeatable; first one drives the search."),
    has_cve: bool = typer.Option(False, "--has-cve", help="Only issues with a CVE id"),
    cve_id: str = typer.Option("", "--cve-id", help="Exact CVE id"),
    issue_id: str = typer.Option("", "--issue-id", help="Exact issue id"),
    version: str = typer.Option("", "--version", help="Affected version"),
    page: int = typer.Option(1, "--page", help="Page number"),
    limit: int = typer.Option(0, "--limit", help="Page size (0 = config default 10)"),
    json_output: bool = typer.Option(False, "--json", help="Output raw JSON page"),
):
    """List, filter and search issues."""
    try:
        parse_search_type(search_type)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--type") from exc

    state = ActiveFilterState(
        severity=severity,
        priority=priority,
        status=status,
        components=component,
        os=os_value,
        vulnerability_types=vuln_type,
        has_cve=has_cve,
    )
    initial = {"cve_id": cve_id, "issue_id": issue_id, "version": version}

    async def _run():
        async with ApiClient() as client:
            controller = IssueListController(IssueService(client), state)
            await controller.refresh(search, search_type, page, limit or None, initial)
            return controller

    controller = asyncio.run(_run())

    if controller.error:
        render_banner(controller.error, err_console)
        raise typer.Exit(code=1)

    if json_output:
        console.print_json(to_json(controller.page))
    else:
        render_issue_table(controller.page, console)


@app.command()
def show(
    issue_id: str = typer.Argument(help="Issue id"),
    json_output: bool = typer.Option(False, "--json", help="Output raw JSON issue and analysis"),
):
    """Show one issue with its analysis (overview, CVSS, root cause, patch)."""

    async def _run():
        async with ApiClient() as client:
            return await load_issue_detail(IssueService(client), AnalysisService(client), issue_id)

    detail = asyncio.run(_run())

    if json_output:
        console.print_json(to_json(detail))
    else:
        render_issue_detail(detail, console)

    if detail.error:
        raise typer.Exit(code=1)


@app.command()
def components(
    search: str = typer.Option("", "--search", "-s", help="Substring filter (flat results)"),
    expand: list[str] = typer.Option([], "--expand", "-e", help="Expand a component path. Repeatable."),
    expand_all: bool = typer.Option(False, "--all", help="Expand the whole tree"),
    selected: list[str] = typer.Option([], "--selected", help="Mark a component path as selected. Repeatable."),
):
    """Browse the hierarchical component filter."""

    async def _run():
        async with ApiClient() as client:
            return await load_filter_options(IssueService(client), AnalysisService(client))

    options = asyncio.run(_run())

    chosen = set(selected)

    def _toggle(path: str) -> None:
        chosen.symmetric_difference_update({path})

    view = TagTreeView(options.components, chosen, _toggle, ExpansionState(expand))
    if expand_all:
        view.expansion.expand_all(view.root)
    render_tag_rows(view.rows(search), console)


@app.command(name="vuln-types")
def vuln_types(
    limit: int = typer.Option(0, "--limit", help="How many types to show (0 = config default 5)"),
    json_output: bool = typer.Option(False, "--json", help="Output raw JSON"),
):
    """Show the most common vulnerability types."""

    async def _run():
        async with ApiClient() as client:
            return await AnalysisService(client).get_top_vulnerability_types(limit or settings.top_items_limit)

    types = asyncio.run(_run())

    if json_output:
        console.print_json(data=[t.model_dump() for t in types])
    else:
        render_vulnerability_types(types, console)


if __name__ == "__main__":
    app()
