"""Tests for the ciaa CLI (mocked HTTP)."""

import httpx
import respx
from typer.testing import CliRunner

from ciaa_dashboard.cli.main import app


BASE_URL = "https://ciaa.test"

runner = CliRunner()


def _invoke(*args):
    return runner.invoke(app, ["--api-url", BASE_URL, *args])


class TestIssuesCommand:
    @respx.mock
    def test_listing_table(self, sample_issue):
        route = respx.get(f"{BASE_URL}/issues").mock(
            return_value=httpx.Response(200, json={"items": [sample_issue], "total": 1, "pages": 1})
        )

        result = _invoke("issues", "--severity", "High", "--severity", "Critical", "--has-cve")

        assert result.exit_code == 0
        assert "40062955" in result.output
        params = route.calls.last.request.url.params
        assert params["severity"] == "High,Critical"
        assert params["has_cve"] == "true"

    @respx.mock
    def test_vulnerability_filter_uses_search(self):
        route = respx.get(f"{BASE_URL}/issues/search").mock(
            return_value=httpx.Response(200, json={"items": [], "total": 0})
        )

        result = _invoke("issues", "--vuln-type", "Use-After-Free", "--vuln-type", "Buffer Overflow")

        assert result.exit_code == 0
        assert "No issues found." in result.output
        params = route.calls.last.request.url.params
        assert params["query"] == "Use-After-Free"
        assert params["vuln_type"] == "Use-After-Free,Buffer Overflow"

    @respx.mock
    def test_json_output(self):
        respx.get(f"{BASE_URL}/issues").mock(
            return_value=httpx.Response(200, json={"items": [{"issue_id": 5}], "total": 1})
        )

        result = _invoke("issues", "--json")

        assert result.exit_code == 0
        assert '"issue_id": 5' in result.output

    @respx.mock
    def test_backend_failure_exits_nonzero(self):
        respx.get(f"{BASE_URL}/issues").mock(return_value=httpx.Response(500, json={"detail": "boom"}))

        result = _invoke("issues")

        assert result.exit_code == 1
        assert "Failed to load issues" in result.output

    def test_invalid_search_type(self):
        result = _invoke("issues", "--search", "x", "--type", "bogus")
        assert result.exit_code != 0


class TestShowCommand:
    @respx.mock
    def test_issue_detail(self, sample_issue, sample_analysis):
        respx.get(f"{BASE_URL}/issues/40062955").mock(return_value=httpx.Response(200, json=sample_issue))
        respx.get(f"{BASE_URL}/analysis/40062955").mock(return_value=httpx.Response(200, json=sample_analysis))

        result = _invoke("show", "40062955")

        assert result.exit_code == 0
        assert "CVE-2024-0519" in result.output
        assert "3f2a9c1" in result.output

    @respx.mock
    def test_unknown_issue(self):
        respx.get(f"{BASE_URL}/issues/9").mock(return_value=httpx.Response(404))

        result = _invoke("show", "9")

        assert result.exit_code == 1
        assert "Issue 9 not found." in result.output


class TestComponentsCommand:
    @respx.mock
    def test_tree_and_search(self):
        respx.get(f"{BASE_URL}/component-tags").mock(
            return_value=httpx.Response(200, json={"tags": ["A>B", "A>C", "D"]})
        )
        respx.get(f"{BASE_URL}/os-values").mock(return_value=httpx.Response(200, json={"values": []}))
        respx.get(f"{BASE_URL}/milestone-values").mock(return_value=httpx.Response(200, json={"values": []}))
        respx.get(f"{BASE_URL}/vulnerability-types").mock(return_value=httpx.Response(200, json={"types": []}))

        tree = _invoke("components", "--expand", "A", "--selected", "A>B")
        flat = _invoke("components", "--search", "b")

        assert tree.exit_code == 0
        assert "[x] B" in tree.output
        assert "[ ] C" in tree.output
        assert flat.exit_code == 0
        assert "A>B" in flat.output
        assert "A>C" not in flat.output


class TestDashboardCommands:
    @respx.mock
    def test_dashboard_falls_back_to_mock(self):
        respx.get(f"{BASE_URL}/statistics").mock(return_value=httpx.Response(500))
        respx.get(f"{BASE_URL}/top-vulnerable-components").mock(return_value=httpx.Response(500))
        respx.get(f"{BASE_URL}/issues").mock(return_value=httpx.Response(500))
        respx.get(f"{BASE_URL}/top-vulnerability-types").mock(return_value=httpx.Response(500))

        result = _invoke("dashboard")

        assert result.exit_code == 0
        assert "Warning: Using mock data" in result.output
        assert "Blink" in result.output

    @respx.mock
    def test_vuln_types_json(self):
        respx.get(f"{BASE_URL}/top-vulnerability-types").mock(
            return_value=httpx.Response(200, json=[{"type": "Double Free", "count": 3}])
        )

        result = _invoke("vuln-types", "--json")

        assert result.exit_code == 0
        assert '"label": "Double Free"' in result.output
