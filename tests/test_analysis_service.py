"""Tests for the analysis service (mocked HTTP)."""

import httpx
import pytest
import respx

from ciaa_dashboard.client import ApiClient
from ciaa_dashboard.filters.vuln_types import (
    DEFAULT_VULNERABILITY_TYPE_OPTIONS,
    FALLBACK_VULNERABILITY_TYPES,
)
from ciaa_dashboard.services.analysis import AnalysisService


BASE_URL = "https://ciaa.test"


class TestGetAnalysis:
    @respx.mock
    @pytest.mark.asyncio
    async def test_decodes_analysis(self, sample_analysis):
        respx.get(f"{BASE_URL}/analysis/40062955").mock(
            return_value=httpx.Response(200, json=sample_analysis)
        )

        async with ApiClient(base_url=BASE_URL) as client:
            analysis = await AnalysisService(client).get_analysis(40062955)

        assert analysis.cvss_base_score == 8.8
        assert analysis.root_cause_tag == "Use-After-Free"
        assert analysis.patch_commit_id == "3f2a9c1"

    @respx.mock
    @pytest.mark.asyncio
    async def test_missing_analysis_is_none(self):
        respx.get(f"{BASE_URL}/analysis/1").mock(return_value=httpx.Response(404))

        async with ApiClient(base_url=BASE_URL) as client:
            assert await AnalysisService(client).get_analysis(1) is None

    @respx.mock
    @pytest.mark.asyncio
    async def test_server_error_is_none(self):
        respx.get(f"{BASE_URL}/analysis/1").mock(return_value=httpx.Response(500))

        async with ApiClient(base_url=BASE_URL) as client:
            assert await AnalysisService(client).get_analysis(1) is None

    @respx.mock
    @pytest.mark.asyncio
    async def test_malformed_analysis_is_none(self):
        respx.get(f"{BASE_URL}/analysis/1").mock(
            return_value=httpx.Response(200, json={"cvss_base_score": "high"})
        )

        async with ApiClient(base_url=BASE_URL) as client:
            assert await AnalysisService(client).get_analysis(1) is None


class TestVulnerabilityTypes:
    @respx.mock
    @pytest.mark.asyncio
    async def test_top_types_normalized_and_limited(self):
        route = respx.get(f"{BASE_URL}/top-vulnerability-types").mock(
            return_value=httpx.Response(200, json={
                "types": ["Use-After-Free", "Type Confusion", "Race Condition"],
                "counts": {"Use-After-Free": 5, "Type Confusion": 11, "Race Condition": 2},
            })
        )

        async with ApiClient(base_url=BASE_URL) as client:
            types = await AnalysisService(client).get_top_vulnerability_types(2)

        assert [(t.label, t.count) for t in types] == [("Type Confusion", 11), ("Use-After-Free", 5)]
        assert route.calls.last.request.url.params["limit"] == "2"

    @respx.mock
    @pytest.mark.asyncio
    async def test_top_types_tolerate_non_finite_counts(self):
        respx.get(f"{BASE_URL}/top-vulnerability-types").mock(
            return_value=httpx.Response(
                200,
                content=b'{"Use-After-Free": NaN, "XSS": 3, "Race": Infinity}',
                headers={"Content-Type": "application/json"},
            )
        )

        async with ApiClient(base_url=BASE_URL) as client:
            types = await AnalysisService(client).get_top_vulnerability_types(5)

        assert [(t.label, t.count) for t in types] == [("XSS", 3)]

    @respx.mock
    @pytest.mark.asyncio
    async def test_top_types_fallback_on_error(self):
        respx.get(f"{BASE_URL}/top-vulnerability-types").mock(
            side_effect=httpx.ConnectError("refused")
        )

        async with ApiClient(base_url=BASE_URL) as client:
            types = await AnalysisService(client).get_top_vulnerability_types()

        assert [(t.label, t.count) for t in types] == list(FALLBACK_VULNERABILITY_TYPES)

    @respx.mock
    @pytest.mark.asyncio
    async def test_top_types_fallback_on_not_found(self):
        respx.get(f"{BASE_URL}/top-vulnerability-types").mock(return_value=httpx.Response(404))

        async with ApiClient(base_url=BASE_URL) as client:
            types = await AnalysisService(client).get_top_vulnerability_types()

        assert types[0].label == "Use-After-Free"
        assert types[0].count == 143

    @respx.mock
    @pytest.mark.asyncio
    async def test_option_labels(self):
        respx.get(f"{BASE_URL}/vulnerability-types").mock(
            return_value=httpx.Response(200, json={"types": ["Double Free", "Integer Overflow"]})
        )

        async with ApiClient(base_url=BASE_URL) as client:
            assert await AnalysisService(client).get_vulnerability_types() == ["Double Free", "Integer Overflow"]

    @respx.mock
    @pytest.mark.asyncio
    async def test_option_labels_default_on_error(self):
        respx.get(f"{BASE_URL}/vulnerability-types").mock(return_value=httpx.Response(500))

        async with ApiClient(base_url=BASE_URL) as client:
            labels = await AnalysisService(client).get_vulnerability_types()

        assert labels == list(DEFAULT_VULNERABILITY_TYPE_OPTIONS)


class TestOtherLookups:
    @respx.mock
    @pytest.mark.asyncio
    async def test_cvss_statistics(self):
        respx.get(f"{BASE_URL}/cvss-statistics").mock(
            return_value=httpx.Response(200, json={"average": 7.4})
        )

        async with ApiClient(base_url=BASE_URL) as client:
            assert await AnalysisService(client).get_cvss_statistics() == {"average": 7.4}

    @respx.mock
    @pytest.mark.asyncio
    async def test_cvss_statistics_error_is_empty(self):
        respx.get(f"{BASE_URL}/cvss-statistics").mock(return_value=httpx.Response(502))

        async with ApiClient(base_url=BASE_URL) as client:
            assert await AnalysisService(client).get_cvss_statistics() == {}

    @respx.mock
    @pytest.mark.asyncio
    async def test_issues_by_vulnerability_type(self):
        route = respx.get(f"{BASE_URL}/issues/search").mock(
            return_value=httpx.Response(200, json={"items": [{"issue_id": 3}], "total": 1})
        )

        async with ApiClient(base_url=BASE_URL) as client:
            page = await AnalysisService(client).get_issues_by_vulnerability_type("Type Confusion", limit=4)

        params = route.calls.last.request.url.params
        assert params["type"] == "vulnerability"
        assert params["query"] == "Type Confusion"
        assert page.items[0].issue_id == 3

    @respx.mock
    @pytest.mark.asyncio
    async def test_high_cvss_issues(self):
        route = respx.get(f"{BASE_URL}/issues").mock(
            return_value=httpx.Response(200, json={"items": [], "total": 0})
        )

        async with ApiClient(base_url=BASE_URL) as client:
            await AnalysisService(client).get_high_cvss_issues(9.0)

        assert route.calls.last.request.url.params["min_cvss"] == "9.0"
