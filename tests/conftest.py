"""Shared test configuration and fixtures."""

import json
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def sample_issue():
    return json.loads((FIXTURES_DIR / "sample_issue.json").read_text())


@pytest.fixture
def sample_analysis():
    return json.loads((FIXTURES_DIR / "sample_analysis.json").read_text())
