"""Shared pytest fixtures for all test modules.

This module provides common fixtures for:
- A deterministic stub retriever
- A fake clock for reproducible response times
- Sample test cases, suites and retrieved chunks
"""

from pathlib import Path

import pytest
import yaml

from models import (
    ReportingConfig,
    RetrievalTestCase,
    RetrievedChunk,
    TestConfig,
    TestSuite,
)
from storage.base import BaseRetriever


# ============================================================================
# Stub collaborators
# ============================================================================


class StubRetriever(BaseRetriever):
    """Retriever returning fixed responses keyed by query.

    A response may be a list of chunks or an exception instance to raise.
    Unknown queries return no results. Every call is recorded.
    """

    def __init__(self, responses: dict[str, list[RetrievedChunk] | Exception] | None = None):
        super().__init__("Stub")
        self.responses = responses or {}
        self.calls: list[dict] = []

    async def retrieve(self, query, limit, category=None, min_score=None):
        self.calls.append(
            {"query": query, "limit": limit, "category": category, "min_score": min_score}
        )
        response = self.responses.get(query, [])
        if isinstance(response, Exception):
            raise response
        return list(response)


class FakeClock:
    """Clock advancing by a fixed step on every reading."""

    def __init__(self, step_seconds: float = 0.1) -> None:
        self.step = step_seconds
        self.now = 0.0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def make_retriever():
    """Factory building a StubRetriever from a query -> response mapping."""
    return StubRetriever


@pytest.fixture
def stub_retriever() -> StubRetriever:
    """Create an empty stub retriever."""
    return StubRetriever()


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock where every retrieval takes exactly 250ms."""
    return FakeClock(step_seconds=0.25)


# ============================================================================
# Mock Data Fixtures
# ============================================================================


def _make_chunk(
    path: str,
    score: float = 0.8,
    content: str = "",
    category: str | None = None,
    section: str | None = None,
) -> RetrievedChunk:
    """Build a RetrievedChunk with sensible defaults."""
    return RetrievedChunk(
        path=path,
        content=content or f"Content of {path}",
        score=score,
        category=category,
        section=section,
    )


@pytest.fixture
def chunk_factory():
    """Factory for RetrievedChunk objects."""
    return _make_chunk


@pytest.fixture
def login_case() -> RetrievalTestCase:
    """Create the login-guide test case."""
    return RetrievalTestCase(
        id="login_basic",
        query="How do I log in?",
        expected_docs=["login-guide.md"],
        expected_keywords=["password", "Two-Factor"],
        min_score=0.5,
        category="account",
        description="Basic login question",
    )


@pytest.fixture
def login_chunks() -> list[RetrievedChunk]:
    """Retrieved chunks for the login query, highest score first."""
    return [
        _make_chunk(
            "docs/support/login-guide.md",
            score=0.9,
            content="Enter your email and password. Enable two-factor authentication.",
            category="account",
            section="Signing in",
        ),
        _make_chunk(
            "docs/support/faq.md",
            score=0.7,
            content="Frequently asked questions about the platform.",
            category="general",
        ),
    ]


@pytest.fixture
def run_config() -> TestConfig:
    """Default run configuration without a timeout."""
    return TestConfig(
        vector_similarity_threshold=0.5,
        max_results_to_evaluate=5,
        timeout_seconds=0,
    )


@pytest.fixture
def sample_suite_data() -> dict:
    """Raw suite document as it would appear in YAML."""
    return {
        "description": "Support knowledge base retrieval tests",
        "version": "1.2",
        "test_config": {
            "vector_similarity_threshold": 0.6,
            "max_results_to_evaluate": 3,
            "timeout_seconds": 10,
        },
        "tests": [
            {
                "id": "billing_upgrade",
                "query": "How do I upgrade my plan?",
                "expected_docs": ["billing-plans.md"],
                "expected_keywords": ["upgrade"],
                "min_score": 0.6,
                "category": "billing",
                "description": "Plan upgrade",
            },
            {
                "id": "billing_invoice",
                "query": "Where are my invoices?",
                "expected_docs": ["billing-invoices.md"],
                "min_score": 0.6,
                "category": "billing",
                "description": "Invoice lookup",
            },
            {
                "id": "schedule_post",
                "query": "How do I schedule a post?",
                "expected_docs": ["scheduling.md"],
                "min_score": 0.6,
                "description": "Scheduling",
            },
        ],
        "evaluation_criteria": {"precision_target": 0.7},
        "reporting": {
            "formats": ["json", "markdown"],
            "include_failed_queries": True,
            "include_score_distribution": True,
            "include_category_breakdown": True,
        },
    }


@pytest.fixture
def sample_suite(sample_suite_data: dict) -> TestSuite:
    """Validated TestSuite built from sample_suite_data."""
    return TestSuite.model_validate(sample_suite_data)


@pytest.fixture
def suite_file(tmp_path: Path, sample_suite_data: dict) -> Path:
    """Write sample_suite_data to a YAML file."""
    path = tmp_path / "retrieval-tests.yaml"
    path.write_text(yaml.safe_dump(sample_suite_data, sort_keys=False))
    return path


@pytest.fixture
def billing_retriever() -> StubRetriever:
    """Retriever where the upgrade query passes and the other two fail."""
    return StubRetriever(
        {
            "How do I upgrade my plan?": [
                _make_chunk("billing-plans.md", 0.9, "Upgrade anytime", category="billing"),
            ],
            "Where are my invoices?": [
                _make_chunk("billing-plans.md", 0.8, "Plans and pricing", category="billing"),
                _make_chunk("faq.md", 0.7, "FAQ", category="billing"),
            ],
            "How do I schedule a post?": RuntimeError("connection reset"),
        }
    )


@pytest.fixture
def empty_suite() -> TestSuite:
    """Suite with no test cases."""
    return TestSuite(
        description="empty",
        reporting=ReportingConfig(include_score_distribution=True),
    )
