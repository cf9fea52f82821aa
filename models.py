"""Data models for the retrieval evaluation harness.

Suite definitions (test cases and run configuration) are pydantic models so
that a loaded suite is validated and frozen in one step. Per-run records
(retrieved chunks, test results, reports) are plain dataclasses.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CATEGORY = "general"


# ---------------------------------------------------------------------------
# Suite definition
# ---------------------------------------------------------------------------


class RetrievalTestCase(BaseModel):
    """A single gold-standard retrieval expectation.

    Attributes:
        id: Unique test identifier
        query: Natural-language query sent to the retriever
        expected_docs: Document identifiers that should be retrieved
        expected_sections: Optional section identifiers expected in results
        expected_keywords: Optional keywords expected in retrieved content
        min_score: Minimum acceptable average relevance score
        category: Optional topical category tag
        description: Human description of what the case checks
        expect_low_confidence: Sparse or weak results are the correct outcome
    """

    # Unquoted YAML scalars such as `id: 101` or `version: 1.0` arrive as numbers
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str
    query: str
    expected_docs: list[str] = Field(default_factory=list)
    expected_sections: list[str] = Field(default_factory=list)
    expected_keywords: list[str] = Field(default_factory=list)
    min_score: float = Field(default=0.0, ge=0.0, le=1.0)
    category: str | None = None
    description: str = ""
    expect_low_confidence: bool = False


class TestConfig(BaseModel):
    """Run configuration shared by every case in a suite."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    vector_similarity_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    max_results_to_evaluate: int = Field(default=5, ge=1)
    timeout_seconds: float = 30.0
    # Pass policy; overridable per suite
    min_precision: float = Field(default=0.6, ge=0.0, le=1.0)
    min_recall: float = Field(default=0.5, ge=0.0, le=1.0)
    document_match: Literal["substring", "exact"] = "substring"


class ReportingConfig(BaseModel):
    """Reporting preferences for a suite."""

    model_config = ConfigDict(frozen=True)

    formats: list[Literal["json", "markdown"]] = Field(
        default_factory=lambda: ["json", "markdown"]
    )
    include_failed_queries: bool = True
    include_score_distribution: bool = False
    include_category_breakdown: bool = True


class TestSuite(BaseModel):
    """A complete retrieval test suite, immutable once loaded."""

    __test__ = False

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    description: str = ""
    version: str = "1.0"
    test_config: TestConfig = Field(default_factory=TestConfig)
    tests: list[RetrievalTestCase] = Field(default_factory=list)
    evaluation_criteria: dict[str, Any] = Field(default_factory=dict)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)


# ---------------------------------------------------------------------------
# Run records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RetrievedChunk:
    """A single chunk returned by the retrieval collaborator.

    Attributes:
        path: Source document path or identifier
        content: Chunk text
        score: Relevance score (0.0-1.0)
        category: Optional category tag assigned at ingestion
        section: Optional section identifier within the document
        title: Optional document title
    """

    path: str
    content: str
    score: float
    category: str | None = None
    section: str | None = None
    title: str | None = None


@dataclass(frozen=True)
class TestResult:
    """Outcome of one test case. Never mutated after creation."""

    __test__ = False

    test_id: str
    query: str
    expected_docs: tuple[str, ...]
    retrieved_docs: tuple[str, ...]
    precision: float
    recall: float
    f1_score: float
    avg_score: float
    min_score_met: bool
    category_match: bool
    keywords_found: tuple[str, ...]
    keywords_missing: tuple[str, ...]
    response_time_ms: float
    passed: bool
    errors: tuple[str, ...] = ()
    category: str | None = None
    sections_found: tuple[str, ...] = ()
    sections_missing: tuple[str, ...] = ()
    expect_low_confidence: bool = False


@dataclass(frozen=True)
class ReportSummary:
    """Suite-level summary statistics."""

    total_tests: int
    passed_tests: int
    failed_tests: int
    pass_rate: float
    avg_precision: float
    avg_recall: float
    avg_f1: float
    avg_response_time: float


@dataclass(frozen=True)
class CategoryStats:
    """Aggregated results for one category."""

    tests: int
    passed: int
    avg_precision: float
    avg_recall: float


@dataclass(frozen=True)
class EvaluationReport:
    """Final report, derived entirely from the ordered list of TestResult."""

    summary: ReportSummary
    test_results: list[TestResult] = field(default_factory=list)
    category_breakdown: dict[str, CategoryStats] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)

    @property
    def failed_results(self) -> list[TestResult]:
        """Results for cases that did not pass."""
        return [r for r in self.test_results if not r.passed]

    def to_dict(self) -> dict[str, Any]:
        """Convert the report to a JSON-serializable dictionary."""
        return asdict(self)
