"""Execution of a single retrieval test case."""

import asyncio
import time
from typing import Callable

from evaluation.metrics import MetricsCalculator
from models import RetrievalTestCase, RetrievedChunk, TestConfig, TestResult
from storage.base import BaseRetriever
from utils.logging import get_logger
from utils.metrics import record_case_outcome

logger = get_logger(__name__)


def document_name(path: str) -> str:
    """Reduce a chunk path to a comparable document name.

    Args:
        path: Chunk source path or identifier

    Returns:
        Final path component, or the full path if that component is empty
    """
    return path.split("/")[-1] or path


class CaseRunner:
    """Run one test case against a retriever and score the outcome.

    Performs exactly one retrieval call per case. Any exception raised by the
    call (including a timeout) is turned into a failed TestResult so that one
    bad case never stops the suite.
    """

    def __init__(
        self,
        retriever: BaseRetriever,
        test_config: TestConfig,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Initialize case runner.

        Args:
            retriever: Retrieval backend under evaluation
            test_config: Suite run configuration
            clock: Monotonic clock returning seconds
        """
        self.retriever = retriever
        self.config = test_config
        self.metrics = MetricsCalculator(match_mode=test_config.document_match)
        self.clock = clock

    async def run(self, test_case: RetrievalTestCase) -> TestResult:
        """Execute a test case.

        Args:
            test_case: Test case definition

        Returns:
            Immutable result for the case
        """
        start = self.clock()

        try:
            retrieved = await self._retrieve(test_case)
        except Exception as e:
            elapsed = self.clock() - start
            reason = str(e) or type(e).__name__
            logger.warning(f"Retrieval failed for {test_case.id}: {reason}")
            record_case_outcome("error")
            return self._failure_result(test_case, reason, elapsed * 1000)

        elapsed = self.clock() - start
        result = self._score(test_case, retrieved, elapsed * 1000)
        record_case_outcome("passed" if result.passed else "failed", elapsed)
        return result

    async def _retrieve(self, test_case: RetrievalTestCase) -> list[RetrievedChunk]:
        """Issue the retrieval call, enforcing the suite timeout."""
        call = self.retriever.retrieve(
            query=test_case.query,
            limit=self.config.max_results_to_evaluate,
            category=test_case.category,
            min_score=self.config.vector_similarity_threshold,
        )

        timeout = self.config.timeout_seconds
        if timeout <= 0:
            return await call

        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise TimeoutError(f"timed out after {timeout:g}s") from e

    def _score(
        self,
        test_case: RetrievalTestCase,
        retrieved: list[RetrievedChunk],
        response_time_ms: float,
    ) -> TestResult:
        """Apply metrics and pass policy to a completed retrieval."""
        retrieved_docs = [document_name(chunk.path) for chunk in retrieved]

        precision = self.metrics.calculate_precision(test_case.expected_docs, retrieved_docs)
        recall = self.metrics.calculate_recall(test_case.expected_docs, retrieved_docs)
        f1_score = self.metrics.calculate_f1(precision, recall)

        avg_score = (
            sum(chunk.score for chunk in retrieved) / len(retrieved) if retrieved else 0.0
        )
        min_score_met = avg_score >= test_case.min_score

        category_match = not test_case.category or any(
            chunk.category == test_case.category for chunk in retrieved
        )

        keywords_found, keywords_missing = self.metrics.keyword_coverage(
            test_case.expected_keywords, retrieved
        )
        sections_found, sections_missing = self.metrics.section_coverage(
            test_case.expected_sections, retrieved
        )

        errors = []
        if precision < self.config.min_precision:
            errors.append(f"Low precision: {precision:.2f}")
        if recall < self.config.min_recall:
            errors.append(f"Low recall: {recall:.2f}")
        if not min_score_met:
            errors.append(f"Min score not met: {avg_score:.2f}")
        if not category_match:
            errors.append("Category mismatch")

        passed = not errors

        logger.debug(
            f"{test_case.id}: P={precision:.2f} R={recall:.2f} F1={f1_score:.2f} "
            f"avg_score={avg_score:.2f} passed={passed}"
        )

        return TestResult(
            test_id=test_case.id,
            query=test_case.query,
            expected_docs=tuple(test_case.expected_docs),
            retrieved_docs=tuple(retrieved_docs),
            precision=precision,
            recall=recall,
            f1_score=f1_score,
            avg_score=avg_score,
            min_score_met=min_score_met,
            category_match=category_match,
            keywords_found=tuple(keywords_found),
            keywords_missing=tuple(keywords_missing),
            response_time_ms=response_time_ms,
            passed=passed,
            errors=tuple(errors),
            category=test_case.category,
            sections_found=tuple(sections_found),
            sections_missing=tuple(sections_missing),
            expect_low_confidence=test_case.expect_low_confidence,
        )

    @staticmethod
    def _failure_result(
        test_case: RetrievalTestCase,
        reason: str,
        response_time_ms: float,
    ) -> TestResult:
        """Build the result recorded when the retrieval call raised."""
        return TestResult(
            test_id=test_case.id,
            query=test_case.query,
            expected_docs=tuple(test_case.expected_docs),
            retrieved_docs=(),
            precision=0.0,
            recall=0.0,
            f1_score=0.0,
            avg_score=0.0,
            min_score_met=False,
            category_match=False,
            keywords_found=(),
            keywords_missing=tuple(test_case.expected_keywords),
            response_time_ms=response_time_ms,
            passed=False,
            errors=(f"Retrieval failed: {reason}",),
            category=test_case.category,
            sections_found=(),
            sections_missing=tuple(test_case.expected_sections),
            expect_low_confidence=test_case.expect_low_confidence,
        )
