"""Aggregation of test results into an evaluation report."""

from collections import defaultdict

from models import (
    DEFAULT_CATEGORY,
    CategoryStats,
    EvaluationReport,
    ReportSummary,
    TestResult,
)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class ReportAggregator:
    """Reduce an ordered list of TestResult into an EvaluationReport.

    The report holds no state of its own: summary, category breakdown and
    recommendations are all derived from the results.
    """

    # Recommendation thresholds
    PRECISION_TARGET = 0.70
    RECALL_TARGET = 0.60
    SLOW_RESPONSE_MS = 2000
    SLOW_RESPONSE_RATIO = 0.20

    def aggregate(self, results: list[TestResult]) -> EvaluationReport:
        """Build the report for a completed run.

        Args:
            results: Test results in suite order

        Returns:
            EvaluationReport
        """
        summary = self.summarize(results)

        return EvaluationReport(
            summary=summary,
            test_results=list(results),
            category_breakdown=self.category_breakdown(results),
            recommendations=self.recommendations(
                results, summary.avg_precision, summary.avg_recall
            ),
        )

    def summarize(self, results: list[TestResult]) -> ReportSummary:
        """Compute suite-level counts and metric means."""
        total = len(results)
        passed = sum(1 for r in results if r.passed)

        return ReportSummary(
            total_tests=total,
            passed_tests=passed,
            failed_tests=total - passed,
            pass_rate=passed / total if total else 0.0,
            avg_precision=_mean([r.precision for r in results]),
            avg_recall=_mean([r.recall for r in results]),
            avg_f1=_mean([r.f1_score for r in results]),
            avg_response_time=_mean([r.response_time_ms for r in results]),
        )

    def category_breakdown(self, results: list[TestResult]) -> dict[str, CategoryStats]:
        """Group results by category.

        Args:
            results: Test results

        Returns:
            Mapping of category name to stats, in order of first appearance
        """
        grouped: dict[str, list[TestResult]] = defaultdict(list)
        for result in results:
            grouped[result.category or DEFAULT_CATEGORY].append(result)

        return {
            category: CategoryStats(
                tests=len(group),
                passed=sum(1 for r in group if r.passed),
                avg_precision=_mean([r.precision for r in group]),
                avg_recall=_mean([r.recall for r in group]),
            )
            for category, group in grouped.items()
        }

    def recommendations(
        self,
        results: list[TestResult],
        avg_precision: float,
        avg_recall: float,
    ) -> list[str]:
        """Generate heuristic improvement recommendations.

        Each rule is evaluated independently; every rule that fires contributes.

        Args:
            results: Test results
            avg_precision: Mean precision across results
            avg_recall: Mean recall across results

        Returns:
            List of recommendation strings
        """
        if not results:
            return []

        recommendations = []

        if avg_precision < self.PRECISION_TARGET:
            recommendations.append(
                "Consider improving document chunking strategy to reduce irrelevant retrievals"
            )
            recommendations.append("Review and enhance the relevance scoring algorithm")

        if avg_recall < self.RECALL_TARGET:
            recommendations.append(
                "Expand the knowledge base with more comprehensive documentation"
            )
            recommendations.append(
                "Review embedding quality - consider fine-tuning or different embedding models"
            )

        slow = sum(1 for r in results if r.response_time_ms > self.SLOW_RESPONSE_MS)
        if slow > len(results) * self.SLOW_RESPONSE_RATIO:
            recommendations.append(
                "Optimize vector search performance - consider indexing improvements"
            )

        if any(not r.category_match for r in results):
            recommendations.append("Improve category classification in document ingestion")

        return recommendations
