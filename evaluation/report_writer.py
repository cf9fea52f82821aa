"""Persist evaluation reports as JSON and Markdown."""

import json
from datetime import datetime, timezone
from pathlib import Path

from models import EvaluationReport, TestSuite
from utils.logging import get_logger

logger = get_logger(__name__)

JSON_REPORT_NAME = "retrieval-evaluation-report.json"
MARKDOWN_REPORT_NAME = "retrieval-evaluation-summary.md"

# Upper bounds of the average-score histogram buckets
SCORE_BUCKETS = (0.2, 0.4, 0.6, 0.8, 1.0)


class ReportWriter:
    """Write the full JSON report and a condensed Markdown summary."""

    def save_report(
        self,
        report: EvaluationReport,
        suite: TestSuite,
        output_dir: Path,
    ) -> list[Path]:
        """Write report files according to the suite's reporting preferences.

        Args:
            report: Completed evaluation report
            suite: Suite the report was produced from
            output_dir: Directory to write into (created if missing)

        Returns:
            Paths of the files written
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        formats = suite.reporting.formats
        written = []

        if "json" in formats:
            json_path = output_dir / JSON_REPORT_NAME
            with open(json_path, "w", encoding="utf-8") as f:
                json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
            written.append(json_path)

        if "markdown" in formats:
            md_path = output_dir / MARKDOWN_REPORT_NAME
            with open(md_path, "w", encoding="utf-8") as f:
                f.write(self.generate_markdown(report, suite))
            written.append(md_path)

        logger.info(f"Reports saved to {output_dir}")
        return written

    def generate_markdown(self, report: EvaluationReport, suite: TestSuite) -> str:
        """Generate the Markdown summary.

        Args:
            report: Completed evaluation report
            suite: Suite the report was produced from

        Returns:
            Markdown formatted report string
        """
        reporting = suite.reporting
        sections = [self._generate_header(suite), self._generate_summary(report)]

        if reporting.include_category_breakdown:
            sections.append(self._generate_category_breakdown(report))

        if reporting.include_score_distribution:
            sections.append(self._generate_score_distribution(report))

        sections.append(self._generate_recommendations(report))

        if reporting.include_failed_queries:
            sections.append(self._generate_failed_tests(report))

        return "\n\n".join(sections) + "\n"

    def _generate_header(self, suite: TestSuite) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        lines = ["# Retrieval Evaluation Report", ""]
        if suite.description:
            lines.append(f"**Suite**: {suite.description} (v{suite.version})")
        lines.append(f"**Generated**: {timestamp}")
        return "\n".join(lines)

    def _generate_summary(self, report: EvaluationReport) -> str:
        summary = report.summary
        return f"""## Summary

- **Total Tests**: {summary.total_tests}
- **Passed**: {summary.passed_tests} ({summary.pass_rate * 100:.1f}%)
- **Failed**: {summary.failed_tests}
- **Average Precision**: {summary.avg_precision:.3f}
- **Average Recall**: {summary.avg_recall:.3f}
- **Average F1 Score**: {summary.avg_f1:.3f}
- **Average Response Time**: {summary.avg_response_time:.0f}ms"""

    def _generate_category_breakdown(self, report: EvaluationReport) -> str:
        sections = ["## Category Breakdown"]

        if not report.category_breakdown:
            sections.append("\nNo test results.")
            return "\n".join(sections)

        for category, stats in report.category_breakdown.items():
            pass_pct = stats.passed / stats.tests * 100 if stats.tests else 0.0
            sections.append(f"\n### {category}")
            sections.append(f"- Tests: {stats.tests}")
            sections.append(f"- Passed: {stats.passed} ({pass_pct:.1f}%)")
            sections.append(f"- Avg Precision: {stats.avg_precision:.3f}")
            sections.append(f"- Avg Recall: {stats.avg_recall:.3f}")

        return "\n".join(sections)

    def _generate_score_distribution(self, report: EvaluationReport) -> str:
        """Histogram of per-case average relevance scores."""
        counts = [0] * len(SCORE_BUCKETS)
        for result in report.test_results:
            for i, upper in enumerate(SCORE_BUCKETS):
                if result.avg_score < upper or upper == SCORE_BUCKETS[-1]:
                    counts[i] += 1
                    break

        rows = ["## Score Distribution\n", "| Avg Score | Tests |", "|-----------|-------|"]
        lower = 0.0
        for upper, count in zip(SCORE_BUCKETS, counts):
            rows.append(f"| {lower:.1f}-{upper:.1f} | {count} |")
            lower = upper

        return "\n".join(rows)

    def _generate_recommendations(self, report: EvaluationReport) -> str:
        if not report.recommendations:
            return "## Recommendations\n\nNo recommendations."
        lines = "\n".join(f"- {rec}" for rec in report.recommendations)
        return f"## Recommendations\n\n{lines}"

    def _generate_failed_tests(self, report: EvaluationReport) -> str:
        failed = report.failed_results
        sections = ["## Failed Tests"]

        if not failed:
            sections.append("\nAll tests passed.")
            return "\n".join(sections)

        for result in failed:
            heading = f"\n### {result.test_id}"
            if result.expect_low_confidence:
                heading += " (low confidence expected)"
            sections.append(heading)
            sections.append(f"- **Query**: {result.query}")
            sections.append(f"- **Precision**: {result.precision:.3f}")
            sections.append(f"- **Recall**: {result.recall:.3f}")
            sections.append(f"- **Errors**: {', '.join(result.errors)}")
            if result.keywords_missing:
                sections.append(f"- **Missing Keywords**: {', '.join(result.keywords_missing)}")

        return "\n".join(sections)
