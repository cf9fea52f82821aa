"""Command-line interface for retrieval quality evaluation.

Usage:
    python run_retrieval_eval.py
    python run_retrieval_eval.py eval/retrieval-tests.yaml
    python run_retrieval_eval.py my-suite.yaml --output-dir /tmp/eval-results

Exits 0 only when the suite loads, runs to completion, and the overall pass
rate meets the required bar; exits 1 otherwise.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from tqdm import tqdm

from config import settings
from evaluation import Evaluator, LoadError, ReportWriter
from models import TestResult
from storage import ChromaRetriever
from utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Evaluate knowledge base retrieval against gold-standard test cases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the default suite against the configured ChromaDB collection
  python run_retrieval_eval.py

  # Run a specific suite and write reports elsewhere
  python run_retrieval_eval.py suites/billing.yaml --output-dir data/eval
        """,
    )

    parser.add_argument(
        "suite_path",
        nargs="?",
        type=Path,
        default=settings.suite_path,
        help=f"Path to the retrieval test suite (default: {settings.suite_path})",
    )

    parser.add_argument(
        "--output-dir",
        type=Path,
        default=settings.output_dir,
        help=f"Directory to save reports (default: {settings.output_dir})",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override the configured log level",
    )

    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar",
    )

    return parser.parse_args(argv)


def format_result_line(result: TestResult) -> str:
    """Format the one-line console status for a test result."""
    status = "✅" if result.passed else "❌"
    return (
        f"{status} {result.test_id}: P={result.precision:.2f} "
        f"R={result.recall:.2f} F1={result.f1_score:.2f}"
    )


def print_result(result: TestResult) -> None:
    tqdm.write(format_result_line(result))


async def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Process exit code
    """
    args = parse_args(argv)
    setup_logging(log_level=args.log_level)

    # The knowledge base handle lives only for the duration of the run
    retriever = ChromaRetriever(settings.get_retriever_config())
    evaluator = Evaluator(
        retriever,
        on_result=print_result,
        show_progress=not args.no_progress,
    )

    try:
        suite = evaluator.load_suite(args.suite_path)

        await retriever.initialize()
        report = await evaluator.run()

        ReportWriter().save_report(report, suite, args.output_dir)

    except (LoadError, ConnectionError) as e:
        logger.error(f"❌ Evaluation failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"❌ Evaluation failed: {e}", exc_info=True)
        return 1
    finally:
        await retriever.close()

    summary = report.summary
    logger.info("=" * 80)
    logger.info("RETRIEVAL EVALUATION COMPLETE")
    logger.info("=" * 80)
    logger.info(f"Pass Rate: {summary.pass_rate * 100:.1f}% ({summary.passed_tests}/{summary.total_tests})")
    logger.info(f"Avg Precision: {summary.avg_precision:.3f}")
    logger.info(f"Avg Recall: {summary.avg_recall:.3f}")
    logger.info(f"Avg F1: {summary.avg_f1:.3f}")
    logger.info(f"Avg Response Time: {summary.avg_response_time:.0f}ms")

    if summary.pass_rate < settings.required_pass_rate:
        logger.warning(
            f"⚠️  Pass rate below {settings.required_pass_rate * 100:.0f}%: "
            "consider reviewing failed tests and improving the knowledge base"
        )
        return 1

    return 0


def cli() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
