"""Orchestration of a retrieval evaluation run.

The Evaluator owns the run lifecycle:

    IDLE -> LOADED -> RUNNING -> AGGREGATED -> DONE

with FAILED as a terminal state reached only when loading the suite fails.
Cases run strictly one at a time in declared order so that response times are
attributable to a single call.
"""

import time
from enum import Enum
from pathlib import Path
from typing import Callable

from tqdm import tqdm

from evaluation.aggregator import ReportAggregator
from evaluation.case_runner import CaseRunner
from evaluation.errors import LoadError
from evaluation.suite_loader import load_test_suite
from models import EvaluationReport, TestResult, TestSuite
from storage.base import BaseRetriever
from utils.logging import get_logger

logger = get_logger(__name__)

ResultCallback = Callable[[TestResult], None]


class EvaluatorState(str, Enum):
    """Lifecycle states of an evaluation run."""

    IDLE = "idle"
    LOADED = "loaded"
    RUNNING = "running"
    AGGREGATED = "aggregated"
    DONE = "done"
    FAILED = "failed"


class Evaluator:
    """Run a test suite against a retriever and build the report.

    Attributes:
        retriever: Retrieval backend under evaluation
        state: Current lifecycle state
        suite: Loaded test suite (None until loaded)
        results: Results appended in suite order during a run
        report: Completed report (None until DONE)
    """

    def __init__(
        self,
        retriever: BaseRetriever,
        aggregator: ReportAggregator | None = None,
        on_result: ResultCallback | None = None,
        show_progress: bool = False,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Initialize evaluator.

        Args:
            retriever: Retrieval backend under evaluation
            aggregator: Report aggregator (default: ReportAggregator())
            on_result: Optional callback invoked with each result as it is produced
            show_progress: Display a tqdm progress bar during the run
            clock: Monotonic clock used to time retrieval calls
        """
        self.retriever = retriever
        self.aggregator = aggregator or ReportAggregator()
        self.on_result = on_result
        self.show_progress = show_progress
        self.clock = clock

        self.state = EvaluatorState.IDLE
        self.suite: TestSuite | None = None
        self.results: list[TestResult] = []
        self.report: EvaluationReport | None = None

    def load_suite(self, path: Path | str) -> TestSuite:
        """Load the suite definition from disk.

        Args:
            path: Path to the YAML suite definition

        Returns:
            Loaded TestSuite

        Raises:
            LoadError: If the suite cannot be loaded; the evaluator moves to FAILED
        """
        self._require(EvaluatorState.IDLE, EvaluatorState.LOADED)

        try:
            suite = load_test_suite(path)
        except LoadError:
            self.state = EvaluatorState.FAILED
            raise

        return self.load(suite)

    def load(self, suite: TestSuite) -> TestSuite:
        """Use an already-built suite.

        Args:
            suite: Test suite to evaluate

        Returns:
            The same suite
        """
        self._require(EvaluatorState.IDLE, EvaluatorState.LOADED)

        self.suite = suite
        self.state = EvaluatorState.LOADED
        return suite

    async def run(self) -> EvaluationReport:
        """Execute every case in order and aggregate the results.

        A completed evaluator may be run again against the same suite.

        Returns:
            Completed EvaluationReport

        Raises:
            RuntimeError: If no suite is loaded or a run is already in progress
        """
        self._require(EvaluatorState.LOADED, EvaluatorState.DONE)
        if self.suite is None:
            raise RuntimeError(f"Evaluator is {self.state.value} but has no suite loaded")

        self.state = EvaluatorState.RUNNING
        self.results = []
        self.report = None

        runner = CaseRunner(self.retriever, self.suite.test_config, clock=self.clock)

        logger.info(f"Starting retrieval evaluation: {len(self.suite.tests)} tests")

        for test_case in tqdm(
            self.suite.tests,
            desc="Retrieval evaluation",
            disable=not self.show_progress,
            leave=False,
        ):
            logger.debug(f"Testing: {test_case.id}")
            result = await runner.run(test_case)
            self.results.append(result)

            if self.on_result is not None:
                self.on_result(result)

        self.state = EvaluatorState.AGGREGATED
        report = self.aggregator.aggregate(self.results)

        self.report = report
        self.state = EvaluatorState.DONE

        logger.info(
            f"Evaluation complete: {report.summary.passed_tests}/{report.summary.total_tests} "
            f"passed ({report.summary.pass_rate * 100:.1f}%)"
        )
        return report

    def _require(self, *states: EvaluatorState) -> None:
        """Raise unless the evaluator is in one of the given states."""
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise RuntimeError(
                f"Evaluator is {self.state.value}; expected one of: {allowed}"
            )
