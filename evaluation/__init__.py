"""Retrieval quality evaluation engine."""

from evaluation.aggregator import ReportAggregator
from evaluation.case_runner import CaseRunner
from evaluation.errors import EvaluationError, LoadError, RetrievalError
from evaluation.evaluator import Evaluator, EvaluatorState
from evaluation.metrics import MetricsCalculator
from evaluation.report_writer import ReportWriter
from evaluation.suite_loader import load_test_suite

__all__ = [
    "CaseRunner",
    "EvaluationError",
    "Evaluator",
    "EvaluatorState",
    "LoadError",
    "MetricsCalculator",
    "ReportAggregator",
    "ReportWriter",
    "RetrievalError",
    "load_test_suite",
]
