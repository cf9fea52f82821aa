"""Tests for the Evaluator class.

Tests the run lifecycle, case ordering, failure isolation and aggregation.
"""

import pytest

from evaluation.errors import LoadError
from evaluation.evaluator import Evaluator, EvaluatorState


class TestLifecycle:
    """Tests for evaluator state transitions."""

    def test_starts_idle(self, stub_retriever):
        evaluator = Evaluator(stub_retriever)

        assert evaluator.state == EvaluatorState.IDLE
        assert evaluator.suite is None
        assert evaluator.report is None

    def test_load_suite_from_file(self, stub_retriever, suite_file):
        evaluator = Evaluator(stub_retriever)

        suite = evaluator.load_suite(suite_file)

        assert evaluator.state == EvaluatorState.LOADED
        assert [t.id for t in suite.tests] == [
            "billing_upgrade",
            "billing_invoice",
            "schedule_post",
        ]

    def test_load_failure_moves_to_failed(self, stub_retriever, tmp_path):
        """A missing suite file is fatal and leaves the evaluator FAILED."""
        evaluator = Evaluator(stub_retriever)

        with pytest.raises(LoadError):
            evaluator.load_suite(tmp_path / "missing.yaml")

        assert evaluator.state == EvaluatorState.FAILED

    @pytest.mark.asyncio
    async def test_run_after_failure_rejected(self, stub_retriever, tmp_path):
        evaluator = Evaluator(stub_retriever)
        with pytest.raises(LoadError):
            evaluator.load_suite(tmp_path / "missing.yaml")

        with pytest.raises(RuntimeError, match="failed"):
            await evaluator.run()

    @pytest.mark.asyncio
    async def test_run_without_suite_rejected(self, stub_retriever):
        """Running before a suite is loaded raises RuntimeError."""
        with pytest.raises(RuntimeError, match="idle"):
            await Evaluator(stub_retriever).run()

    @pytest.mark.asyncio
    async def test_run_with_missing_suite_rejected(self, stub_retriever):
        """A LOADED state without a suite raises RuntimeError, not AssertionError."""
        evaluator = Evaluator(stub_retriever)
        evaluator.state = EvaluatorState.LOADED

        with pytest.raises(RuntimeError, match="no suite loaded"):
            await evaluator.run()

        assert stub_retriever.calls == []

    @pytest.mark.asyncio
    async def test_run_completes_in_done(self, billing_retriever, sample_suite):
        evaluator = Evaluator(billing_retriever)
        evaluator.load(sample_suite)

        report = await evaluator.run()

        assert evaluator.state == EvaluatorState.DONE
        assert evaluator.report is report

    @pytest.mark.asyncio
    async def test_load_rejected_after_run(self, billing_retriever, sample_suite):
        evaluator = Evaluator(billing_retriever)
        evaluator.load(sample_suite)
        await evaluator.run()

        with pytest.raises(RuntimeError):
            evaluator.load(sample_suite)


class TestRun:
    """Tests for running a suite end to end."""

    @pytest.mark.asyncio
    async def test_billing_suite(self, billing_retriever, sample_suite):
        """One pass, one metric failure and one retrieval failure."""
        evaluator = Evaluator(billing_retriever)
        evaluator.load(sample_suite)

        report = await evaluator.run()

        results = {r.test_id: r for r in report.test_results}
        assert results["billing_upgrade"].passed is True
        assert results["billing_invoice"].passed is False
        assert results["billing_invoice"].precision == 0.0
        assert results["schedule_post"].errors == ("Retrieval failed: connection reset",)

        assert report.summary.total_tests == 3
        assert report.summary.passed_tests == 1
        assert report.summary.pass_rate == pytest.approx(1 / 3)

        billing = report.category_breakdown["billing"]
        assert billing.tests == 2
        assert billing.passed == 1
        assert billing.avg_precision == 0.5
        assert billing.avg_recall == 0.5
        assert report.category_breakdown["general"].tests == 1

    @pytest.mark.asyncio
    async def test_results_follow_suite_order(self, billing_retriever, sample_suite):
        evaluator = Evaluator(billing_retriever)
        evaluator.load(sample_suite)

        report = await evaluator.run()

        assert [r.test_id for r in report.test_results] == [t.id for t in sample_suite.tests]
        assert [c["query"] for c in billing_retriever.calls] == [
            t.query for t in sample_suite.tests
        ]

    @pytest.mark.asyncio
    async def test_suite_config_reaches_retriever(self, billing_retriever, sample_suite):
        evaluator = Evaluator(billing_retriever)
        evaluator.load(sample_suite)

        await evaluator.run()

        first_call = billing_retriever.calls[0]
        assert first_call["limit"] == 3
        assert first_call["min_score"] == 0.6
        assert first_call["category"] == "billing"

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_run(self, make_retriever, sample_suite):
        """A raising first case still lets later cases run."""
        retriever = make_retriever({"How do I upgrade my plan?": ConnectionError("down")})
        evaluator = Evaluator(retriever)
        evaluator.load(sample_suite)

        report = await evaluator.run()

        assert len(report.test_results) == 3
        assert len(retriever.calls) == 3
        assert report.test_results[0].errors == ("Retrieval failed: down",)

    @pytest.mark.asyncio
    async def test_on_result_callback(self, billing_retriever, sample_suite):
        seen = []
        evaluator = Evaluator(billing_retriever, on_result=seen.append)
        evaluator.load(sample_suite)

        report = await evaluator.run()

        assert seen == report.test_results

    @pytest.mark.asyncio
    async def test_rerun_is_deterministic(self, billing_retriever, sample_suite, fake_clock):
        """Running the same suite twice yields identical reports."""
        evaluator = Evaluator(billing_retriever, clock=fake_clock)
        evaluator.load(sample_suite)

        first = await evaluator.run()
        second = await evaluator.run()

        assert first == second
        assert all(r.response_time_ms == 250.0 for r in second.test_results)

    @pytest.mark.asyncio
    async def test_empty_suite(self, stub_retriever, empty_suite):
        evaluator = Evaluator(stub_retriever)
        evaluator.load(empty_suite)

        report = await evaluator.run()

        assert report.summary.total_tests == 0
        assert report.summary.pass_rate == 0.0
        assert report.category_breakdown == {}
        assert report.recommendations == []
        assert stub_retriever.calls == []
