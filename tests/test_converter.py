"""Tests for the TRX converter."""

import logging
from unittest.mock import MagicMock

import pytest

from trx_report.config import ConverterConfig
from trx_report.converter import TrxConverter, _SuiteBuilder
from trx_report.exceptions import MissingMandatoryNodeError, ParseError, UnknownOutcomeError
from trx_report.models import Status, Test, TestRunner
from trx_report.results import rollup_status

from trx_builders import (
    CODE_BASE,
    TRX_NAMESPACE,
    output,
    qualified,
    sample_run,
    trx_document,
    unit_test,
    unit_test_result,
)


def _single(result: str, class_name: str = "MyAssembly.Tests.CalculatorTests", **kwargs) -> str:
    return trx_document(results=[result], definitions=[unit_test("t1", class_name)], **kwargs)


class TestSampleRun:
    """End-to-end conversion of a typical result file."""

    @pytest.fixture
    def result(self, write_trx):
        return TrxConverter().convert(write_trx(sample_run()))

    def test_counts(self, result):
        report = result.report
        assert report.total == 4
        assert report.passed == 2
        assert report.failed == 1
        assert report.skipped == 1
        assert report.inconclusive == 0
        assert report.errors == 0

    def test_report_fields(self, result, write_trx):
        report = result.report
        assert report.file_name.endswith("MyAssembly.Tests.trx")
        assert report.assembly_name == CODE_BASE
        assert report.test_runner is TestRunner.MSTEST_2010
        assert report.duration == 5500.0
        assert report.status is Status.FAILED

    def test_fixtures_grouped_in_first_seen_order(self, result):
        suites = result.report.test_suites
        assert [s.name for s in suites] == ["CalculatorTests", "ParserTests"]
        assert [t.name for t in suites[0].tests] == ["AddsNumbers", "DividesByZero"]
        assert [t.name for t in suites[1].tests] == ["ParsesEmpty", "ParsesJson"]

    def test_fixture_rollups(self, result):
        calculator, parser = result.report.test_suites
        assert calculator.status is Status.FAILED
        assert calculator.duration == 1750.0
        assert parser.status is Status.SKIPPED
        assert parser.duration == 750.0

    def test_status_message(self, result):
        failing = result.report.test_suites[0].tests[1]
        assert failing.status is Status.FAILED
        assert failing.status_message == "<pre>Expected 1 but was 0at Divide()at Run()</pre>"
        assert result.report.test_suites[0].tests[0].status_message == ""

    def test_run_info(self, result):
        run_info = result.report.run_info
        assert run_info.labels() == [
            "TestResult File",
            "Last Run",
            "Duration",
            "Machine Name",
            "TestRunner",
            "TestRunner Version",
            "User",
            "User Domain",
        ]
        assert run_info["Duration"] == "5500 ms"
        assert run_info["TestRunner Version"] == TRX_NAMESPACE

    def test_no_diagnostics(self, result):
        assert result.diagnostics == ()


class TestEmptyRun:
    """Documents without any test records."""

    def test_empty_report(self, write_trx):
        result = TrxConverter().convert(write_trx(trx_document()))
        report = result.report
        assert report.total == 0
        assert report.status is Status.PASSED
        assert report.test_suites == ()
        assert report.duration == 0.0
        assert len(report.run_info) == 0
        assert result.diagnostics == ()

    def test_empty_report_needs_no_definitions(self, write_trx):
        content = trx_document(times=None, run_user=None)
        assert TrxConverter().convert(write_trx(content)).report.status is Status.PASSED


class TestSuiteBuilder:
    """Incremental fixture accumulation."""

    def test_status_folds_each_new_test(self):
        builder = _SuiteBuilder("Ns.Tests")
        statuses = [Status.PASSED, Status.SKIPPED, Status.FAILED, Status.INCONCLUSIVE, Status.PASSED]
        seen = []
        for index in range(10000):
            status = statuses[index % len(statuses)]
            builder.add(Test(f"Row{index}", status, duration=1.0))
            seen.append(status)
            if index < len(statuses):
                assert builder.status is rollup_status(seen)

        suite = builder.build()
        assert suite.status is Status.FAILED
        assert suite.duration == 10000.0
        assert len(suite.tests) == 10000

    def test_empty_builder_is_passed(self):
        assert _SuiteBuilder("Ns.Tests").build().status is Status.PASSED


class TestCounts:
    """Aggregate counters."""

    @pytest.mark.parametrize(
        "outcomes",
        [
            ["Passed"],
            ["Failed", "Passed", "Error"],
            ["Timeout", "Aborted", "NotExecuted", "Pending", "Warning"],
            ["Inconclusive", "NotRunnable", "Disconnected", "PassedButRunAborted", "Passed", "Failed"],
        ],
    )
    def test_counts_add_up_to_total(self, write_trx, outcomes):
        results = [
            unit_test_result(f"t{i}", f"Test{i}", outcome=outcome) for i, outcome in enumerate(outcomes)
        ]
        definitions = [unit_test(f"t{i}", "Ns.Tests") for i in range(len(outcomes))]
        report = TrxConverter().convert(write_trx(trx_document(results, definitions))).report

        assert report.total == len(outcomes)
        assert report.passed + report.failed + report.inconclusive + report.skipped + report.errors == report.total

    def test_report_status_is_worst_across_fixtures(self, write_trx):
        content = trx_document(
            results=[
                unit_test_result("t1", "A", outcome="Passed"),
                unit_test_result("t2", "B", outcome="Timeout"),
                unit_test_result("t3", "C", outcome="Failed"),
            ],
            definitions=[
                unit_test("t1", "Ns.First"),
                unit_test("t2", "Ns.Second"),
                unit_test("t3", "Ns.Third"),
            ],
        )
        report = TrxConverter().convert(write_trx(content)).report
        assert report.errors == 1
        assert report.status is Status.ERROR
        assert [s.status for s in report.test_suites] == [Status.PASSED, Status.ERROR, Status.FAILED]


class TestFixtures:
    """Fixture resolution and grouping."""

    def test_case_insensitive_grouping(self, write_trx):
        content = trx_document(
            results=[unit_test_result("t1", "A"), unit_test_result("t2", "B", outcome="Failed")],
            definitions=[unit_test("t1", "Ns.CalcTests"), unit_test("t2", "ns.calctests")],
        )
        report = TrxConverter().convert(write_trx(content)).report
        assert len(report.test_suites) == 1
        assert report.test_suites[0].name == "Ns.CalcTests"
        assert report.test_suites[0].status is Status.FAILED

    def test_interleaved_records_keep_first_seen_order(self, write_trx):
        content = trx_document(
            results=[
                unit_test_result("t1", "A"),
                unit_test_result("t2", "B"),
                unit_test_result("t3", "C"),
            ],
            definitions=[
                unit_test("t3", "Ns.Zeta"),
                unit_test("t1", "Ns.Zeta"),
                unit_test("t2", "Ns.Alpha"),
            ],
        )
        report = TrxConverter().convert(write_trx(content)).report
        assert [s.name for s in report.test_suites] == ["Ns.Zeta", "Ns.Alpha"]
        assert [t.name for t in report.test_suites[0].tests] == ["A", "C"]

    def test_assembly_qualified_names_shortened(self, write_trx):
        content = _single(unit_test_result("t1", "A"), class_name=qualified("MyAssembly.Tests.Foo.BarTests"))
        report = TrxConverter().convert(write_trx(content)).report
        assert report.test_suites[0].name == "Foo.BarTests"

    def test_generic_fixture_name(self, write_trx):
        content = _single(unit_test_result("t1", "A"), class_name="Ns.PairTests<T1,T2>")
        report = TrxConverter().convert(write_trx(content)).report
        assert report.test_suites[0].name == "Ns.PairTests<T1,T2>"

    def test_large_mixed_fixture_keeps_worst_status(self, write_trx):
        outcomes = ["Passed", "Inconclusive", "Failed", "NotExecuted", "Passed"] * 60
        outcomes[150] = "Timeout"
        results = [
            unit_test_result(f"t{i}", f"Row{i}", outcome=outcome) for i, outcome in enumerate(outcomes)
        ]
        definitions = [unit_test(f"t{i}", "Ns.DataDrivenTests") for i in range(len(outcomes))]
        report = TrxConverter().convert(write_trx(trx_document(results, definitions))).report

        suite = report.test_suites[0]
        assert len(report.test_suites) == 1
        assert len(suite.tests) == 300
        assert suite.status is Status.ERROR
        assert suite.duration == 300000.0

    def test_test_name_prefix_stripped(self, write_trx):
        content = _single(unit_test_result("t1", "MyAssembly.Tests.AddsNumbers"))
        report = TrxConverter().convert(write_trx(content)).report
        assert report.tests[0].name == "AddsNumbers"


class TestDurations:
    """Per-test and run durations."""

    def test_start_end_fallback(self, write_trx):
        record = unit_test_result(
            "t1",
            "A",
            duration=None,
            start_time="2024-01-01T00:00:00.000",
            end_time="2024-01-01T00:00:02.250",
        )
        report = TrxConverter().convert(write_trx(_single(record))).report
        assert report.tests[0].duration == 2250.0
        assert report.test_suites[0].duration == 2250.0

    def test_missing_duration_is_zero(self, write_trx):
        record = unit_test_result("t1", "A", duration=None)
        result = TrxConverter().convert(write_trx(_single(record)))
        assert result.report.tests[0].duration == 0.0
        assert result.diagnostics == ()

    def test_negative_duration_clamped_with_diagnostic(self, write_trx):
        record = unit_test_result(
            "t1",
            "A",
            duration=None,
            start_time="2024-01-01T00:00:05",
            end_time="2024-01-01T00:00:00",
        )
        result = TrxConverter().convert(write_trx(_single(record)))
        assert result.report.tests[0].duration == 0.0
        assert [d.source for d in result.diagnostics] == ["duration of A"]

    def test_negative_duration_preserved_when_configured(self, write_trx):
        record = unit_test_result(
            "t1",
            "A",
            duration=None,
            start_time="2024-01-01T00:00:05",
            end_time="2024-01-01T00:00:00",
        )
        converter = TrxConverter(ConverterConfig(clamp_negative_durations=False))
        result = converter.convert(write_trx(_single(record)))
        assert result.report.tests[0].duration == -5000.0

    def test_negative_explicit_duration_clamped(self, write_trx):
        record = unit_test_result("t1", "A", duration="-00:00:01")
        result = TrxConverter().convert(write_trx(_single(record)))
        assert result.report.tests[0].duration == 0.0
        assert result.report.test_suites[0].duration == 0.0
        assert [d.source for d in result.diagnostics] == ["duration of A"]

    def test_no_times_node(self, write_trx):
        result = TrxConverter().convert(write_trx(_single(unit_test_result("t1", "A"), times=None)))
        assert result.report.duration == 0.0
        assert "Duration" not in result.report.run_info
        assert result.diagnostics == ()

    def test_broken_times_node_is_recovered(self, write_trx):
        times = '<Times start="2024-03-05T14:07:00" />'
        result = TrxConverter().convert(write_trx(_single(unit_test_result("t1", "A"), times=times)))
        assert result.report.duration == 0.0
        assert [d.source for d in result.diagnostics] == ["run duration"]
        assert result.report.total == 1


class TestMandatoryNodes:
    """Structural problems abort the conversion."""

    def test_missing_definition(self, write_trx):
        content = trx_document(
            results=[unit_test_result("t1", "A"), unit_test_result("t2", "B")],
            definitions=[unit_test("t1", "Ns.Tests")],
        )
        with pytest.raises(MissingMandatoryNodeError, match="t2"):
            TrxConverter().convert(write_trx(content))

    def test_no_definitions_at_all(self, write_trx):
        content = trx_document(results=[unit_test_result("t1", "A")])
        with pytest.raises(MissingMandatoryNodeError) as excinfo:
            TrxConverter().convert(write_trx(content))
        assert excinfo.value.node == "UnitTest/TestMethod"

    def test_missing_class_name(self, write_trx):
        content = _single(unit_test_result("t1", "A"), class_name=None)
        with pytest.raises(MissingMandatoryNodeError, match="className"):
            TrxConverter().convert(write_trx(content))

    @pytest.mark.parametrize("class_name", ["", "   "])
    def test_blank_class_name(self, write_trx, class_name):
        content = _single(unit_test_result("t1", "A"), class_name=class_name)
        with pytest.raises(MissingMandatoryNodeError) as excinfo:
            TrxConverter().convert(write_trx(content))
        assert excinfo.value.node == "TestMethod@className"

    @pytest.mark.parametrize("attribute", ["outcome", "testName"])
    def test_missing_record_attribute(self, write_trx, attribute):
        kwargs = {"outcome": None} if attribute == "outcome" else {}
        record = unit_test_result("t1", "A", **kwargs)
        if attribute == "testName":
            record = record.replace(' testName="A"', "")
        with pytest.raises(MissingMandatoryNodeError, match=attribute):
            TrxConverter().convert(write_trx(_single(record)))

    def test_missing_code_base_is_empty_assembly(self, write_trx):
        content = trx_document(
            results=[unit_test_result("t1", "A")],
            definitions=[unit_test("t1", "Ns.Tests", code_base=None)],
        )
        assert TrxConverter().convert(write_trx(content)).report.assembly_name == ""

    def test_malformed_document(self, write_trx):
        with pytest.raises(ParseError):
            TrxConverter().convert(write_trx("<TestRun><Results>"))


class TestUnknownOutcomes:
    """Outcome tokens outside the known vocabulary."""

    def test_fatal_by_default(self, write_trx):
        content = _single(unit_test_result("t1", "A", outcome="InProgress"))
        with pytest.raises(UnknownOutcomeError):
            TrxConverter().convert(write_trx(content))

    def test_inconclusive_policy(self, write_trx):
        content = _single(unit_test_result("t1", "A", outcome="InProgress"))
        converter = TrxConverter(ConverterConfig(unknown_outcome="inconclusive"))
        report = converter.convert(write_trx(content)).report
        assert report.inconclusive == 1
        assert report.total == 1
        assert report.status is Status.INCONCLUSIVE


class TestConverterReuse:
    """Converters keep no state between files."""

    def test_fresh_instances_give_equal_results(self, write_trx):
        path = write_trx(sample_run())
        first = TrxConverter().convert(path)
        second = TrxConverter().convert(path)
        assert first == second

    def test_one_instance_converts_many_files(self, write_trx):
        converter = TrxConverter()
        first = converter.convert(write_trx(sample_run(), name="first.trx")).report
        other = _single(unit_test_result("t1", "Only"), class_name="Ns.OtherTests")
        second = converter.convert(write_trx(other, name="second.trx")).report

        assert first.total == 4
        assert second.total == 1
        assert [s.name for s in second.test_suites] == ["Ns.OtherTests"]
        assert second.file_name.endswith("second.trx")

    def test_load_then_process(self, write_trx):
        converter = TrxConverter()
        context = converter.load(write_trx(sample_run()))
        assert context.file_stem == "MyAssembly.Tests"
        assert converter.process(context) == converter.process(context)


class TestSources:
    """Inputs other than file paths."""

    def test_bytes_with_file_name(self):
        result = TrxConverter().convert(sample_run().encode("utf-8"), file_name="MyAssembly.Tests.trx")
        report = result.report
        assert report.file_name == "MyAssembly.Tests.trx"
        assert report.test_suites[0].name == "CalculatorTests"
        assert "Last Run" not in report.run_info
        assert [d.source for d in result.diagnostics] == ["Last Run"]

    def test_custom_namespace(self, write_trx):
        content = _single(unit_test_result("t1", "A"), namespace="urn:custom-runner")
        converter = TrxConverter(ConverterConfig(namespace="urn:custom-runner"))
        assert converter.convert(write_trx(content)).report.total == 1


class TestLogging:
    """Diagnostics go through the injected logger."""

    def test_injected_logger_used(self, write_trx):
        log = MagicMock(spec=logging.Logger)
        TrxConverter(log=log).convert(write_trx(sample_run()))
        messages = [call.args[0] for call in log.info.call_args_list]
        assert "Number of tests: %d" in messages

    def test_recovered_errors_logged_at_error_level(self, write_trx):
        log = MagicMock(spec=logging.Logger)
        times = '<Times finish="2024-03-05T14:07:00" />'
        TrxConverter(log=log).convert(write_trx(_single(unit_test_result("t1", "A"), times=times)))
        log.error.assert_called()
