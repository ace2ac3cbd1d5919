"""
Conversion of MSTest 2010 result documents into Report objects.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import PurePath
from typing import Dict, List, Optional
from xml.etree.ElementTree import Element

from .config import ConverterConfig
from .document import Source, TrxDocument
from .durations import DurationResolver
from .exceptions import MissingMandatoryNodeError, OptionalMetadataError
from .messages import compose_status_message
from .metadata import RunMetadataExtractor
from .models import (
    ConversionResult,
    Diagnostic,
    Report,
    RunInfo,
    Status,
    Test,
    TestRunner,
    TestSuite,
)
from .naming import fixture_name, strip_test_name_prefix
from .outcomes import OutcomeClassifier
from .results import count_statuses, rollup_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionContext:
    """Everything known about the file being converted."""

    file_name: str
    file_stem: str
    document: TrxDocument


class _SuiteBuilder:
    """Accumulates the tests of one fixture while the document is walked."""

    def __init__(self, name: str):
        self.name = name
        self.duration = 0.0
        self.status = Status.PASSED
        self.tests: List[Test] = []

    def add(self, test: Test) -> None:
        self.tests.append(test)
        self.duration += test.duration
        self.status = rollup_status((self.status, test.status))

    def build(self) -> TestSuite:
        return TestSuite(
            name=self.name,
            duration=self.duration,
            status=self.status,
            tests=tuple(self.tests),
        )


class TrxConverter:
    """
    Converts MSTest 2010 (.trx) result documents.

    A converter keeps no per-file state, so one instance can convert any
    number of files.
    """

    test_runner = TestRunner.MSTEST_2010

    def __init__(
        self, config: Optional[ConverterConfig] = None, log: Optional[logging.Logger] = None
    ):
        """
        Initialize converter.

        Args:
            config: Conversion settings (defaults are used when omitted)
            log: Logger for diagnostics (defaults to this module's logger)
        """
        self.config = config or ConverterConfig()
        self.logger = log or logger
        self.classifier = OutcomeClassifier(self.config.unknown_outcome, self.logger)
        self.durations = DurationResolver(self.config.clamp_negative_durations, self.logger)
        self.metadata = RunMetadataExtractor(self.test_runner, self.logger)

    def load(self, source: Source, file_name: Optional[str] = None) -> ConversionContext:
        """
        Parse a result document.

        Args:
            source: Path, bytes or binary stream holding the document
            file_name: Name to report for the document; required to get a
                meaningful name when source is not a path

        Raises:
            ParseError: If the document is not well-formed
        """
        if file_name is None:
            if isinstance(source, (str, os.PathLike)):
                file_name = os.fspath(source)
            else:
                file_name = getattr(source, "name", "") or "<stream>"

        document = TrxDocument.load(source, self.config.namespace)
        return ConversionContext(
            file_name=file_name,
            file_stem=PurePath(file_name).stem,
            document=document,
        )

    def convert(self, source: Source, file_name: Optional[str] = None) -> ConversionResult:
        """Load and process a result document in one step."""
        return self.process(self.load(source, file_name))

    def process(self, context: ConversionContext) -> ConversionResult:
        """
        Build the report for a loaded document.

        Args:
            context: Result of load()

        Returns:
            ConversionResult with the report and recovered metadata problems

        Raises:
            MissingMandatoryNodeError: If a test record cannot be resolved
            UnknownOutcomeError: If an outcome is unrecognised and the policy is "error"
        """
        document = context.document
        records = document.find_all("UnitTestResult")
        self.logger.info("Number of tests: %d", len(records))

        if not records:
            report = Report(
                file_name=context.file_name,
                test_runner=self.test_runner,
                status=Status.PASSED,
                run_info=RunInfo(self.test_runner),
            )
            return ConversionResult(report)

        self.logger.info("Processing root and test-suite elements...")
        diagnostics: List[Diagnostic] = []

        assembly_name = self._assembly_name(document)

        run_duration = self.durations.resolve_run(document.find_first("Times"))
        if not run_duration.ok:
            diagnostics.append(self._recover(run_duration.error))

        run_info, metadata_diagnostics = self.metadata.extract(
            document, context.file_name, run_duration.value
        )
        diagnostics.extend(metadata_diagnostics)

        suites = self._build_suites(context, records, diagnostics)
        tests = [test for suite in suites for test in suite.tests]
        counts = count_statuses(test.status for test in tests)

        report = Report(
            file_name=context.file_name,
            assembly_name=assembly_name,
            test_runner=self.test_runner,
            total=len(tests),
            passed=counts[Status.PASSED],
            failed=counts[Status.FAILED],
            inconclusive=counts[Status.INCONCLUSIVE],
            skipped=counts[Status.SKIPPED],
            errors=counts[Status.ERROR],
            duration=run_duration.value,
            run_info=run_info,
            test_suites=tuple(suites),
            status=rollup_status(test.status for test in tests),
        )
        self.logger.info(
            "Converted %s: %d passed, %d failed, %d errors",
            context.file_name,
            report.passed,
            report.failed,
            report.errors,
        )
        return ConversionResult(report, tuple(diagnostics))

    def _build_suites(
        self, context: ConversionContext, records: List[Element], diagnostics: List[Diagnostic]
    ) -> List[TestSuite]:
        """Group every test record under its fixture, in first-seen order."""
        self.logger.info("Building fixture blocks...")
        definitions = self._index_definitions(context.document)
        suites: Dict[str, _SuiteBuilder] = {}

        for count, record in enumerate(records, 1):
            test = self._build_test(context, record, diagnostics)

            class_name = self._class_name(record, definitions)
            name = fixture_name(class_name, context.file_stem) or class_name

            key = name.casefold()
            suite = suites.get(key)
            if suite is None:
                suite = suites[key] = _SuiteBuilder(name)
            suite.add(test)

            self.logger.debug("%d tests processed...", count)

        return [suite.build() for suite in suites.values()]

    def _build_test(
        self, context: ConversionContext, record: Element, diagnostics: List[Diagnostic]
    ) -> Test:
        test_name = self._required(record, "testName")

        duration = self.durations.resolve_test(record)
        if not duration.ok:
            diagnostics.append(self._recover(duration.error))

        return Test(
            name=strip_test_name_prefix(test_name, context.file_stem),
            status=self.classifier.classify(self._required(record, "outcome")),
            duration=duration.value,
            status_message=compose_status_message(context.document, record),
        )

    def _assembly_name(self, document: TrxDocument) -> str:
        unit_test = document.find_first("UnitTest")
        method = document.child(unit_test, "TestMethod") if unit_test is not None else None
        if method is None:
            raise MissingMandatoryNodeError("UnitTest/TestMethod", "document has no test definitions")
        return method.get("codeBase", "")

    def _index_definitions(self, document: TrxDocument) -> Dict[str, Element]:
        """Map each UnitTest id to its TestMethod element."""
        definitions: Dict[str, Element] = {}
        for unit_test in document.find_all("UnitTest"):
            test_id = unit_test.get("id")
            method = document.child(unit_test, "TestMethod")
            if test_id is not None and method is not None:
                definitions.setdefault(test_id, method)
        return definitions

    def _class_name(self, record: Element, definitions: Dict[str, Element]) -> str:
        test_id = self._required(record, "testId")
        method = definitions.get(test_id)
        if method is None:
            raise MissingMandatoryNodeError("UnitTest/TestMethod", f"no definition for testId {test_id}")
        class_name = method.get("className")
        if class_name is None or not class_name.strip():
            raise MissingMandatoryNodeError("TestMethod@className", f"testId {test_id}")
        return class_name

    @staticmethod
    def _required(record: Element, attribute: str) -> str:
        value = record.get(attribute)
        if value is None:
            raise MissingMandatoryNodeError(
                f"UnitTestResult@{attribute}", f"record {record.get('testId', '?')}"
            )
        return value

    def _recover(self, error: OptionalMetadataError) -> Diagnostic:
        self.logger.error("Recovered from metadata error: %s", error)
        return Diagnostic.from_error(error)
