"""
Extraction of run level metadata (machine, user, runner, timing).
"""

import logging
import os
from datetime import datetime
from typing import List, Optional, Tuple

from .document import TrxDocument, namespace_of
from .exceptions import OptionalMetadataError
from .models import Diagnostic, Extraction, RunInfo, TestRunner

logger = logging.getLogger(__name__)

TEST_RESULT_FILE = "TestResult File"
LAST_RUN = "Last Run"
DURATION = "Duration"
MACHINE_NAME = "Machine Name"
TEST_RUNNER = "TestRunner"
TEST_RUNNER_VERSION = "TestRunner Version"
USER = "User"
USER_DOMAIN = "User Domain"

Entries = List[Tuple[str, str]]


def format_last_run(moment: datetime) -> str:
    """Format a timestamp as e.g. "5 Mar 2024 14:07"."""
    return f"{moment.day} {moment.strftime('%b %Y %H:%M')}"


def format_milliseconds(value: float) -> str:
    """Format a duration as e.g. "2250 ms"."""
    number = int(value) if float(value).is_integer() else value
    return f"{number} ms"


def split_user(run_user: str) -> Entries:
    """Split "DOMAIN\\user" into User and User Domain entries."""
    domain, separator, user = run_user.partition("\\")
    if not separator:
        return [(USER, run_user)]
    return [(USER, user), (USER_DOMAIN, domain)]


class RunMetadataExtractor:
    """Builds the RunInfo table for a result document.

    Problems reading optional metadata never abort extraction; each one is
    logged and returned as a Diagnostic.
    """

    def __init__(
        self,
        test_runner: TestRunner = TestRunner.MSTEST_2010,
        log: Optional[logging.Logger] = None,
    ):
        self.test_runner = test_runner
        self.logger = log or logger

    def extract(
        self, document: TrxDocument, file_path: str, run_duration: float = 0.0
    ) -> Tuple[RunInfo, List[Diagnostic]]:
        """
        Collect run metadata in display order.

        Args:
            document: Parsed result document
            file_path: Path of the result file
            run_duration: Run duration in milliseconds

        Returns:
            (RunInfo, diagnostics for every entry that had to be left out)
        """
        entries: Entries = [(TEST_RESULT_FILE, file_path)]
        diagnostics: List[Diagnostic] = []

        last_run = self.last_modified(file_path)
        if last_run.ok:
            entries.append((LAST_RUN, last_run.value))
        else:
            diagnostics.append(self._report(last_run.error))

        if run_duration > 0:
            entries.append((DURATION, format_milliseconds(run_duration)))

        environment = self.environment(document)
        if environment.ok and environment.value:
            entries.extend(environment.value)
        else:
            if not environment.ok:
                diagnostics.append(self._report(environment.error))
            entries.append((TEST_RUNNER, self.test_runner.value))

        return RunInfo(self.test_runner, tuple(entries)), diagnostics

    def last_modified(self, file_path: str) -> Extraction[str]:
        try:
            moment = datetime.fromtimestamp(os.path.getmtime(file_path))
        except (OSError, ValueError, OverflowError) as e:
            return Extraction(error=OptionalMetadataError(LAST_RUN, str(e)))
        return Extraction(format_last_run(moment))

    def environment(self, document: TrxDocument) -> Extraction[Entries]:
        """
        Read machine, runner and user details from the TestRun node.

        Returns:
            Extraction with no value when there is no TestRun node
        """
        test_run = document.find_first("TestRun")
        if test_run is None:
            self.logger.debug("No TestRun node found; recording runner name only")
            return Extraction()

        first_result = document.find_first("UnitTestResult")
        machine = first_result.get("computerName") if first_result is not None else None
        if machine is None:
            return Extraction(
                error=OptionalMetadataError(
                    MACHINE_NAME, "first UnitTestResult has no computerName attribute"
                )
            )

        version = namespace_of(test_run)
        if not version:
            return Extraction(
                error=OptionalMetadataError(TEST_RUNNER_VERSION, "TestRun node has no namespace")
            )

        entries: Entries = [
            (MACHINE_NAME, machine),
            (TEST_RUNNER, self.test_runner.value),
            (TEST_RUNNER_VERSION, version),
        ]

        run_user = test_run.get("runUser")
        if run_user and run_user.strip():
            entries.extend(split_user(run_user))

        return Extraction(entries)

    def _report(self, error: OptionalMetadataError) -> Diagnostic:
        self.logger.error("There was an error processing run metadata: %s", error)
        return Diagnostic.from_error(error)
