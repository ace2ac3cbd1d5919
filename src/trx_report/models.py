"""
Data models for converted test run reports.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

from .exceptions import OptionalMetadataError

T = TypeVar("T")


class Status(Enum):
    """Normalized status of a test, fixture or report."""

    PASSED = "Passed"
    FAILED = "Failed"
    INCONCLUSIVE = "Inconclusive"
    SKIPPED = "Skipped"
    ERROR = "Error"


class TestRunner(Enum):
    """Test framework that produced the result document."""

    __test__ = False

    MSTEST_2010 = "MSTest2010"


@dataclass(frozen=True)
class Test:
    """Result of a single test execution."""

    __test__ = False

    name: str
    status: Status
    duration: float = 0.0  # milliseconds
    status_message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "duration": self.duration,
            "status_message": self.status_message,
        }


@dataclass(frozen=True)
class TestSuite:
    """Tests grouped under one fixture name."""

    __test__ = False

    name: str
    duration: float
    status: Status
    tests: Tuple[Test, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "duration": self.duration,
            "status": self.status.value,
            "tests": [t.to_dict() for t in self.tests],
        }


@dataclass(frozen=True)
class RunInfo:
    """Ordered label/value metadata describing the whole run.

    Entry order is display order.
    """

    test_runner: TestRunner
    entries: Tuple[Tuple[str, str], ...] = ()

    def __getitem__(self, label: str) -> str:
        for key, value in self.entries:
            if key == label:
                return value
        raise KeyError(label)

    def __contains__(self, label: object) -> bool:
        return any(key == label for key, _ in self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.labels())

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, label: str, default: Optional[str] = None) -> Optional[str]:
        try:
            return self[label]
        except KeyError:
            return default

    def labels(self) -> List[str]:
        return [key for key, _ in self.entries]

    def items(self) -> List[Tuple[str, str]]:
        return list(self.entries)


@dataclass(frozen=True)
class Report:
    """Normalized report built from one test result file."""

    file_name: str
    test_runner: TestRunner
    status: Status
    run_info: RunInfo
    assembly_name: str = ""
    total: int = 0
    passed: int = 0
    failed: int = 0
    inconclusive: int = 0
    skipped: int = 0
    errors: int = 0
    duration: float = 0.0  # milliseconds
    test_suites: Tuple[TestSuite, ...] = ()

    @property
    def tests(self) -> List[Test]:
        """All tests across every fixture, in fixture order."""
        return [test for suite in self.test_suites for test in suite.tests]

    def suite(self, name: str) -> Optional[TestSuite]:
        """Return the fixture with the given name, ignoring case."""
        wanted = name.casefold()
        return next((s for s in self.test_suites if s.name.casefold() == wanted), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "assembly_name": self.assembly_name,
            "test_runner": self.test_runner.value,
            "status": self.status.value,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "inconclusive": self.inconclusive,
            "skipped": self.skipped,
            "errors": self.errors,
            "duration": self.duration,
            "run_info": dict(self.run_info.entries),
            "test_suites": [s.to_dict() for s in self.test_suites],
        }


@dataclass(frozen=True)
class Diagnostic:
    """An optional piece of metadata that could not be extracted."""

    source: str
    reason: str

    @classmethod
    def from_error(cls, error: OptionalMetadataError) -> "Diagnostic":
        return cls(source=error.field, reason=error.reason)

    def to_dict(self) -> Dict[str, str]:
        return {"source": self.source, "reason": self.reason}


@dataclass(frozen=True)
class Extraction(Generic[T]):
    """Outcome of reading one optional value.

    ``value`` may still be set when ``error`` is, holding the fallback used.
    """

    value: Optional[T] = None
    error: Optional[OptionalMetadataError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ConversionResult:
    """A converted report together with any recovered failures."""

    report: Report
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report": self.report.to_dict(),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
