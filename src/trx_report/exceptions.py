"""
Custom exceptions for the TRX report converter.
"""

from typing import Optional


class TrxReportError(Exception):
    """Base exception for TRX report conversion errors."""

    pass


class ParseError(TrxReportError):
    """Raised when the input is not a well-formed XML document."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Unable to parse test result document {source}: {reason}")


class MissingMandatoryNodeError(TrxReportError):
    """Raised when a node the report cannot be built without is absent."""

    def __init__(self, node: str, detail: str = ""):
        self.node = node
        self.detail = detail
        message = f"Mandatory node missing: {node}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class UnknownOutcomeError(TrxReportError):
    """Raised when a test outcome token has no known status mapping."""

    def __init__(self, outcome: Optional[str]):
        self.outcome = outcome
        super().__init__(f"Unrecognized test outcome: {outcome!r}")


class OptionalMetadataError(TrxReportError):
    """Raised when optional run metadata cannot be read.

    Never aborts a conversion; the converter records it as a diagnostic.
    """

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Could not read {field}: {reason}")
