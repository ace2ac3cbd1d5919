"""
Conversion of MSTest result (.trx) files into a normalized report model.
"""

from .config import ConverterConfig, load_config
from .converter import TrxConverter
from .exceptions import (
    MissingMandatoryNodeError,
    OptionalMetadataError,
    ParseError,
    TrxReportError,
    UnknownOutcomeError,
)
from .models import ConversionResult, Diagnostic, Report, RunInfo, Status, Test, TestRunner, TestSuite

__version__ = "0.1.0"

__all__ = [
    "ConversionResult",
    "ConverterConfig",
    "Diagnostic",
    "MissingMandatoryNodeError",
    "OptionalMetadataError",
    "ParseError",
    "Report",
    "RunInfo",
    "Status",
    "Test",
    "TestRunner",
    "TestSuite",
    "TrxConverter",
    "TrxReportError",
    "UnknownOutcomeError",
    "load_config",
]
