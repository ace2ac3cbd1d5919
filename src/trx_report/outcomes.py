"""
Mapping of runner outcome codes to normalized statuses.
"""

import logging
from typing import Dict, Optional

from .exceptions import UnknownOutcomeError
from .models import Status

logger = logging.getLogger(__name__)

OUTCOME_STATUS: Dict[str, Status] = {
    "Passed": Status.PASSED,
    "Failed": Status.FAILED,
    "Inconclusive": Status.INCONCLUSIVE,
    "NotRunnable": Status.INCONCLUSIVE,
    "PassedButRunAborted": Status.INCONCLUSIVE,
    "Disconnected": Status.INCONCLUSIVE,
    "Warning": Status.INCONCLUSIVE,
    "Pending": Status.INCONCLUSIVE,
    "NotExecuted": Status.SKIPPED,
    "Error": Status.ERROR,
    "Aborted": Status.ERROR,
    "Timeout": Status.ERROR,
    # Lower camel case spellings written by some runner versions
    "notRunnable": Status.INCONCLUSIVE,
    "passedButRunAborted": Status.INCONCLUSIVE,
    "disconnected": Status.INCONCLUSIVE,
    "warning": Status.INCONCLUSIVE,
    "pending": Status.INCONCLUSIVE,
    "timeout": Status.ERROR,
}


class OutcomeClassifier:
    """Classifies raw outcome tokens.

    With the "error" policy an unrecognised token raises UnknownOutcomeError;
    with "inconclusive" it is reported as Status.INCONCLUSIVE.
    """

    def __init__(self, unknown_outcome: str = "error", log: Optional[logging.Logger] = None):
        self.unknown_outcome = unknown_outcome
        self.logger = log or logger

    def classify(self, outcome: Optional[str]) -> Status:
        if outcome is not None and outcome in OUTCOME_STATUS:
            return OUTCOME_STATUS[outcome]

        if self.unknown_outcome == "inconclusive":
            self.logger.warning("Unrecognized outcome %r treated as Inconclusive", outcome)
            return Status.INCONCLUSIVE

        raise UnknownOutcomeError(outcome)


def classify_outcome(outcome: Optional[str], unknown_outcome: str = "error") -> Status:
    """Classify a single outcome token with the given unknown-token policy."""
    return OutcomeClassifier(unknown_outcome).classify(outcome)
