"""
Status rollup and counting utilities.
"""

from typing import Dict, Iterable

from .models import Status

# Most severe first.
SEVERITY_ORDER = (
    Status.ERROR,
    Status.FAILED,
    Status.INCONCLUSIVE,
    Status.SKIPPED,
    Status.PASSED,
)

_SEVERITY = {status: rank for rank, status in enumerate(reversed(SEVERITY_ORDER))}


def severity(status: Status) -> int:
    """Return a rank where a higher number means a worse status."""
    return _SEVERITY[status]


def rollup_status(statuses: Iterable[Status]) -> Status:
    """
    Derive a parent status from the worst of its children.

    Args:
        statuses: Statuses of the child tests

    Returns:
        The most severe status, or Status.PASSED when there are none
    """
    return max(statuses, key=severity, default=Status.PASSED)


def count_statuses(statuses: Iterable[Status]) -> Dict[Status, int]:
    """Count occurrences of every status, including zero counts."""
    counts = {status: 0 for status in Status}
    for status in statuses:
        counts[status] += 1
    return counts
