"""JIRA workflow status classification.

Classifies bugs by the status and resolution names of JIRA's default
workflow. No remote calls are made.
"""

from __future__ import annotations

STATUS_OPEN = "Open"
STATUS_IN_PROGRESS = "In Progress"
STATUS_REOPENED = "Reopened"
STATUS_RESOLVED = "Resolved"
STATUS_CLOSED = "Closed"
STATUS_VERIFIED = "Verified"

RESOLUTION_FIXED = "Fixed"
RESOLUTION_WONT_FIX = "Won't Fix"
RESOLUTION_DUPLICATE = "Duplicate"
RESOLUTION_INCOMPLETE = "Incomplete"
RESOLUTION_CANNOT_REPRODUCE = "Cannot Reproduce"

ACTION_REOPEN = "Reopen Issue"

OPEN_STATUSES: frozenset[str] = frozenset({STATUS_OPEN, STATUS_IN_PROGRESS, STATUS_REOPENED})
CLOSED_STATUSES: frozenset[str] = frozenset({STATUS_RESOLVED, STATUS_CLOSED, STATUS_VERIFIED})

# Closed bugs with these resolutions may be reopened
REOPENABLE_RESOLUTIONS: frozenset[str] = frozenset({RESOLUTION_FIXED, RESOLUTION_INCOMPLETE})


def is_open_status(status: str | None) -> bool:
    """Check if a status means work on the bug is pending or ongoing."""
    return status in OPEN_STATUSES


def is_closed_status(status: str | None) -> bool:
    """Check if a status means the bug is resolved or closed."""
    return status in CLOSED_STATUSES


def can_reopen(status: str | None, resolution: str | None) -> bool:
    """Check if a bug is closed with a resolution that allows reopening.

    Parameters
    ----------
    status : str | None
        Status name, e.g. "Resolved".
    resolution : str | None
        Resolution name, e.g. "Fixed".

    Returns
    -------
    bool
        True for closed bugs resolved as Fixed or Incomplete.
    """
    return is_closed_status(status) and resolution in REOPENABLE_RESOLUTIONS
