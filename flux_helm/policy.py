"""Decide which changes are allowed for a release in a given status."""

import logging

from .manifest import ReleaseStatus
from .exceptions import ReleaseStatusException

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "check_deletable",
]

DELETABLE_STATUSES = frozenset({ReleaseStatus.DEPLOYED, ReleaseStatus.FAILED})


def check_deletable(name: str, status: ReleaseStatus) -> bool:
    """Return True if a release in the status may be deleted.

    A release that is already deleted returns False so that deleting it
    again is a no-op. Any release in a transitional or unknown status
    raises `ReleaseStatusException`, and the delete may be retried later.
    """
    if status in DELETABLE_STATUSES:
        _LOGGER.info("Deleting release (%s)", name)
        return True
    if status == ReleaseStatus.DELETED:
        _LOGGER.info("Release (%s) already deleted", name)
        return False
    _LOGGER.info("Release (%s) with status %s cannot be deleted", name, status)
    raise ReleaseStatusException(name, status)
