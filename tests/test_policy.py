"""Tests for the release status policy."""

import pytest

from flux_helm.exceptions import ReleaseStatusException
from flux_helm.manifest import ReleaseStatus
from flux_helm.policy import check_deletable


@pytest.mark.parametrize("status", [ReleaseStatus.DEPLOYED, ReleaseStatus.FAILED])
def test_deletable(status: ReleaseStatus) -> None:
    """Test releases that may be deleted."""
    assert check_deletable("apps-podinfo", status)


def test_already_deleted() -> None:
    """Test a deleted release is not deleted again and is not an error."""
    assert not check_deletable("apps-podinfo", ReleaseStatus.DELETED)


@pytest.mark.parametrize(
    "status",
    [
        ReleaseStatus.UNKNOWN,
        ReleaseStatus.SUPERSEDED,
        ReleaseStatus.DELETING,
        ReleaseStatus.PENDING_INSTALL,
        ReleaseStatus.PENDING_UPGRADE,
        ReleaseStatus.PENDING_ROLLBACK,
    ],
)
def test_blocked(status: ReleaseStatus) -> None:
    """Test releases in a transitional status can't be deleted."""
    with pytest.raises(ReleaseStatusException, match=str(status)) as exc_info:
        check_deletable("apps-podinfo", status)
    assert exc_info.value.name == "apps-podinfo"
    assert exc_info.value.status == status
    assert "apps-podinfo" in str(exc_info.value)
