"""Store module for querying and changing releases."""

from abc import ABC, abstractmethod
from pathlib import Path

from flux_helm.manifest import ReleaseRecord, ReleaseStatus


class ReleaseStore(ABC):
    """Abstract base class for a store of chart releases."""

    @abstractmethod
    async def install_release(
        self,
        chart_dir: Path,
        namespace: str,
        values: str,
        name: str,
        *,
        dry_run: bool = False,
        reuse_name: bool = False,
    ) -> ReleaseRecord:
        """Create a new release of the chart with the YAML encoded values."""

    @abstractmethod
    async def update_release(
        self,
        name: str,
        chart_dir: Path,
        values: str,
        *,
        dry_run: bool = False,
        namespace: str | None = None,
    ) -> ReleaseRecord:
        """Upgrade an existing release to the chart with the YAML encoded values."""

    @abstractmethod
    async def delete_release(self, name: str, *, purge: bool = True) -> None:
        """Delete a release, removing its history when purge is set."""

    @abstractmethod
    async def release_status(self, name: str) -> ReleaseStatus:
        """Return the current status of a release.

        Raises:
            ReleaseNotFoundError: If the store has no release with the name.
        """

    @abstractmethod
    async def release_content(self, name: str) -> ReleaseRecord:
        """Return the release including its rendered manifest.

        Raises:
            ReleaseNotFoundError: If the store has no release with the name.
        """

    @abstractmethod
    async def list_releases(self) -> list[ReleaseRecord]:
        """List all releases known to the store in the order reported."""
