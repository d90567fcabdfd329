"""Module for an in memory release store."""

import dataclasses
from pathlib import Path
import logging

from flux_helm.manifest import ReleaseRecord, ReleaseStatus, DEFAULT_NAMESPACE
from flux_helm.exceptions import ReleaseNotFoundError, StoreException

from .store import ReleaseStore


_LOGGER = logging.getLogger(__name__)


class InMemoryReleaseStore(ReleaseStore):
    """In-memory implementation of the ReleaseStore interface.

    Releases are kept in insertion order keyed by name. Since charts are not
    rendered, the manifest of a release is looked up from `charts` by chart
    directory. Mutating calls are recorded in `operations` as
    `(operation, name)` tuples.
    """

    def __init__(self, charts: dict[Path, str] | None = None) -> None:
        """Initialize the InMemoryReleaseStore."""
        self._charts = charts or {}
        self._releases: dict[str, ReleaseRecord] = {}
        self.operations: list[tuple[str, str]] = []

    @property
    def releases(self) -> list[ReleaseRecord]:
        """All releases currently in the store."""
        return list(self._releases.values())

    def add_release(self, release: ReleaseRecord) -> None:
        """Add or replace a release without going through an install."""
        self._releases[release.name] = release

    def _get(self, name: str) -> ReleaseRecord:
        if (release := self._releases.get(name)) is None:
            raise ReleaseNotFoundError(f"release: {name} not found")
        return release

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
        if name in self._releases and not reuse_name:
            raise StoreException(f"cannot re-use a name that is still in use: {name}")
        release = ReleaseRecord(
            name=name,
            namespace=namespace or DEFAULT_NAMESPACE,
            status=ReleaseStatus.DEPLOYED,
            manifest=self._charts.get(chart_dir, ""),
            version=1,
        )
        if dry_run:
            _LOGGER.debug("Dry run install of release %s", name)
            return release
        self.operations.append(("install", name))
        self._releases[name] = release
        return release

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
        existing = self._get(name)
        if existing.status == ReleaseStatus.DELETED:
            raise StoreException(f"{name} has no deployed releases")
        release = ReleaseRecord(
            name=name,
            namespace=existing.namespace,
            status=ReleaseStatus.DEPLOYED,
            manifest=self._charts.get(chart_dir, existing.manifest),
            version=(existing.version or 0) + 1,
        )
        if dry_run:
            _LOGGER.debug("Dry run upgrade of release %s", name)
            return release
        self.operations.append(("upgrade", name))
        self._releases[name] = release
        return release

    async def delete_release(self, name: str, *, purge: bool = True) -> None:
        """Delete a release, removing its history when purge is set."""
        existing = self._get(name)
        self.operations.append(("delete", name))
        if purge:
            del self._releases[name]
            return
        existing.status = ReleaseStatus.DELETED

    async def release_status(self, name: str) -> ReleaseStatus:
        """Return the current status of a release."""
        return self._get(name).status

    async def release_content(self, name: str) -> ReleaseRecord:
        """Return the release including its rendered manifest."""
        return dataclasses.replace(self._get(name))

    async def list_releases(self) -> list[ReleaseRecord]:
        """List all releases known to the store."""
        return [dataclasses.replace(release) for release in self._releases.values()]
