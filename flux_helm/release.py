"""Library for managing the release of a FluxHelmRelease.

A `Release` makes changes to a release store on behalf of FluxHelmRelease
resources. The store and the tagger used to annotate resources are passed in
explicitly. `HelmReleaseStore` writes values files to its temporary
directory, creating it on first use:

```python
from flux_helm.annotate import KubectlTagger
from flux_helm.manifest import Action, FluxHelmRelease, release_name
from flux_helm.release import Release
from flux_helm.store import HelmReleaseStore

release = Release(HelmReleaseStore(tmp_dir), KubectlTagger())
hr = FluxHelmRelease.parse_doc(doc)
result = await release.install(repo_dir, release_name(hr), hr, Action.INSTALL)
if result.annotation_error:
    print(f"Release {result.release.name} was not annotated")
```

Errors from the store are raised to the caller without retries. A failure to
annotate the resources of a successful release is not raised since the
release has already been made; it is returned in the `InstallResult`.
"""

from dataclasses import dataclass
import logging
from pathlib import Path

import yaml

from .annotate import ResourceTagger, annotate_resources
from .config import ReleaseConfig
from .exceptions import (
    AnnotationException,
    ConfigException,
    ReleaseNotFoundError,
    SerializationException,
    StoreException,
)
from .manifest import (
    Action,
    FluxHelmRelease,
    InstallOptions,
    ReleaseRecord,
    ReleaseStatus,
    release_name,
)
from .policy import check_deletable
from .store import ReleaseStore

__all__ = [
    "Release",
    "InstallResult",
]

_LOGGER = logging.getLogger(__name__)


ERR_CHART_GIT_PATH_MISSING = (
    "Chart deploy configuration ({name}) has empty Chart git path"
)


@dataclass
class InstallResult:
    """The outcome of installing or upgrading a release."""

    release: ReleaseRecord
    """The release as reported by the store."""

    annotation_error: AnnotationException | None = None
    """Set when the release succeeded but its resources were not annotated."""

    @property
    def annotated(self) -> bool:
        """Return True if no annotation failure occurred."""
        return self.annotation_error is None


def _render_values(name: str, hr: FluxHelmRelease) -> str:
    """Return the values of the FluxHelmRelease as a YAML document."""
    if not hr.values:
        return ""
    try:
        return yaml.safe_dump(hr.values, sort_keys=False)
    except yaml.YAMLError as err:
        _LOGGER.error(
            "Problem with supplied customizations for Chart release [%s]: %s",
            name,
            err,
        )
        raise SerializationException(
            f"Unable to serialize values for Chart release [{name}]: {err}"
        ) from err


class Release:
    """Manages chart releases in a release store."""

    def __init__(
        self,
        store: ReleaseStore,
        tagger: ResourceTagger,
        config: ReleaseConfig | None = None,
    ) -> None:
        """Initialize Release."""
        self._store = store
        self._tagger = tagger
        self._config = config or ReleaseConfig()

    async def get_deployed_release(self, name: str) -> ReleaseRecord | None:
        """Return the release only if it is currently deployed."""
        try:
            release = await self._store.release_content(name)
        except ReleaseNotFoundError:
            _LOGGER.debug("Release (%s) not found", name)
            return None
        if release.status == ReleaseStatus.DEPLOYED:
            return release
        return None

    async def get_current(self) -> dict[str, list[str]]:
        """Return the names of all releases grouped by namespace."""
        releases = await self._store.list_releases()
        _LOGGER.info("Number of Chart releases: %d", len(releases))
        result: dict[str, list[str]] = {}
        for release in releases:
            result.setdefault(release.namespace, []).append(release.name)
        return result

    async def can_delete(self, name: str) -> bool:
        """Return True if the release exists in a status that may be deleted.

        A release that is already deleted or no longer known to the store
        returns False. A release in a transitional status raises
        `ReleaseStatusException`.
        """
        try:
            status = await self._store.release_status(name)
        except ReleaseNotFoundError:
            _LOGGER.info("Release (%s) already deleted", name)
            return False
        _LOGGER.info("Release [%s] status: %s", name, status)
        return check_deletable(name, status)

    async def install(
        self,
        repo_dir: Path,
        name: str,
        hr: FluxHelmRelease,
        action: Action,
        options: InstallOptions | None = None,
    ) -> InstallResult:
        """Perform a chart release for the FluxHelmRelease.

        Depending on the action this is either a new release or an upgrade of
        an existing one. The chart is found in `repo_dir` under the configured
        charts path.
        """
        if options is None:
            options = InstallOptions()
        _LOGGER.info(
            "releaseName=%s, action=%s, install options: %s", name, action, options
        )
        if not hr.chart_git_path:
            message = ERR_CHART_GIT_PATH_MISSING.format(name=hr.name)
            _LOGGER.error(message)
            raise ConfigException(message)

        namespace = hr.release_namespace
        chart_dir = Path(repo_dir) / self._config.charts_path / hr.chart_git_path
        values = _render_values(name, hr)

        if action not in (Action.INSTALL, Action.UPGRADE):
            raise ConfigException(
                f"Valid install options: {Action.INSTALL}, {Action.UPGRADE}. "
                f"Provided: {action}"
            )
        try:
            if action == Action.INSTALL:
                release = await self._store.install_release(
                    chart_dir,
                    namespace,
                    values,
                    name,
                    dry_run=options.dry_run,
                    reuse_name=options.reuse_name,
                )
            else:
                release = await self._store.update_release(
                    name,
                    chart_dir,
                    values,
                    dry_run=options.dry_run,
                    namespace=namespace,
                )
        except StoreException as err:
            _LOGGER.error("Chart release failed: %s: %s", name, err)
            raise
        _LOGGER.info("Chart release %s: %s (%s)", action, name, release.status)

        result = InstallResult(release=release)
        if not options.dry_run:
            try:
                await annotate_resources(self._tagger, release, hr)
            except AnnotationException as err:
                result.annotation_error = err
        return result

    async def sync(
        self,
        repo_dir: Path,
        hr: FluxHelmRelease,
        options: InstallOptions | None = None,
    ) -> InstallResult:
        """Install the FluxHelmRelease, or upgrade it if already deployed."""
        name = release_name(hr)
        action = Action.INSTALL
        if await self.get_deployed_release(name) is not None:
            action = Action.UPGRADE
        return await self.install(repo_dir, name, hr, action, options)

    async def delete(self, name: str) -> None:
        """Purge the release if it is in a status that may be deleted."""
        if not await self.can_delete(name):
            return
        try:
            await self._store.delete_release(name, purge=True)
        except StoreException as err:
            _LOGGER.error("Release deletion error: %s", err)
            raise
        _LOGGER.info("Release deleted: [%s]", name)
