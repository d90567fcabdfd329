"""Representation of desired and actual releases.

A `FluxHelmRelease` is the desired state of a chart release as declared in a
custom resource in the cluster. A `ReleaseRecord` is a snapshot of what the
release store knows about a release with a particular name.
"""

from dataclasses import dataclass, field
from enum import StrEnum
import logging
from typing import Any, ClassVar, Optional

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig

from .exceptions import InputException

__all__ = [
    "release_name",
    "Action",
    "FluxHelmRelease",
    "InstallOptions",
    "NamedResource",
    "ReleaseRecord",
    "ReleaseStatus",
]

_LOGGER = logging.getLogger(__name__)


# Match a prefix of apiVersion to ensure we have the right type of object.
# We don't check specific versions for forward compatibility on upgrade.
FLUX_HELM_RELEASE_DOMAIN = "helm.integrations.flux.weave.works"
FLUX_HELM_RELEASE = "FluxHelmRelease"
DEFAULT_NAMESPACE = "default"
CLUSTER_SCOPE = "<cluster>"


def _check_version(doc: dict[str, Any], version: str) -> None:
    """Assert that the resource has the specified version."""
    if not (api_version := doc.get("apiVersion")):
        raise InputException(f"Invalid object missing apiVersion: {doc}")
    if not api_version.startswith(version):
        raise InputException(f"Invalid object expected '{version}': {doc}")


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all manifest objects."""

    class Config(BaseConfig):
        omit_none = True


class ReleaseStatus(StrEnum):
    """Status of a release as reported by the release store."""

    UNKNOWN = "unknown"
    DEPLOYED = "deployed"
    DELETED = "deleted"
    SUPERSEDED = "superseded"
    FAILED = "failed"
    DELETING = "deleting"
    PENDING_INSTALL = "pending-install"
    PENDING_UPGRADE = "pending-upgrade"
    PENDING_ROLLBACK = "pending-rollback"

    @classmethod
    def parse(cls, value: str | None) -> "ReleaseStatus":
        """Parse a status name reported by helm.

        Helm 3 renamed deleted/deleting to uninstalled/uninstalling and helm 2
        reports upper case names with underscores. Any status that is not
        recognized is UNKNOWN.
        """
        if not value:
            return cls.UNKNOWN
        key = value.strip().lower().replace("_", "-")
        key = _HELM3_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            _LOGGER.debug("Unrecognized release status '%s'", value)
            return cls.UNKNOWN


_HELM3_ALIASES = {
    "uninstalled": ReleaseStatus.DELETED.value,
    "uninstalling": ReleaseStatus.DELETING.value,
}


class Action(StrEnum):
    """The kind of change to make to a release."""

    INSTALL = "CREATE"
    UPGRADE = "UPDATE"


@dataclass
class InstallOptions:
    """Options to use when installing or upgrading a release."""

    dry_run: bool = False
    """Simulate the release without persisting it."""

    reuse_name: bool = False
    """Allow an install to reuse the name of an existing release."""


@dataclass(frozen=True, order=True)
class NamedResource:
    """Identifier for a kubernetes resource."""

    kind: str
    namespace: str
    name: str

    def __str__(self) -> str:
        """Return the identity used to refer back to the resource.

        This is rendered as `<namespace>:<kind>/<name>` with a lower case kind,
        and a namespace of `<cluster>` for cluster scoped resources.
        """
        return f"{self.namespace or CLUSTER_SCOPE}:{self.kind.lower()}/{self.name}"


@dataclass
class FluxHelmRelease(BaseManifest):
    """A representation of a desired chart release."""

    kind: ClassVar[str] = FLUX_HELM_RELEASE
    """The kind of the object."""

    name: str
    """The name of the FluxHelmRelease."""

    namespace: str = ""
    """The namespace that owns the FluxHelmRelease, if any."""

    release_name: Optional[str] = field(
        metadata=field_options(alias="releaseName"), default=None
    )
    """An explicit name for the release that overrides the derived name."""

    chart_git_path: str = field(
        metadata=field_options(alias="chartGitPath"), default=""
    )
    """Path of the chart within the chart repository."""

    values: Optional[dict[str, Any]] = None
    """The values to install in the chart."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "FluxHelmRelease":
        """Parse a FluxHelmRelease from a kubernetes resource object."""
        _check_version(doc, FLUX_HELM_RELEASE_DOMAIN)
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid {cls} missing metadata: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid {cls} missing metadata.name: {doc}")
        spec = doc.get("spec") or {}
        values = spec.get("values")
        if values is not None and not isinstance(values, dict):
            raise InputException(f"Invalid {cls} spec.values is not a mapping: {doc}")
        return cls(
            name=name,
            namespace=metadata.get("namespace") or "",
            release_name=spec.get("releaseName"),
            chart_git_path=spec.get("chartGitPath") or "",
            values=values,
        )

    @property
    def release_namespace(self) -> str:
        """The namespace the release is installed in."""
        return self.namespace or DEFAULT_NAMESPACE

    @property
    def resource_id(self) -> NamedResource:
        """Identity of the custom resource this release was declared by."""
        return NamedResource(self.kind, self.namespace, self.name)


def release_name(hr: FluxHelmRelease) -> str:
    """Return the name of the release for a FluxHelmRelease.

    This is the explicit release name of the resource when set, otherwise
    `<namespace>-<name>` so that the same resource always maps to the
    same release.
    """
    if hr.release_name:
        return hr.release_name
    return f"{hr.release_namespace}-{hr.name}"


@dataclass
class ReleaseRecord(BaseManifest):
    """A snapshot of a release in the release store."""

    name: str
    """The name of the release."""

    namespace: str
    """The namespace the release is installed in."""

    status: ReleaseStatus
    """The status of the release."""

    manifest: str = ""
    """The rendered manifest of the release resources."""

    version: int | None = None
    """The revision of the release."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ReleaseRecord":
        """Parse a ReleaseRecord from a helm release object.

        This accepts both the detailed output of `helm install -o json` where
        the status is in `info.status` and the summary of `helm list -o json`
        where the status is a top level field.
        """
        if not (name := doc.get("name")):
            raise InputException(f"Invalid release missing name: {doc}")
        status = doc.get("status")
        if (info := doc.get("info")) and isinstance(info, dict):
            status = info.get("status", status)
        version = doc.get("version", doc.get("revision"))
        return cls(
            name=name,
            namespace=doc.get("namespace") or DEFAULT_NAMESPACE,
            status=ReleaseStatus.parse(status),
            manifest=doc.get("manifest") or "",
            version=int(version) if version is not None else None,
        )
