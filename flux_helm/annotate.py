"""Library for annotating the resources created by a release.

Every object in the manifest of a release is annotated with the identity of
the FluxHelmRelease that declared it, so that cluster objects can be traced
back to their release.
"""

from abc import ABC, abstractmethod
import logging

from . import command
from .manifest import FluxHelmRelease, ReleaseRecord
from .exceptions import AnnotationException

__all__ = [
    "ResourceTagger",
    "KubectlTagger",
    "annotate_resources",
    "owner_annotation",
]

_LOGGER = logging.getLogger(__name__)


KUBECTL_BIN = "kubectl"
ANNOTATION_TIMEOUT = 20.0
ANTECEDENT_ANNOTATION = "flux.weave.works/antecedent"


class ResourceTagger(ABC):
    """Applies a key/value annotation to every object in a manifest."""

    @abstractmethod
    async def tag(self, manifest: str, namespace: str, key: str, value: str) -> None:
        """Annotate the objects, raising AnnotationException on failure."""


class KubectlTagger(ResourceTagger):
    """Annotates resources with `kubectl annotate`."""

    def __init__(
        self, kubectl_bin: str = KUBECTL_BIN, timeout: float = ANNOTATION_TIMEOUT
    ) -> None:
        """Initialize KubectlTagger."""
        self._kubectl_bin = kubectl_bin
        self._timeout = timeout

    def command(self, namespace: str, key: str, value: str) -> command.Command:
        """Return the command that annotates a manifest read from stdin."""
        return command.Command(
            [
                self._kubectl_bin,
                "annotate",
                "--overwrite",
                "--namespace",
                namespace,
                "-f",
                "-",
                f"{key}={value}",
            ],
            exc=AnnotationException,
        )

    async def tag(self, manifest: str, namespace: str, key: str, value: str) -> None:
        """Annotate all objects in the manifest."""
        cmd = self.command(namespace, key, value)
        try:
            await command.run(cmd, stdin=manifest, timeout=self._timeout)
        except AnnotationException as err:
            _LOGGER.error("Failed to annotate resources: %s", err)
            raise


def owner_annotation(hr: FluxHelmRelease) -> tuple[str, str]:
    """Return the annotation key and value referring back to the FluxHelmRelease."""
    return (ANTECEDENT_ANNOTATION, str(hr.resource_id))


async def annotate_resources(
    tagger: ResourceTagger, release: ReleaseRecord, hr: FluxHelmRelease
) -> None:
    """Annotate each of the resources created or updated by the release.

    The tagger is always invoked, so a release without resources is reported
    by the tagger as a failure rather than skipped.
    """
    key, value = owner_annotation(hr)
    _LOGGER.debug("Annotating resources of release %s with %s", release.name, value)
    await tagger.tag(release.manifest, release.namespace, key, value)
