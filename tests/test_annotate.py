"""Tests for annotating release resources."""

from unittest.mock import AsyncMock, patch

import pytest

from flux_helm.annotate import (
    ANTECEDENT_ANNOTATION,
    KubectlTagger,
    ResourceTagger,
    annotate_resources,
    owner_annotation,
)
from flux_helm.exceptions import AnnotationException
from flux_helm.manifest import FluxHelmRelease, ReleaseRecord, ReleaseStatus


MANIFEST = """---
apiVersion: v1
kind: Service
metadata:
  name: podinfo
"""

HR = FluxHelmRelease(name="podinfo", namespace="apps", chart_git_path="podinfo")


class RecordingTagger(ResourceTagger):
    """A tagger that records the calls made to it."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str, str]] = []

    async def tag(self, manifest: str, namespace: str, key: str, value: str) -> None:
        self.calls.append((manifest, namespace, key, value))


def test_owner_annotation() -> None:
    """Test the annotation referring back to the FluxHelmRelease."""
    assert owner_annotation(HR) == (
        "flux.weave.works/antecedent",
        "apps:fluxhelmrelease/podinfo",
    )


def test_kubectl_command() -> None:
    """Test the kubectl command used to annotate the resources."""
    tagger = KubectlTagger()
    cmd = tagger.command(
        "apps", ANTECEDENT_ANNOTATION, "apps:fluxhelmrelease/podinfo"
    )
    assert cmd.cmd == [
        "kubectl",
        "annotate",
        "--overwrite",
        "--namespace",
        "apps",
        "-f",
        "-",
        "flux.weave.works/antecedent=apps:fluxhelmrelease/podinfo",
    ]
    assert cmd.exc is AnnotationException


async def test_kubectl_tag() -> None:
    """Test the manifest is passed to kubectl on stdin with the timeout."""
    tagger = KubectlTagger(timeout=5.0)
    with patch("flux_helm.annotate.command.run", new=AsyncMock()) as mock_run:
        await tagger.tag(MANIFEST, "apps", "key", "value")
    mock_run.assert_awaited_once()
    args, kwargs = mock_run.call_args
    assert args[0].cmd[-1] == "key=value"
    assert kwargs == {"stdin": MANIFEST, "timeout": 5.0}


async def test_kubectl_tag_failure() -> None:
    """Test a failing kubectl command raises an AnnotationException."""
    tagger = KubectlTagger(kubectl_bin="false")
    with pytest.raises(AnnotationException, match="return code 1"):
        await tagger.tag(MANIFEST, "apps", "key", "value")


async def test_annotate_resources() -> None:
    """Test annotating the resources of a release."""
    tagger = RecordingTagger()
    release = ReleaseRecord(
        name="apps-podinfo",
        namespace="apps",
        status=ReleaseStatus.DEPLOYED,
        manifest=MANIFEST,
    )
    await annotate_resources(tagger, release, HR)
    assert tagger.calls == [
        (
            MANIFEST,
            "apps",
            "flux.weave.works/antecedent",
            "apps:fluxhelmrelease/podinfo",
        )
    ]


async def test_annotate_empty_manifest() -> None:
    """Test a release without resources is still passed to the tagger."""
    tagger = RecordingTagger()
    release = ReleaseRecord(
        name="apps-podinfo", namespace="apps", status=ReleaseStatus.DEPLOYED
    )
    await annotate_resources(tagger, release, HR)
    assert tagger.calls == [
        (
            "",
            "apps",
            "flux.weave.works/antecedent",
            "apps:fluxhelmrelease/podinfo",
        )
    ]
