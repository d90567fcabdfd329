"""Release store backed by the `helm` command line tool.

Each call shells out to helm so every query reflects the current state of the
releases in the cluster. Values are passed to helm through a values file
written to a temporary directory, which is created if it does not exist yet:

```python
from flux_helm.store import HelmReleaseStore

store = HelmReleaseStore(Path("/tmp/path/helm"))
for release in await store.list_releases():
    print(f"Found release {release.namespace}/{release.name}: {release.status}")
```
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from flux_helm import command
from flux_helm.manifest import ReleaseRecord, ReleaseStatus
from flux_helm.exceptions import HelmException, ReleaseNotFoundError

from .store import ReleaseStore

_LOGGER = logging.getLogger(__name__)


HELM_BIN = "helm"

# Exit status of helm when it reports an error
_HELM_ERROR = 1

# Helm errors for releases that do not exist, e.g. `Error: release: not found`
# or `release: "podinfo" not found`
_RELEASE_NOT_FOUND = re.compile(r'release: (?:"[^"]*" )?not found')


class HelmReleaseStore(ReleaseStore):
    """Manages releases with the helm CLI."""

    def __init__(
        self,
        tmp_dir: Path,
        helm_bin: str = HELM_BIN,
        kube_context: str | None = None,
        timeout: float = command.DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize HelmReleaseStore."""
        self._tmp_dir = tmp_dir
        self._helm_bin = helm_bin
        self._flags: list[str] = []
        if kube_context:
            self._flags.extend(["--kube-context", kube_context])
        self._timeout = timeout

    async def _run(self, args: list[str]) -> str:
        """Run a helm command, raising ReleaseNotFoundError for unknown releases."""
        cmd = command.Command([self._helm_bin, *args, *self._flags], exc=HelmException)
        try:
            return await command.run(cmd, timeout=self._timeout)
        except HelmException as err:
            if err.returncode == _HELM_ERROR and _RELEASE_NOT_FOUND.search(
                err.stderr or ""
            ):
                raise ReleaseNotFoundError(str(err)) from err
            raise

    async def _run_json(self, args: list[str]) -> Any:
        out = await self._run([*args, "--output", "json"])
        try:
            return json.loads(out)
        except ValueError as err:
            raise HelmException(f"Unable to parse helm output: {out}") from err

    async def _values_args(self, name: str, values: str) -> list[str]:
        """Write the values to a file and return the helm arguments to use it."""
        if not values.strip():
            return []
        values_path = self._tmp_dir / f"{name}-values.yaml"
        try:
            await aiofiles.os.makedirs(self._tmp_dir, exist_ok=True)
            async with aiofiles.open(values_path, mode="w") as values_file:
                await values_file.write(values)
        except OSError as err:
            raise HelmException(
                f"Unable to write values for release {name} to {values_path}: {err}"
            ) from err
        return ["--values", str(values_path)]

    async def _find(self, name: str) -> dict[str, Any]:
        """Return the summary of a release in any namespace or status."""
        docs = await self._run_json(
            [
                "list",
                "--all-namespaces",
                "--all",
                "--max",
                "0",
                "--filter",
                f"^{name}$",
            ]
        )
        for doc in docs or []:
            if doc.get("name") == name:
                return doc
        raise ReleaseNotFoundError(f"release: {name} not found")

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
        args = ["install", name, str(chart_dir), "--namespace", namespace]
        if dry_run:
            args.append("--dry-run")
        if reuse_name:
            args.append("--replace")
        args.extend(await self._values_args(name, values))
        return ReleaseRecord.parse_doc(await self._run_json(args))

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
        if namespace is None:
            namespace = (await self._find(name)).get("namespace")
        args = ["upgrade", name, str(chart_dir)]
        if namespace:
            args.extend(["--namespace", namespace])
        if dry_run:
            args.append("--dry-run")
        args.extend(await self._values_args(name, values))
        return ReleaseRecord.parse_doc(await self._run_json(args))

    async def delete_release(self, name: str, *, purge: bool = True) -> None:
        """Uninstall a release, keeping its history unless purge is set."""
        doc = await self._find(name)
        args = ["uninstall", name, "--namespace", doc["namespace"]]
        if not purge:
            args.append("--keep-history")
        await self._run(args)

    async def release_status(self, name: str) -> ReleaseStatus:
        """Return the current status of a release."""
        return ReleaseStatus.parse((await self._find(name)).get("status"))

    async def release_content(self, name: str) -> ReleaseRecord:
        """Return the release including its rendered manifest."""
        release = ReleaseRecord.parse_doc(await self._find(name))
        release.manifest = await self._run(
            ["get", "manifest", name, "--namespace", release.namespace]
        )
        return release

    async def list_releases(self) -> list[ReleaseRecord]:
        """List all releases in all namespaces."""
        docs = await self._run_json(
            ["list", "--all-namespaces", "--all", "--max", "0"]
        )
        return [ReleaseRecord.parse_doc(doc) for doc in docs or []]
