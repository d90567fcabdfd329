"""
The store module is the interface to the release store maintained by the
release server in the cluster (e.g. helm).

- Releases are keyed by release name.
- Every call is a fresh round trip; nothing is cached between calls.
- Failures raise a `StoreException`, and `ReleaseNotFoundError` for names the
  store does not know about.

Implementations are provided for the helm CLI and an in-memory store.
"""

from .store import ReleaseStore
from .in_memory import InMemoryReleaseStore
from .helm import HelmReleaseStore

__all__ = [
    "ReleaseStore",
    "InMemoryReleaseStore",
    "HelmReleaseStore",
]
