"""Exceptions related to flux-helm."""

from typing import Any

__all__ = [
    "FluxHelmException",
    "InputException",
    "ConfigException",
    "SerializationException",
    "CommandException",
    "StoreException",
    "HelmException",
    "ReleaseNotFoundError",
    "ReleaseStatusException",
    "AnnotationException",
]


class FluxHelmException(Exception):
    """Generic base exception used for this library."""


class InputException(FluxHelmException):
    """Raised when the input resources are not formatted as expected."""


class ConfigException(InputException):
    """Raised when a FluxHelmRelease or action can't be used to make a release."""


class SerializationException(ConfigException):
    """Raised when the values of a FluxHelmRelease can't be rendered."""


class CommandException(FluxHelmException):
    """Raised when there is a failure running a subcommand."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class StoreException(FluxHelmException):
    """Raised when there is a failure talking to the release store."""


class HelmException(StoreException, CommandException):
    """Raised when there is a failure running a helm command."""


class ReleaseNotFoundError(StoreException):
    """Raised when a release is not known to the release store."""


class ReleaseStatusException(StoreException):
    """Raised when a release is in a status that blocks the operation.

    This is usually transient (e.g. a pending upgrade) and the caller may
    retry later.
    """

    def __init__(self, name: str, status: Any) -> None:
        super().__init__(f"Release ({name}) with status {status} cannot be deleted")
        self.name = name
        self.status = status


class AnnotationException(CommandException):
    """Raised when the resources of a release could not be annotated."""
