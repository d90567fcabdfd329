"""Configuration objects for flux-helm."""

from dataclasses import dataclass


@dataclass
class ReleaseConfig:
    """Configuration for managing releases."""

    charts_path: str = ""
    """Path of the charts within a checked out chart repository."""
