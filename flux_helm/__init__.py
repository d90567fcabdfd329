"""
.. include:: ../README.md
"""

__all__ = [
    "manifest",
    "release",
    "policy",
    "annotate",
    "store",
    "config",
    "exceptions",
]
