"""
Normalization layer for advisory records.

- references: commit / pull-request URL classification
- normalizer: derived storage columns for one advisory
"""
from .normalizer import (
    NormalizedAdvisory,
    NormalizedPackage,
    SerializationError,
    collect_references,
    find_cve,
    normalize_advisory,
)
from .references import extract_git_commits, extract_pull_requests

__all__ = [
    "NormalizedAdvisory",
    "NormalizedPackage",
    "SerializationError",
    "collect_references",
    "find_cve",
    "normalize_advisory",
    "extract_git_commits",
    "extract_pull_requests",
]
