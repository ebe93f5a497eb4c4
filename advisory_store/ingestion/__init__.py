"""
Ingestion boundary for the advisory store.

Provides the decoded advisory shape consumed by the loader and a reader
for local OSV exports:
- models: GitHubAdvisory and its nested records
- osv_reader: iterate advisories from a directory or dump archive
"""
from .models import Affected, DatabaseSpecific, GitHubAdvisory, Package, Reference
from .osv_reader import OsvReader, iter_advisories

__all__ = [
    "Affected",
    "DatabaseSpecific",
    "GitHubAdvisory",
    "Package",
    "Reference",
    "OsvReader",
    "iter_advisories",
]
