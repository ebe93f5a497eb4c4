"""
Derive the denormalized storage columns for one advisory.

normalize_advisory() is pure: it never touches the database and only fails
when one of the serialized columns cannot be JSON encoded.

Derived columns:
- ecosystems: union of affected package ecosystems
- cve: first alias starting with "CVE-"
- ref_commits / ref_pull_requests: classified reference URLs

A derived set that ends up empty is stored as NULL, never as "[]".
"""
import json
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Set

from ingestion.models import GitHubAdvisory
from .references import extract_git_commits, extract_pull_requests

CVE_PREFIX = "CVE-"


class SerializationError(ValueError):
    """Raised when a derived column cannot be JSON encoded."""

    def __init__(self, column: str, cause: Exception):
        super().__init__(f"Cannot serialize column '{column}': {cause}")
        self.column = column


@dataclass
class NormalizedPackage:
    """Row values for the affected_packages table."""
    ghsa: str
    name: str
    ecosystem: str
    ranges: Optional[str]
    versions: Optional[str]


@dataclass
class NormalizedAdvisory:
    """Row values for the advisories table plus its package rows."""
    ghsa: str
    schema_version: Optional[str]
    modified: str
    published: Optional[str]
    withdrawn: Optional[str]
    cve: Optional[str]
    ecosystems: Optional[str]
    summary: Optional[str]
    details: Optional[str]
    severity: Optional[str]
    cwes: Optional[str]
    github_reviewed: Optional[int]
    github_reviewed_at: Optional[str]
    nvd_published_at: Optional[str]
    ref_commits: Optional[str]
    ref_pull_requests: Optional[str]
    packages: List[NormalizedPackage] = field(default_factory=list)

    def advisory_row(self) -> List[Any]:
        """Values in advisories column order."""
        return [
            self.ghsa,
            self.schema_version,
            self.modified,
            self.published,
            self.withdrawn,
            self.cve,
            self.ecosystems,
            self.summary,
            self.details,
            self.severity,
            self.cwes,
            self.github_reviewed,
            self.github_reviewed_at,
            self.nvd_published_at,
            self.ref_commits,
            self.ref_pull_requests,
        ]


def _dumps(column: str, value: Any) -> str:
    try:
        return json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(column, e) from e


def _dumps_set(column: str, values: Set[str]) -> Optional[str]:
    if not values:
        return None
    try:
        ordered = sorted(values)
    except TypeError as e:
        raise SerializationError(column, e) from e
    return _dumps(column, ordered)


def _dumps_optional(column: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    return _dumps(column, value)


def find_cve(aliases: Optional[Iterable[str]]) -> Optional[str]:
    """Return the first alias that is a CVE identifier."""
    return next((a for a in aliases or [] if a.startswith(CVE_PREFIX)), None)


def collect_references(urls: Iterable[str]):
    """
    Classify every reference URL.

    Returns:
        Tuple of (commit URL set, pull-request URL set)
    """
    commit_urls: Set[str] = set()
    pull_request_urls: Set[str] = set()
    for url in urls:
        commit_urls |= extract_git_commits(url)
        pull_request_urls |= extract_pull_requests(url)
    return commit_urls, pull_request_urls


def normalize_advisory(advisory: GitHubAdvisory) -> NormalizedAdvisory:
    """
    Compute the advisories row and affected_packages rows for one record.

    Args:
        advisory: Decoded advisory record

    Returns:
        NormalizedAdvisory ready for insertion

    Raises:
        SerializationError: If a serialized column cannot be encoded
    """
    affected = advisory.affected or []
    ecosystems = {a.package.ecosystem for a in affected}

    reference_urls = [r.url for r in advisory.references or []]
    commit_urls, pull_request_urls = collect_references(reference_urls)

    specific = advisory.database_specific
    github_reviewed = None
    if specific is not None and specific.github_reviewed is not None:
        github_reviewed = 1 if specific.github_reviewed else 0

    packages = [
        NormalizedPackage(
            ghsa=advisory.id,
            name=a.package.name,
            ecosystem=a.package.ecosystem,
            ranges=_dumps_optional("ranges", a.ranges),
            versions=_dumps_optional("versions", a.versions),
        )
        for a in affected
    ]

    return NormalizedAdvisory(
        ghsa=advisory.id,
        schema_version=advisory.schema_version,
        modified=advisory.modified,
        published=advisory.published,
        withdrawn=advisory.withdrawn,
        cve=find_cve(advisory.aliases),
        ecosystems=_dumps_set("ecosystems", ecosystems),
        summary=advisory.summary,
        details=advisory.details,
        severity=specific.severity if specific else None,
        cwes=_dumps_optional("cwes", specific.cwe_ids) if specific else None,
        github_reviewed=github_reviewed,
        github_reviewed_at=specific.github_reviewed_at if specific else None,
        nvd_published_at=_dumps_optional("nvd_published_at", specific.nvd_published_at) if specific else None,
        ref_commits=_dumps_set("ref_commits", commit_urls),
        ref_pull_requests=_dumps_set("ref_pull_requests", pull_request_urls),
        packages=packages,
    )
