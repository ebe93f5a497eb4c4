"""
Decoded advisory records consumed by the normalizer and the loader.

These dataclasses mirror the OSV document shape published in the GitHub
advisory database. Decoding is shallow: nested range/version structures are
kept as plain JSON-compatible values since the store only re-serializes them.

from_dict() rejects documents the loader could not store (missing package
coordinates, reference without a URL, wrong container types) with ValueError,
so a reader can drop that single record instead of failing a whole batch.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _optional_list(raw: Dict[str, Any], key: str, context: str) -> Optional[list]:
    value = raw.get(key)
    if value is not None and not isinstance(value, list):
        raise ValueError(f"{context}: '{key}' must be a list, got {type(value).__name__}")
    return value


def _optional_dict(raw: Dict[str, Any], key: str, context: str) -> Optional[dict]:
    value = raw.get(key)
    if value is not None and not isinstance(value, dict):
        raise ValueError(f"{context}: '{key}' must be an object, got {type(value).__name__}")
    return value


def _required_str(raw: Dict[str, Any], key: str, context: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"{context}: missing required field: {key}")
    return value


@dataclass
class Package:
    """Package coordinates inside an affected entry."""
    name: str
    ecosystem: str  # opaque, e.g. PyPI | npm | Go | crates.io
    purl: Optional[str] = None


@dataclass
class Affected:
    """One affected package entry of an advisory."""
    package: Package
    ranges: Optional[List[Dict[str, Any]]] = None
    versions: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], context: str = "affected") -> "Affected":
        if not isinstance(raw, dict):
            raise ValueError(f"{context}: entry must be an object")
        package_info = _optional_dict(raw, "package", context)
        if package_info is None:
            raise ValueError(f"{context}: missing required field: package")
        return cls(
            package=Package(
                name=_required_str(package_info, "name", f"{context}.package"),
                ecosystem=_required_str(package_info, "ecosystem", f"{context}.package"),
                purl=package_info.get("purl"),
            ),
            ranges=_optional_list(raw, "ranges", context),
            versions=_optional_list(raw, "versions", context),
        )


@dataclass
class DatabaseSpecific:
    """GitHub-specific block (`database_specific`) of an advisory."""
    severity: Optional[str] = None  # LOW | MODERATE | HIGH | CRITICAL
    cwe_ids: Optional[List[str]] = None
    github_reviewed: Optional[bool] = None
    github_reviewed_at: Optional[str] = None
    nvd_published_at: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "DatabaseSpecific":
        return cls(
            severity=raw.get("severity"),
            cwe_ids=_optional_list(raw, "cwe_ids", "database_specific"),
            github_reviewed=raw.get("github_reviewed"),
            github_reviewed_at=raw.get("github_reviewed_at"),
            nvd_published_at=raw.get("nvd_published_at"),
        )


@dataclass
class Reference:
    type: Optional[str]
    url: str

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], context: str = "references") -> "Reference":
        if not isinstance(raw, dict):
            raise ValueError(f"{context}: entry must be an object")
        return cls(type=raw.get("type"), url=_required_str(raw, "url", context))


@dataclass
class GitHubAdvisory:
    """
    A single advisory as handed over by the record-parsing collaborator.

    Only `id` and `modified` are required; every other field may be absent
    in the upstream document.
    """
    id: str                       # GHSA-xxxx-xxxx-xxxx
    modified: str
    schema_version: Optional[str] = None
    published: Optional[str] = None
    withdrawn: Optional[str] = None
    aliases: Optional[List[str]] = None
    summary: Optional[str] = None
    details: Optional[str] = None
    affected: Optional[List[Affected]] = None
    database_specific: Optional[DatabaseSpecific] = None
    references: Optional[List[Reference]] = field(default=None)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "GitHubAdvisory":
        """
        Build an advisory from an already-decoded OSV JSON object.

        Args:
            raw: Parsed JSON document

        Returns:
            GitHubAdvisory instance

        Raises:
            ValueError: If `id` or `modified` is missing, or a nested field
                has a shape the store cannot hold
        """
        ghsa = _required_str(raw, "id", "advisory")
        modified = _required_str(raw, "modified", ghsa)

        aliases = _optional_list(raw, "aliases", ghsa)
        if aliases is not None and not all(isinstance(a, str) for a in aliases):
            raise ValueError(f"{ghsa}: 'aliases' must contain only strings")

        affected = _optional_list(raw, "affected", ghsa)
        database_specific = _optional_dict(raw, "database_specific", ghsa)
        references = _optional_list(raw, "references", ghsa)

        return cls(
            id=ghsa,
            modified=modified,
            schema_version=raw.get("schema_version"),
            published=raw.get("published"),
            withdrawn=raw.get("withdrawn"),
            aliases=aliases,
            summary=raw.get("summary"),
            details=raw.get("details"),
            affected=(
                [Affected.from_dict(a, f"{ghsa}: affected[{i}]") for i, a in enumerate(affected)]
                if affected is not None else None
            ),
            database_specific=(
                DatabaseSpecific.from_dict(database_specific)
                if database_specific is not None else None
            ),
            references=(
                [Reference.from_dict(r, f"{ghsa}: references[{i}]") for i, r in enumerate(references)]
                if references is not None else None
            ),
        )
