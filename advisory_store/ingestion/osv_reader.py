"""
Read decoded advisories from a local OSV export.

Supports both layouts the advisory database is distributed in:
- a directory tree of one JSON document per advisory
- an OSV dump archive (``all.zip`` or ``<ecosystem>/all.zip``)
"""
import json
import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Optional, Set

from .models import GitHubAdvisory

logger = logging.getLogger(__name__)


class OsvReader:
    """Iterates advisories from an OSV export on disk."""

    def __init__(
        self,
        path: str,
        ecosystems: Optional[Iterable[str]] = None,
        validation_sample_limit: int = 3,
    ):
        self.path = Path(path)
        self.ecosystem_set: Optional[Set[str]] = set(ecosystems) if ecosystems else None
        self.skipped = 0
        self._validation_sample_limit = validation_sample_limit

    def __iter__(self) -> Iterator[GitHubAdvisory]:
        if not self.path.exists():
            raise FileNotFoundError(f"Advisory input not found: {self.path}")

        if self.path.is_file() and self.path.suffix == ".zip":
            raw_records = self._iter_zip_records()
        else:
            raw_records = self._iter_dir_records()

        for raw in raw_records:
            if not isinstance(raw, dict):
                self._log_validation_failure("document is not a JSON object", {"document": raw})
                continue
            if self._should_skip_vuln(raw):
                continue
            try:
                yield GitHubAdvisory.from_dict(raw)
            except ValueError as exc:
                self._log_validation_failure(str(exc), raw)

    def _iter_dir_records(self) -> Iterator[Dict[str, Any]]:
        for json_path in sorted(self.path.rglob("*.json")):
            with open(json_path, "r", encoding="utf-8") as handle:
                try:
                    raw = json.load(handle)
                except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                    self._log_validation_failure(f"invalid JSON: {exc}", {"path": str(json_path)})
                    continue

            yield raw

    def _iter_zip_records(self) -> Iterator[Dict[str, Any]]:
        with zipfile.ZipFile(self.path, "r") as archive:
            for info in archive.infolist():
                if info.is_dir() or not info.filename.endswith(".json"):
                    continue
                if self._should_skip_path(info.filename):
                    continue

                with archive.open(info) as handle:
                    try:
                        raw = json.load(handle)
                    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                        self._log_validation_failure(f"invalid JSON: {exc}", {"path": info.filename})
                        continue

                yield raw

    def _should_skip_path(self, filename: str) -> bool:
        if not self.ecosystem_set:
            return False
        if "/" not in filename:
            return False
        # OSV dump archives group records under <ecosystem>/
        prefix = filename.split("/", 1)[0]
        return prefix not in self.ecosystem_set

    def _should_skip_vuln(self, vuln: Dict[str, Any]) -> bool:
        if not self.ecosystem_set:
            return False
        affected = vuln.get("affected")
        if not isinstance(affected, list):
            return False

        ecosystems = set()
        for entry in affected:
            package = entry.get("package") if isinstance(entry, dict) else None
            if isinstance(package, dict):
                ecosystems.add(package.get("ecosystem"))
        ecosystems.discard(None)
        return bool(ecosystems) and ecosystems.isdisjoint(self.ecosystem_set)

    def _log_validation_failure(self, reason: str, payload: Dict[str, Any]) -> None:
        if self.skipped < self._validation_sample_limit:
            logger.warning("Skipping advisory record (%s): %s", reason, str(payload)[:500])
        self.skipped += 1


def iter_advisories(path: str, ecosystems: Optional[Iterable[str]] = None) -> Iterator[GitHubAdvisory]:
    """Convenience wrapper around OsvReader."""
    return iter(OsvReader(path, ecosystems=ecosystems))
