"""
Shared pytest fixtures for advisory store tests.

This module provides reusable fixtures that simplify test setup
and reduce code duplication across test modules.
"""
import tempfile
from pathlib import Path

import pytest

from storage import AdvisoryLoader, Database
from ingestion.models import (
    Affected,
    DatabaseSpecific,
    GitHubAdvisory,
    Package,
    Reference,
)


@pytest.fixture
def temp_db():
    """
    Create a temporary database for testing.

    Yields:
        Database instance with schema initialized

    Cleanup:
        Automatically closes connection and removes file after test
    """
    with tempfile.NamedTemporaryFile(suffix=".duckdb", delete=True) as f:
        db_path = f.name

    db = Database(db_path)
    yield db
    db.close()

    # Cleanup
    Path(db_path).unlink(missing_ok=True)
    Path(db_path + ".wal").unlink(missing_ok=True)


@pytest.fixture
def loader(temp_db):
    """
    Create an AdvisoryLoader instance for testing.

    Args:
        temp_db: Temporary database fixture

    Returns:
        AdvisoryLoader instance connected to temp database
    """
    return AdvisoryLoader(temp_db)


@pytest.fixture
def make_advisory():
    """
    Factory for minimal advisories.

    Returns:
        Callable building a GitHubAdvisory; keyword arguments override fields
    """
    def _make(ghsa: str, packages=(), **overrides) -> GitHubAdvisory:
        fields = {
            "id": ghsa,
            "modified": "2024-01-15T12:00:00Z",
            "schema_version": "1.4.0",
            "affected": [
                Affected(package=Package(name=name, ecosystem=ecosystem))
                for name, ecosystem in packages
            ],
        }
        fields.update(overrides)
        return GitHubAdvisory(**fields)

    return _make


@pytest.fixture
def sample_advisory():
    """
    A fully populated advisory.

    Returns:
        GitHubAdvisory with aliases, packages, references and GitHub metadata
    """
    return GitHubAdvisory(
        id="GHSA-jfh8-c2jp-5v3q",
        modified="2024-02-01T10:00:00Z",
        schema_version="1.4.0",
        published="2021-12-10T00:40:56Z",
        aliases=["CVE-2021-44228"],
        summary="Remote code injection in Log4j",
        details="JNDI features do not protect against attacker controlled endpoints.",
        affected=[
            Affected(
                package=Package(name="org.apache.logging.log4j:log4j-core", ecosystem="Maven"),
                ranges=[{"type": "ECOSYSTEM", "events": [{"introduced": "2.0-beta9"}, {"fixed": "2.3.1"}]}],
            ),
            Affected(
                package=Package(name="org.apache.logging.log4j:log4j-core", ecosystem="Maven"),
                ranges=[{"type": "ECOSYSTEM", "events": [{"introduced": "2.4"}, {"fixed": "2.12.2"}]}],
                versions=["2.4", "2.4.1"],
            ),
        ],
        database_specific=DatabaseSpecific(
            severity="CRITICAL",
            cwe_ids=["CWE-20", "CWE-917"],
            github_reviewed=True,
            github_reviewed_at="2021-12-10T00:40:41Z",
            nvd_published_at="2021-12-10T10:15:00Z",
        ),
        references=[
            Reference(type="WEB", url="https://github.com/apache/logging-log4j2/pull/608"),
            Reference(type="WEB", url="https://github.com/apache/logging-log4j2/pull/608/files"),
            Reference(
                type="WEB",
                url="https://github.com/apache/logging-log4j2/commit/c77b3cb39312b83b053d23a2158b99ac7de44dd3",
            ),
            Reference(type="ADVISORY", url="https://nvd.nist.gov/vuln/detail/CVE-2021-44228"),
        ],
    )
