"""
Tests for advisory normalization.

Validates the derived columns (CVE, ecosystems, commit and pull-request
sets) and the JSON encoding of the serialized columns. Sets are compared
after decoding since their serialized order is not part of the contract.
"""
import json
import math

import pytest

from ingestion.models import Affected, DatabaseSpecific, Package, Reference
from normalization import SerializationError, find_cve, normalize_advisory


def test_first_cve_alias_wins(make_advisory):
    advisory = make_advisory(
        "GHSA-aaaa-bbbb-cccc",
        aliases=["GHSA-xxxx", "CVE-2023-0001", "CVE-2023-0002"],
    )
    assert normalize_advisory(advisory).cve == "CVE-2023-0001"


def test_no_cve_alias():
    assert find_cve(["GHSA-xxxx", "PYSEC-2023-1"]) is None
    assert find_cve(None) is None


def test_cve_prefix_is_case_sensitive():
    assert find_cve(["cve-2023-0001"]) is None


def test_empty_affected_gives_null_ecosystems(make_advisory):
    advisory = make_advisory("GHSA-aaaa-bbbb-cccc")
    normalized = normalize_advisory(advisory)

    assert normalized.ecosystems is None
    assert normalized.packages == []


def test_missing_affected_gives_null_ecosystems(make_advisory):
    advisory = make_advisory("GHSA-aaaa-bbbb-cccc", affected=None)
    assert normalize_advisory(advisory).ecosystems is None


def test_ecosystems_deduplicated(make_advisory):
    advisory = make_advisory(
        "GHSA-aaaa-bbbb-cccc",
        packages=[("requests", "PyPI"), ("urllib3", "PyPI"), ("axios", "npm")],
    )
    normalized = normalize_advisory(advisory)

    assert set(json.loads(normalized.ecosystems)) == {"PyPI", "npm"}
    assert len(json.loads(normalized.ecosystems)) == 2


def test_reference_sets(sample_advisory):
    normalized = normalize_advisory(sample_advisory)

    assert set(json.loads(normalized.ref_commits)) == {
        "https://github.com/apache/logging-log4j2/commit/c77b3cb39312b83b053d23a2158b99ac7de44dd3"
    }
    # /pull/608 and /pull/608/files collapse to one entry
    assert json.loads(normalized.ref_pull_requests) == [
        "https://github.com/apache/logging-log4j2/pull/608"
    ]


def test_no_references_gives_null_sets(make_advisory):
    advisory = make_advisory(
        "GHSA-aaaa-bbbb-cccc",
        references=[Reference(type="WEB", url="https://example.com/blog/post")],
    )
    normalized = normalize_advisory(advisory)

    assert normalized.ref_commits is None
    assert normalized.ref_pull_requests is None


def test_pull_commit_page_feeds_only_pull_requests(make_advisory):
    advisory = make_advisory(
        "GHSA-aaaa-bbbb-cccc",
        references=[Reference(type="WEB", url="https://example.com/repo/pull/42/commits/abc1234")],
    )
    normalized = normalize_advisory(advisory)

    assert normalized.ref_commits is None
    assert json.loads(normalized.ref_pull_requests) == ["https://example.com/repo/pull/42"]


def test_database_specific_columns(sample_advisory):
    normalized = normalize_advisory(sample_advisory)

    assert normalized.severity == "CRITICAL"
    assert json.loads(normalized.cwes) == ["CWE-20", "CWE-917"]
    assert normalized.github_reviewed == 1
    assert normalized.github_reviewed_at == "2021-12-10T00:40:41Z"
    assert json.loads(normalized.nvd_published_at) == "2021-12-10T10:15:00Z"


def test_github_reviewed_false_stored_as_zero(make_advisory):
    advisory = make_advisory(
        "GHSA-aaaa-bbbb-cccc",
        database_specific=DatabaseSpecific(github_reviewed=False),
    )
    normalized = normalize_advisory(advisory)

    assert normalized.github_reviewed == 0
    assert normalized.severity is None
    assert normalized.cwes is None
    assert normalized.nvd_published_at is None


def test_missing_database_specific(make_advisory):
    normalized = normalize_advisory(make_advisory("GHSA-aaaa-bbbb-cccc"))

    assert normalized.github_reviewed is None
    assert normalized.severity is None


def test_package_rows_keep_input_order(sample_advisory):
    normalized = normalize_advisory(sample_advisory)

    assert [p.ghsa for p in normalized.packages] == ["GHSA-jfh8-c2jp-5v3q"] * 2
    assert json.loads(normalized.packages[0].ranges)[0]["events"][1] == {"fixed": "2.3.1"}
    assert normalized.packages[0].versions is None
    assert json.loads(normalized.packages[1].versions) == ["2.4", "2.4.1"]


def test_advisory_row_column_order(sample_advisory):
    row = normalize_advisory(sample_advisory).advisory_row()

    assert len(row) == 16
    assert row[0] == "GHSA-jfh8-c2jp-5v3q"
    assert row[2] == "2024-02-01T10:00:00Z"
    assert row[5] == "CVE-2021-44228"


def test_unserializable_ranges_raise(make_advisory):
    advisory = make_advisory(
        "GHSA-aaaa-bbbb-cccc",
        affected=[Affected(package=Package(name="pkg", ecosystem="PyPI"), ranges=[{"events": {object()}}])],
    )
    with pytest.raises(SerializationError) as excinfo:
        normalize_advisory(advisory)
    assert excinfo.value.column == "ranges"


def test_nan_rejected(make_advisory):
    advisory = make_advisory(
        "GHSA-aaaa-bbbb-cccc",
        affected=[Affected(package=Package(name="pkg", ecosystem="PyPI"), versions=[math.nan])],
    )
    with pytest.raises(SerializationError):
        normalize_advisory(advisory)
