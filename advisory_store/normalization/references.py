"""
Classify advisory reference URLs as commit and pull-request links.

Matching is substring based and only looks at the first occurrence of the
path marker. URLs are never parsed structurally: downstream consumers rely on
the exact first-match behaviour, including the rule that anything under a
``/pull/`` path is never reported as a commit.
"""
import string
from typing import Optional, Set

HEX_DIGITS = set(string.hexdigits)

# Abbreviated through full SHA-1 length
MIN_COMMIT_HASH_LENGTH = 7
MAX_COMMIT_HASH_LENGTH = 40

COMMIT_PREFIXES = ("/commits/", "/commit/")
PULL_PREFIXES = ("/pulls/", "/pull/")


def _leading_run(text: str, alphabet) -> str:
    end = 0
    for char in text:
        if char not in alphabet:
            break
        end += 1
    return text[:end]


def _strip_prefix(text: str, prefixes) -> Optional[str]:
    """Return text after the first matching prefix, or None if none match."""
    for prefix in prefixes:
        if text.startswith(prefix):
            return text[len(prefix):]
    return None


def extract_git_commits(url: str) -> Set[str]:
    """
    Return ``{url}`` if the URL points at a single commit, else an empty set.

    Recognized forms are ``.../commit/<hash>`` and ``.../commits/<hash>`` where
    the hash is 7 to 40 hex characters. The original URL is returned
    unchanged, not just the hash.

    Args:
        url: Reference URL from an advisory

    Returns:
        Set with the URL, or an empty set
    """
    if "/pull/" in url:
        return set()

    commit_start = url.find("/commit")
    if commit_start == -1:
        return set()

    hash_part = _strip_prefix(url[commit_start:], COMMIT_PREFIXES)
    if hash_part is None:
        return set()

    commit_hash = _leading_run(hash_part, HEX_DIGITS)
    if MIN_COMMIT_HASH_LENGTH <= len(commit_hash) <= MAX_COMMIT_HASH_LENGTH:
        return {url}
    return set()


def extract_pull_requests(url: str) -> Set[str]:
    """
    Return the canonical pull-request URL if the URL points at one.

    Recognized forms are ``.../pull/<number>`` and ``.../pulls/<number>``.
    Sub-pages are collapsed onto the pull request itself: the URL is cut at
    ``/commits/`` or, failing that, at ``/files``.

    Args:
        url: Reference URL from an advisory

    Returns:
        Set with the canonical pull-request URL, or an empty set
    """
    pull_start = url.find("/pull")
    if pull_start == -1:
        return set()

    number_part = _strip_prefix(url[pull_start:], PULL_PREFIXES)
    if number_part is None:
        return set()

    if not _leading_run(number_part, string.digits):
        return set()

    for marker in ("/commits/", "/files"):
        marker_pos = url.find(marker)
        if marker_pos != -1:
            return {url[:marker_pos]}
    return {url}
