"""API version tags.

A version tag is the textual identifier of one API revision: ``v<major>``
or ``v<major>.<minor>``. Tags are normalized to lower case and ordered
numerically through ``packaging.version.Version``, so ``v2 < v2.1 < v10``.

Example:
    >>> parse_version_tag(" V2 ")
    'v2'
    >>> compare_tags("v10", "v9")
    1
"""

from __future__ import annotations

import re

from packaging.version import Version

from versionchain.errors import InvalidVersionTagError

VERSION_TAG_PATTERN = r"^v(0|[1-9]\d*)(?:\.(0|[1-9]\d*))?$"
_VERSION_TAG_RE = re.compile(VERSION_TAG_PATTERN)


def is_version_tag(value: str) -> bool:
    """Return True if value is a well-formed tag (after normalization)."""
    return bool(_VERSION_TAG_RE.match(value.strip().lower()))


def parse_version_tag(value: str) -> str:
    """Normalize and validate a version tag.

    Args:
        value: Raw tag, e.g. "v2", "V2", " v2.1 ".

    Returns:
        The normalized tag (lower case, no surrounding whitespace).

    Raises:
        InvalidVersionTagError: If value is not a string or does not match
            ``v<major>[.<minor>]``.
    """
    if not isinstance(value, str):
        raise InvalidVersionTagError(repr(value), "version tag must be a string")
    normalized = value.strip().lower()
    if not normalized:
        raise InvalidVersionTagError(value, "version tag must not be empty")
    if not _VERSION_TAG_RE.match(normalized):
        raise InvalidVersionTagError(value, "expected 'v<major>' or 'v<major>.<minor>'")
    return normalized


def version_key(tag: str) -> Version:
    """Return the ordering key of a tag."""
    return Version(parse_version_tag(tag)[1:])


def compare_tags(left: str, right: str) -> int:
    """Compare two tags; returns -1, 0 or 1."""
    left_key = version_key(left)
    right_key = version_key(right)
    if left_key < right_key:
        return -1
    if left_key > right_key:
        return 1
    return 0


def sort_tags(tags: list[str]) -> list[str]:
    return sorted((parse_version_tag(t) for t in tags), key=version_key)
