"""Tag canonicalization for clans and players."""

from typing import Optional

TAG_PREFIX = "#"


def normalize_tag(tag: Optional[str]) -> str:
    """Return the canonical '#'-prefixed form of a clan or player tag.

    Surrounding whitespace is removed, letters upper-cased and the prefix
    added when missing.
    Applying it twice gives the same result as applying it once.
    """
    value = (tag or "").strip().upper()
    if not value:
        return ""
    if not value.startswith(TAG_PREFIX):
        value = TAG_PREFIX + value
    return value


def strip_tag(tag: Optional[str]) -> str:
    """Return the tag without its '#' prefix."""
    return normalize_tag(tag).lstrip(TAG_PREFIX)


def file_tag(tag: Optional[str]) -> str:
    """Return the upper-cased, prefix-less tag used in file names."""
    return strip_tag(tag).upper()
