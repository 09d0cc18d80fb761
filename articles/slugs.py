"""Identifier and slug helpers. Pure functions over the current id/slug set."""

import re
import secrets
import string
from collections.abc import Collection, Iterable

TEMP_PREFIX = "temp-"
_TEMP_ALPHABET = string.digits + string.ascii_lowercase
_TEMP_LENGTH = 8
_TEMP_RE = re.compile(rf"^{TEMP_PREFIX}[0-9a-z]{{{_TEMP_LENGTH}}}$")
_WHITESPACE_RE = re.compile(r"\s+")


def next_id(existing_ids: Iterable[int], last_issued: int = 0) -> int:
    """Return an id greater than every existing id and the last one handed out."""
    return max(max(existing_ids, default=0), last_issued) + 1


def temporary_slug() -> str:
    """Return a provisional slug such as ``temp-k3x9q0ab``."""
    token = "".join(secrets.choice(_TEMP_ALPHABET) for _ in range(_TEMP_LENGTH))
    return f"{TEMP_PREFIX}{token}"


def is_temporary_slug(slug: str) -> bool:
    return bool(_TEMP_RE.match(slug))


def slugify(topic: str) -> str:
    """Lower-case the topic and collapse whitespace runs into single hyphens."""
    return _WHITESPACE_RE.sub("-", topic.strip().lower())


def derive_slug(
    topic: str,
    existing_slugs: Collection[str],
    article_id: int | None = None,
) -> str:
    """Derive a slug for ``topic`` that does not collide with ``existing_slugs``.

    On collision the article id is appended first (``ai-ethics-7``); if that
    is taken too, or no id is given, a counter is appended starting at 2.
    """
    base = slugify(topic)
    if base not in existing_slugs:
        return base

    if article_id is not None:
        candidate = f"{base}-{article_id}"
        if candidate not in existing_slugs:
            return candidate
        base = candidate

    n = 2
    while f"{base}-{n}" in existing_slugs:
        n += 1
    return f"{base}-{n}"
