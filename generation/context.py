"""Fetch reference material from the optional additional-context URL."""

import html
import logging
import re

import requests

from config import CONTEXT_FETCH_TIMEOUT, CONTEXT_MAX_CHARS

logger = logging.getLogger(__name__)

_USER_AGENT = "draftdesk/0.1 (+context fetch)"


def _strip_html(text: str) -> str:
    """Remove scripts, styles and tags, unescape entities, collapse whitespace."""
    text = re.sub(r"<(script|style)[^>]*>.*?</\1>", " ", text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r"<[^>]+>", " ", text)
    text = html.unescape(text)
    return re.sub(r"\s+", " ", text).strip()


def fetch_context(
    url: str | None,
    timeout: float = CONTEXT_FETCH_TIMEOUT,
    max_chars: int = CONTEXT_MAX_CHARS,
) -> str:
    """Return the readable text at ``url``, or "" if it cannot be fetched.

    The context is optional input to generation, so fetch problems are
    logged and do not fail the article.
    """
    if not url:
        return ""
    try:
        resp = requests.get(url, timeout=timeout, headers={"User-Agent": _USER_AGENT})
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Context fetch failed for %s: %s", url, e)
        return ""

    content_type = resp.headers.get("Content-Type", "")
    text = resp.text
    if "html" in content_type or text.lstrip().startswith("<"):
        text = _strip_html(text)
    return text[:max_chars]
