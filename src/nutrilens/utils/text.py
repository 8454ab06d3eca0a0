"""Small text helpers shared by the normalizer and summary derivation."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

ELLIPSIS = "..."

_SENTENCE_END_RE = re.compile(r"[.!?]")
_WS_RE = re.compile(r"\s+")


def truncate(text: str, max_chars: int) -> str:
    """Cut `text` to `max_chars`, appending an ellipsis when something was dropped."""

    if len(text) <= max_chars:
        return text
    return text[:max_chars] + ELLIPSIS


def first_sentence(text: str) -> str:
    """Return the text before the first sentence terminator, stripped."""

    return _SENTENCE_END_RE.split(text, maxsplit=1)[0].strip()


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def url_host(url: str) -> str:
    """Lower-cased host of `url`, or an empty string when it cannot be parsed."""

    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def display_host(url: str) -> str:
    """Host without a leading `www.`, used as a human-readable source name."""

    host = url_host(url)
    return host[4:] if host.startswith("www.") else host


def host_matches(host: str, domain: str) -> bool:
    """Whether `host` is `domain` or one of its subdomains."""

    return host == domain or host.endswith("." + domain)
