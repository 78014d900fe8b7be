from __future__ import annotations

import re
import unicodedata
from typing import Any

from app.core.i18n import translate

_PLACEHOLDER_RE = re.compile(r":[a-z]+")
_URL_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9_-]+")
_DASHES_RE = re.compile(r"-+")


def _ascii_text(value: Any) -> str:
    text = str(value or "")
    normalized = unicodedata.normalize("NFKD", text)
    return normalized.encode("ascii", "ignore").decode("ascii")


def generate_url(text: str) -> str:
    slug = _URL_UNSAFE_RE.sub("-", _ascii_text(text))
    return _DASHES_RE.sub("-", slug).strip("-").lower()


def replace_placeholders(template: str, *arguments: Any) -> str:
    """Replace each `:placeholder` in order with the next argument."""
    values = iter(str(arg) for arg in arguments)

    def _next(match: re.Match) -> str:
        return next(values, match.group(0))

    return _PLACEHOLDER_RE.sub(_next, template)


def lang(key: str, *arguments: Any) -> str:
    return replace_placeholders(translate(key), *arguments)


def mb_ucfirst(text: str) -> str:
    return text[:1].upper() + text[1:]
