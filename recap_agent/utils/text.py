from __future__ import annotations

import re
from typing import Any, Iterable


class TemplateError(ValueError):
    pass


_VAR_RE = re.compile(r"\{\{\s*(?P<key>[a-zA-Z0-9_]+)\s*\}\}")


def render_template(template: str, variables: dict[str, Any], *, strict: bool = False) -> str:
    """Small `{{var}}` renderer used for prompt templates.

    Missing keys render as "" unless `strict` is set, in which case they raise.
    """

    def _replace(match: re.Match[str]) -> str:
        key = match.group("key")
        if key not in variables:
            if strict:
                raise TemplateError(f"Missing template variable: {key}")
            return ""
        value = variables[key]
        return "" if value is None else str(value)

    return _VAR_RE.sub(_replace, template)


def truncate(text: str | None, max_len: int) -> str:
    if text is None:
        return ""
    return text[:max_len] + "..." if len(text) > max_len else text


def _ascii_keyword_re(keyword: str) -> re.Pattern[str]:
    return re.compile(r"(?<![a-z0-9_])" + re.escape(keyword))


_KEYWORD_RE_CACHE: dict[str, re.Pattern[str]] = {}


def contains_keyword(text: str, keyword: str) -> bool:
    """Keyword match on lower-cased text.

    ASCII keywords must start a word ("plan" matches "planning", not "explain");
    CJK keywords match anywhere since the script has no word boundaries.
    """
    haystack = (text or "").lower()
    kw = keyword.lower()
    if not kw:
        return False
    if not kw.isascii():
        return kw in haystack
    pattern = _KEYWORD_RE_CACHE.get(kw)
    if pattern is None:
        pattern = _ascii_keyword_re(kw)
        _KEYWORD_RE_CACHE[kw] = pattern
    return pattern.search(haystack) is not None


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(contains_keyword(text, kw) for kw in keywords)
