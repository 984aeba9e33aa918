# -*- coding: utf-8 -*-
"""
Name normalization and fuzzy matching.

Public API
----------
normalize(name)                                   -> str
names_match(a, b)                                 -> bool
edit_distance(a, b)                               -> int
fuzzy_resolve(value, candidates, max_distance)    -> Optional[str]
ensure_loth_marker(name, is_loth)                 -> str
is_loth(entry)                                    -> bool
canonicalize_entry(raw)                           -> str
display_name(entry)                               -> str
to_markup(text)                                   -> str

Stored member entries are markup fragments (they may carry a colour span and HTML
entities) with at most one LOTH marker, always written as ``LOTH_CANONICAL``.
``normalize`` is the identity used for every equality check: markup stripped, every
LOTH encoding stripped, entities decoded, whitespace collapsed, lower-cased.
"""

from __future__ import annotations

import html
import re
from typing import Iterable, Optional

from rapidfuzz.distance import Levenshtein

from .vocabulary import LOTH_CANONICAL


_TAG_RE = re.compile(r"<[^>]*>")
_LOTH_RE = re.compile(
    r"\s*(?:\(\s*LOTH\s*\)|&#0*42;|&#[xX]0*2[aA];|&ast;|\*)",
    re.IGNORECASE,
)
_WS_RE = re.compile(r"\s+")
# '&' that does not already start an entity
_BARE_AMP_RE = re.compile(r"&(?!#\d+;|#[xX][0-9a-fA-F]+;|[A-Za-z][A-Za-z0-9]*;)")


def _normalize_once(name: str) -> str:
    s = _TAG_RE.sub(" ", name)
    s = _LOTH_RE.sub(" ", s)
    s = html.unescape(s)
    return _WS_RE.sub(" ", s).strip().lower()


def normalize(name: Optional[str]) -> str:
    """
    Canonical identity of a display name.

    Decoding entities can expose new markup or markers ("&lt;b&gt;", "&amp;#42;"),
    so the single pass is repeated until it stops changing the text.
    """
    if not name or not name.strip():
        return ""
    current = name
    while True:
        nxt = _normalize_once(current)
        if nxt == current:
            return nxt
        current = nxt


def names_match(a: Optional[str], b: Optional[str]) -> bool:
    return normalize(a) == normalize(b)


def edit_distance(a: Optional[str], b: Optional[str]) -> int:
    """Levenshtein distance over lower-cased strings."""
    return Levenshtein.distance((a or "").lower(), (b or "").lower())


def fuzzy_resolve(
    value: Optional[str],
    candidates: Iterable[str],
    max_distance: int,
) -> Optional[str]:
    """
    Return the candidate closest to ``value`` (original casing), or None.

    Ties keep the earliest candidate. Nothing is returned when the best distance
    exceeds ``max_distance``.
    """
    if not value or not value.strip():
        return None
    needle = value.strip().lower()
    best: Optional[str] = None
    best_dist = max_distance + 1
    for candidate in candidates:
        if not candidate or not candidate.strip():
            continue
        dist = Levenshtein.distance(needle, candidate.lower(), score_cutoff=max_distance + 1)
        if dist < best_dist:
            best, best_dist = candidate, dist
    return best


def strip_loth_markers(entry: str) -> str:
    """Remove every LOTH encoding (and the whitespace before it), keeping markup."""
    return _LOTH_RE.sub("", entry or "").strip()


def is_loth(entry: Optional[str]) -> bool:
    return bool(entry) and _LOTH_RE.search(entry) is not None


def ensure_loth_marker(name: str, is_loth_member: bool) -> str:
    """Strip any LOTH encoding from ``name`` and append the canonical one if requested."""
    base = strip_loth_markers(name)
    if is_loth_member and base:
        return base + LOTH_CANONICAL
    return base


def canonicalize_entry(raw: str) -> str:
    """Canonical stored form of a member line read from the document."""
    raw = (raw or "").strip()
    if is_loth(raw):
        return ensure_loth_marker(raw, True)
    return raw


def display_name(entry: Optional[str]) -> str:
    """Plain-text name for reports: no markup, no LOTH marker, entities decoded."""
    s = _TAG_RE.sub("", strip_loth_markers(entry or ""))
    return _WS_RE.sub(" ", html.unescape(s)).strip()


def to_markup(text: str) -> str:
    """
    Make chat text safe to store as a member entry.

    Entities already present are kept as they are so '&#42;'-style text round-trips.
    """
    s = _BARE_AMP_RE.sub("&amp;", (text or "").strip())
    return s.replace("<", "&lt;").replace(">", "&gt;")
