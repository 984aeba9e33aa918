# -*- coding: utf-8 -*-
"""
Unit tests for name normalization and fuzzy matching.
"""

import pytest

from clergy_roster.names import (
    canonicalize_entry,
    display_name,
    edit_distance,
    ensure_loth_marker,
    fuzzy_resolve,
    is_loth,
    names_match,
    normalize,
    to_markup,
)
from clergy_roster.vocabulary import (
    DIVINES,
    KNOWN_RANKS,
    LOTH_CANONICAL,
    OCCURRENCE_MAX_DISTANCE,
    VOCABULARY_MAX_DISTANCE,
    canonical_base_rank,
    canonical_divine,
)


class TestNormalize:
    """Tests for the canonical name identity."""

    @pytest.mark.parametrize("raw", [
        "John Doe",
        "  john   DOE ",
        "<span style=\"color:red\">John Doe</span>",
        "John Doe &#42;",
        "John Doe*",
        "John Doe (LOTH)",
        "John Doe &#x2a;",
        "<b>John</b> Doe &ast;",
    ])
    def test_variants_share_identity(self, raw):
        """Markup, LOTH markers, spacing and case do not change identity."""
        assert normalize(raw) == "john doe"

    @pytest.mark.parametrize("raw", [
        "John Doe &#42;",
        "&lt;b&gt;Jane&lt;/b&gt;",
        "Ann &amp;#42;",
        "<i>Mira</i>  Dawn (loth)",
        "",
    ])
    def test_idempotent(self, raw):
        """normalize(normalize(x)) == normalize(x)."""
        once = normalize(raw)
        assert normalize(once) == once

    def test_empty_and_none(self):
        assert normalize(None) == ""
        assert normalize("   ") == ""

    def test_names_match(self):
        assert names_match("Jane Smith &#42;", "jane smith")
        assert not names_match("Jane Smith", "Jane Smyth")


class TestFuzzyResolve:
    """Tests for vocabulary resolution."""

    def test_exact_keeps_candidate_casing(self):
        assert fuzzy_resolve("mara", DIVINES, VOCABULARY_MAX_DISTANCE) == "Mara"

    def test_typo_within_bound(self):
        assert fuzzy_resolve("Zenithr", DIVINES, VOCABULARY_MAX_DISTANCE) == "Zenithar"
        assert fuzzy_resolve("Curat", KNOWN_RANKS, VOCABULARY_MAX_DISTANCE) == "Curate"

    def test_beyond_bound_returns_none(self):
        assert fuzzy_resolve("Talos", DIVINES, 1) is None
        assert fuzzy_resolve("xyzzy", KNOWN_RANKS, OCCURRENCE_MAX_DISTANCE) is None

    def test_tie_keeps_first_candidate(self):
        """'Priestes' is one edit from 'Priestess' but two from 'Priest'."""
        assert fuzzy_resolve("Priestes", KNOWN_RANKS, VOCABULARY_MAX_DISTANCE) == "Priestess"
        assert fuzzy_resolve("ab", ["ax", "ay"], 2) == "ax"

    def test_empty_input(self):
        assert fuzzy_resolve("", DIVINES, 3) is None
        assert fuzzy_resolve(None, DIVINES, 3) is None

    def test_edit_distance_case_insensitive(self):
        assert edit_distance("Jon Doe", "john doe") == 1
        assert edit_distance("MARA", "mara") == 0


class TestLothMarker:
    """Tests for LOTH encoding handling."""

    def test_ensure_adds_canonical(self):
        assert ensure_loth_marker("Jane", True) == "Jane" + LOTH_CANONICAL

    def test_ensure_replaces_other_encodings(self):
        assert ensure_loth_marker("Jane (LOTH)", True) == "Jane &#42;"
        assert ensure_loth_marker("Jane*", True) == "Jane &#42;"

    def test_ensure_removes(self):
        assert ensure_loth_marker("Jane &#42;", False) == "Jane"

    def test_is_loth(self):
        assert is_loth("Jane &#42;")
        assert is_loth("Jane*")
        assert not is_loth("Jane")

    def test_canonicalize_entry_keeps_markup(self):
        raw = '<span style="color:red">Kara</span> *'
        assert canonicalize_entry(raw) == '<span style="color:red">Kara</span> &#42;'
        assert canonicalize_entry("  Dorn Ash ") == "Dorn Ash"

    def test_display_name(self):
        assert display_name('<span style="color:red">Kara &amp; Co</span> &#42;') == "Kara & Co"


class TestMarkup:
    """Tests for chat text to stored entry conversion."""

    def test_escapes_bare_ampersand_and_brackets(self):
        assert to_markup("Tom & <Jerry>") == "Tom &amp; &lt;Jerry&gt;"

    def test_keeps_existing_entities(self):
        assert to_markup("Jane &#42;") == "Jane &#42;"


class TestVocabulary:
    """Tests for the fixed vocabulary helpers."""

    def test_canonical_divine(self):
        assert canonical_divine("stendarr") == "Stendarr"
        assert canonical_divine("Talos") == ""

    def test_canonical_base_rank_maps_priestess(self):
        assert canonical_base_rank("Priestess") == "Priest"
        assert canonical_base_rank("acolyte") == "Acolyte"
        assert canonical_base_rank("High Priest") == ""
