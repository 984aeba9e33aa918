# -*- coding: utf-8 -*-
"""
Unit tests for document parsing and regeneration.
"""

import logging
from pathlib import Path

import pytest

from clergy_roster.document import format_block, parse_document, regenerate_document, split_member_lines
from clergy_roster.errors import StructureError
from clergy_roster.parsing import parse_lines
from clergy_roster.roster import HighPriestSlot, apply_batch
from clergy_roster.vocabulary import DIVINES


FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

EMPTY_CELL = (
    "<span><u>Priest</u></span>\nVacant<br>\n"
    "<span><u>Curate</u></span>\n<br>\n"
    "<span><u>Prior</u></span>\n<br>\n"
    "<span><u>Acolyte</u></span>\n<br>\n"
)


def make_document(cells=None, sentence="<p>Current High Priest: Vacant</p>"):
    """Two roster tables; cells default to EMPTY_CELL."""
    cells = cells or {}

    def table(divines):
        head = "".join(f"<th>{d}</th>" for d in divines)
        tds = "".join(f"<td>{cells.get(d, EMPTY_CELL)}</td>\n" for d in divines)
        return f'<table>\n<tr valign="top">{head}</tr>\n<tr valign="top">\n{tds}</tr>\n</table>\n'

    return f"<html><body>\n{sentence}\n{table(DIVINES[:4])}{table(DIVINES[4:])}</body></html>\n"


@pytest.fixture
def roster_text():
    return (FIXTURES_DIR / "roster_post.html").read_text(encoding="utf-8")


def run_batch(text, lines):
    snapshot = parse_document(text)
    apply_batch(snapshot, parse_lines(lines))
    return snapshot, regenerate_document(text, snapshot)


class TestParseDocument:
    """Tests for reading the roster document."""

    def test_members(self, roster_text):
        snapshot = parse_document(roster_text)
        assert snapshot.members("Akatosh", "Priest") == ["Aldric Vane"]
        assert snapshot.members("Akatosh", "Acolyte") == ["Cass Ember &#42;"]
        assert snapshot.members("Julianos", "Curate") == ["Hilda Frost", "Ivo Lark"]
        assert snapshot.members("Julianos", "Acolyte") == ['<span style="color:#ff0000">Kara Wynn</span>']
        assert snapshot.members("Zenithar", "Acolyte") == ["Pell Quill", "Quinn Rowe"]

    def test_placeholders_dropped(self, roster_text):
        snapshot = parse_document(roster_text)
        assert snapshot.members("Akatosh", "Prior") == []
        assert snapshot.members("Dibella", "Priest") == []
        assert snapshot.members("Arkay", "Curate") == []

    def test_loth_canonicalized(self, roster_text):
        snapshot = parse_document(roster_text)
        assert snapshot.members("Mara", "Prior") == ["Nils Orr &#42;"]

    def test_high_priest_sentence(self, roster_text):
        snapshot = parse_document(roster_text)
        assert snapshot.high_priest == HighPriestSlot(entry="Marcus Aurel", title="High Priest")

    def test_high_priest_in_markup(self, roster_text):
        text = roster_text.replace(
            "<p>Current High Priest: Marcus Aurel</p>",
            '<p>Current High Priestess: <span style="color:blue">Ysolda</span></p>',
        )
        snapshot = parse_document(text)
        assert snapshot.high_priest == HighPriestSlot(
            entry='<span style="color:blue">Ysolda</span>', title="High Priestess",
        )

    def test_vacant_high_priest(self):
        assert parse_document(make_document()).high_priest is None

    def test_wrong_shape_raises(self):
        text = (FIXTURES_DIR / "not_a_roster.html").read_text(encoding="utf-8")
        with pytest.raises(StructureError):
            parse_document(text)


class TestRegenerateDocument:
    """Tests for writing a snapshot back."""

    def test_no_change_is_byte_identical(self, roster_text):
        assert regenerate_document(roster_text, parse_document(roster_text)) == roster_text

    def test_add_touches_only_target_run(self, roster_text):
        _, out = run_batch(roster_text, ["John Doe - Curate of Mara"])
        expected = roster_text.replace(
            "<span><u>Curate</u></span>\n<br>\n<span><u>Prior</u></span>\nNils Orr *<br>",
            "<span><u>Curate</u></span>\nJohn Doe<br>\n<span><u>Prior</u></span>\nNils Orr *<br>",
        )
        assert out == expected

    def test_cell_br_convention(self, roster_text):
        _, out = run_batch(roster_text, ["Ralf Stone - Curate of Zenithar"])
        assert "<span><u>Curate</u></span>\nRalf Stone<br />\n<span><u>Prior</u></span>" in out

    def test_high_priest_change(self, roster_text):
        """High Priestess - Jane Smith vacates her Priest of Arkay entry."""
        _, out = run_batch(roster_text, ["High Priestess - Jane Smith"])
        expected = roster_text.replace(
            "Current High Priest: Marcus Aurel", "Current High Priestess: Jane Smith",
        ).replace(
            "<span><u>Priest</u></span>\nJane Smith &#42;<br>",
            "<span><u>Priest</u></span>\nVacant<br>",
        )
        assert out == expected

    def test_high_priest_in_markup_rewritten(self, roster_text):
        text = roster_text.replace(
            "<p>Current High Priest: Marcus Aurel</p>",
            '<p>Current High Priestess: <span style="color:blue">Ysolda</span></p>',
        )
        _, out = run_batch(text, ["HP - Marcus Aurel"])
        assert "<p>Current High Priest: Marcus Aurel</p>" in out

    def test_removed_high_priest_written_vacant(self, roster_text):
        snapshot, out = run_batch(roster_text, ["remove Marcus Aurel"])
        assert "<p>Current High Priest: Vacant</p>" in out
        assert parse_document(out).high_priest is None

    def test_multiple_members_and_loth(self, roster_text):
        _, out = run_batch(roster_text, [
            "Abe Young - Curate of Julianos (LOTH)",
            "Hilda Frost no longer LOTH",
        ])
        assert "<span><u>Curate</u></span>\nAbe Young &#42;\nHilda Frost\nIvo Lark<br>\n" in out

    def test_model_round_trip(self, roster_text):
        snapshot, out = run_batch(roster_text, [
            "John Doe - Curate of Mara",
            "Cass Ember > Cass the Bright",
            "remove Dorn Ash",
            "Faela Stone - Priest of Dibella",
            "High Priestess - Jane Smith",
        ])
        assert parse_document(out) == snapshot

    def test_round_trip_without_changes(self, roster_text):
        snapshot = parse_document(roster_text)
        assert parse_document(regenerate_document(roster_text, snapshot)) == snapshot

    def test_duplicate_header_emptied(self):
        cell = (
            "<span><u>Priest</u></span>\nAnn<br>\n"
            "<span><u>Priest</u></span>\nBob<br>\n"
            "<span><u>Curate</u></span>\n<br>\n"
        )
        text = make_document({"Akatosh": cell})
        assert parse_document(text).members("Akatosh", "Priest") == ["Ann", "Bob"]

        snapshot, out = run_batch(text, ["Cid - Priest of Akatosh"])
        assert "<span><u>Priest</u></span>\nAnn\nBob\nCid<br>\n<span><u>Priest</u></span>\n<br>\n" in out
        assert parse_document(out) == snapshot

    def test_missing_header_warns(self, caplog):
        cell = "<span><u>Priest</u></span>\nVacant<br>\n"
        text = make_document({"Arkay": cell})
        with caplog.at_level(logging.WARNING):
            _, out = run_batch(text, ["Dorn Ash - Prior of Arkay"])
        assert "no Prior header" in caplog.text
        assert out == text

    def test_structure_error(self):
        text = (FIXTURES_DIR / "not_a_roster.html").read_text(encoding="utf-8")
        with pytest.raises(StructureError):
            regenerate_document(text, parse_document(make_document()))


class TestHelpers:
    """Tests for member line splitting and block formatting."""

    def test_split_member_lines(self):
        markup = "\nAnn<br>Bob\r\n<!-- old -->vacant<br />&mdash;\n  <b></b>\n"
        assert split_member_lines(markup) == ["Ann", "Bob"]

    def test_format_block(self):
        assert format_block(["Ann", "Bob &#42;"], "Curate", "<br>") == "\nAnn\nBob &#42;<br>\n"
        assert format_block([], "Priest", "<br />") == "\nVacant<br />\n"
        assert format_block([], "Acolyte", "<br>") == "\n<br>\n"
