# -*- coding: utf-8 -*-
"""
Unit tests for the chat instruction parser.
"""

import pytest

from clergy_roster.parsing import (
    Add,
    Error,
    Ignore,
    InstructionKind,
    Remove,
    Rename,
    SetHighPriest,
    UpdateLoth,
    is_actionable,
    parse_instruction,
    parse_lines,
    prepare_line,
)


class TestIgnoredLines:
    """Blank, comment and quest-start lines."""

    @pytest.mark.parametrize("line", ["", "   ", None])
    def test_blank(self, line):
        assert isinstance(parse_instruction(line), Ignore)

    @pytest.mark.parametrize("line", ["// handled yesterday", "# Roster notes"])
    def test_comment(self, line):
        result = parse_instruction(line)
        assert isinstance(result, Ignore)
        assert result.reason == "comment line"

    def test_quest_start(self):
        result = parse_instruction("Starting Curate Quest for Arkay - Dorn Ash")
        assert isinstance(result, Ignore)
        assert result.reason == "quest start line"


class TestRename:
    """Tests for '<old> > <new>' lines."""

    def test_rename(self):
        """Jane Smith > Jane the Wise."""
        result = parse_instruction("Jane Smith > Jane the Wise")
        assert result == Rename(
            old_name="Jane Smith",
            new_name="Jane the Wise",
            source="Jane Smith > Jane the Wise",
        )
        assert result.kind == InstructionKind.RENAME

    def test_arrow_separator(self):
        result = parse_instruction("Dorn Ash -> Dorn the Ashen")
        assert isinstance(result, Rename)
        assert (result.old_name, result.new_name) == ("Dorn Ash", "Dorn the Ashen")

    def test_same_name_rejected(self):
        result = parse_instruction("Jane Smith > jane smith")
        assert isinstance(result, Error)

    def test_empty_side_rejected(self):
        result = parse_instruction("Jane Smith > -")
        assert isinstance(result, Error)


class TestLothToggle:
    """Tests for LOTH on/off lines."""

    def test_now_loth(self):
        result = parse_instruction("Jon Doe is now LOTH")
        assert result == UpdateLoth(name="Jon Doe", make_loth=True, source="Jon Doe is now LOTH")

    def test_now_loth_without_is(self):
        result = parse_instruction("Cass Ember now LOTH")
        assert isinstance(result, UpdateLoth)
        assert result.make_loth is True

    def test_no_longer_loth(self):
        result = parse_instruction("Cass Ember no longer LOTH")
        assert isinstance(result, UpdateLoth)
        assert result.name == "Cass Ember"
        assert result.make_loth is False


class TestRemove:
    """Tests for removal commands."""

    def test_remove(self):
        result = parse_instruction("remove John Doe")
        assert result == Remove(name="John Doe", source="remove John Doe")

    @pytest.mark.parametrize("verb", ["Delete", "purge", "rm", "EXPUNGE"])
    def test_synonyms(self, verb):
        result = parse_instruction(f"{verb} Dorn Ash")
        assert isinstance(result, Remove)
        assert result.name == "Dorn Ash"

    def test_remove_without_name(self):
        result = parse_instruction("remove")
        assert isinstance(result, Error)
        assert result.reason == "remove command without name"


class TestHighPriest:
    """Tests for High Priest(ess) assignments."""

    def test_high_priestess(self):
        result = parse_instruction("High Priestess - Jane Smith")
        assert result == SetHighPriest(
            name="Jane Smith",
            title="High Priestess",
            loth=False,
            source="High Priestess - Jane Smith",
        )

    def test_abbreviation_with_loth(self):
        result = parse_instruction("HP: Marcus Aurel (LOTH)")
        assert isinstance(result, SetHighPriest)
        assert result.name == "Marcus Aurel"
        assert result.title == "High Priest"
        assert result.loth is True

    def test_trailing_title(self):
        result = parse_instruction("Jane Smith - High Priestess")
        assert isinstance(result, SetHighPriest)
        assert result.name == "Jane Smith"
        assert result.title == "High Priestess"

    def test_high_priest_of_divine_is_rejected(self):
        """High Priest is not a per-Divine rank."""
        result = parse_instruction("Jane Smith - High Priest of Mara")
        assert isinstance(result, Error)
        assert result.reason == "cannot add/move to non-base rank High Priest"


class TestAddMove:
    """Tests for add/move lines."""

    def test_rank_of_divine(self):
        """John Doe - Curate of Mara."""
        result = parse_instruction("John Doe - Curate of Mara")
        assert result == Add(
            name="John Doe",
            divine="Mara",
            rank="Curate",
            loth=False,
            source="John Doe - Curate of Mara",
        )

    def test_typos_and_loth_suffix(self):
        result = parse_instruction("Bob Stone - Curat of Marra (LOTH)")
        assert isinstance(result, Add)
        assert (result.name, result.rank, result.divine, result.loth) == (
            "Bob Stone", "Curate", "Mara", True,
        )

    def test_bare_loth_suffix(self):
        result = parse_instruction("Bob Stone - Prior of Arkay LOTH")
        assert isinstance(result, Add)
        assert result.loth is True
        assert result.name == "Bob Stone"

    @pytest.mark.parametrize("marker", ["*", "&#42;", "&#x2A;", "&ast;"])
    def test_trailing_loth_marker(self, marker):
        line = f"Cid - Prior of Arkay {marker}"
        assert parse_instruction(line) == Add(
            name="Cid", divine="Arkay", rank="Prior", loth=True, source=line,
        )

    def test_loth_marker_inside_name(self):
        result = parse_instruction("Cid &#42; - Prior of Arkay")
        assert isinstance(result, Add)
        assert (result.name, result.loth) == ("Cid", True)

    def test_priestess_stored_as_priest(self):
        result = parse_instruction("Mira Dawn - Priestess of Mara")
        assert isinstance(result, Add)
        assert result.rank == "Priest"

    def test_loose_rank_word(self):
        """'of <Divine>' found first, rank word picked from the remaining tokens."""
        result = parse_instruction("Dorn Ash, Priestess, of Arkay")
        assert isinstance(result, Add)
        assert (result.name, result.rank, result.divine) == ("Dorn Ash", "Priest", "Arkay")

    def test_promoted_to_curate(self):
        result = parse_instruction("Elin Reed promoted to Curate of Dibella")
        assert isinstance(result, Add)
        assert (result.name, result.rank, result.divine) == ("Elin Reed", "Curate", "Dibella")

    def test_quest_completion_defaults_to_curate(self):
        """Completing Curate Quest for Mara - Jon Snow."""
        result = parse_instruction("Completing Curate Quest for Mara — Jon Snow")
        assert isinstance(result, Add)
        assert (result.name, result.rank, result.divine) == ("Jon Snow", "Curate", "Mara")

    def test_quest_completion_with_explicit_rank(self):
        result = parse_instruction("Finished Curate Quest - Lio Brand Curate of Kynareth")
        assert isinstance(result, Add)
        assert (result.name, result.rank, result.divine) == ("Lio Brand", "Curate", "Kynareth")

    def test_mentions_are_dropped(self):
        result = parse_instruction("<@123456> John Doe - Curate of Mara")
        assert isinstance(result, Add)
        assert result.name == "John Doe"
        assert result.source == "<@123456> John Doe - Curate of Mara"


class TestParseErrors:
    """Lines that cannot become instructions."""

    def test_name_only(self):
        result = parse_instruction("Jon Snow")
        assert isinstance(result, Error)
        assert result.reason == "ambiguous instruction, name only"

    def test_missing_rank(self):
        result = parse_instruction("Gareth Moss of Julianos")
        assert isinstance(result, Error)
        assert result.reason == "missing rank or divine"

    def test_unrecognized(self):
        result = parse_instruction("-")
        assert isinstance(result, Error)
        assert result.reason == "unrecognized format"

    def test_mention_only_line(self):
        result = parse_instruction("@someone")
        assert isinstance(result, Error)
        assert result.reason == "unrecognized format"

    def test_source_retained(self):
        assert parse_instruction("Jon Snow").source == "Jon Snow"


class TestHelpers:
    """Tests for parse_lines and preprocessing."""

    def test_one_instruction_per_line(self):
        lines = ["John Doe - Curate of Mara", "Jon Snow", "// note"]
        results = parse_lines(lines)
        assert [type(r) for r in results] == [Add, Error, Ignore]
        assert [is_actionable(r) for r in results] == [True, False, False]

    def test_prepare_line(self):
        assert prepare_line("  Jane:  Curate ,of Mara  ") == "Jane - Curate - of Mara"
        assert prepare_line("@someone John Doe") == "John Doe"
