import pytest
from pydantic import ValidationError

from data_designer_screenplay_guard.loops import (
    SequenceSummary,
    check_loop,
    detect_sequence_loop,
    extract_keywords,
    extract_sluglines,
    keyword_overlap,
    slugline_location,
    validate_sequence_continuity,
)

SEGMENT = (
    "INT. KITCHEN - NIGHT\n"
    "Margaret scrubs the enormous skillet while Bernard rehearses apologies.\n"
)

UNRELATED = (
    "EXT. RAILYARD - DAWN\n"
    "Conductors shovel coal beside abandoned freight wagons.\n"
)


class TestKeywords:
    def test_short_words_and_punctuation_dropped(self):
        assert extract_keywords("The skillet, Bernard's pride!") == frozenset({"skillet", "bernards"})

    def test_overlap_uses_smaller_set(self):
        assert keyword_overlap(frozenset({"alpha1", "bravo"}), frozenset()) == 0.0
        assert keyword_overlap(frozenset({"kitchen", "skillet"}), frozenset({"kitchen", "skillet", "margaret"})) == 1.0


class TestSluglines:
    def test_extract_and_locate(self):
        assert extract_sluglines(SEGMENT) == ("INT. KITCHEN - NIGHT",)
        assert slugline_location("INT. KITCHEN - NIGHT") == "KITCHEN"
        assert slugline_location("EXT. FIELD") == "FIELD"


class TestSequenceSummary:
    def test_from_text(self):
        summary = SequenceSummary.from_text(1, SEGMENT)
        assert "skillet" in summary.keywords
        assert summary.sluglines == ("INT. KITCHEN - NIGHT",)

    def test_sequence_number_must_be_positive(self):
        with pytest.raises(ValidationError):
            SequenceSummary(sequence_number=0)


class TestDetectSequenceLoop:
    def test_self_similarity_is_a_loop(self):
        result = detect_sequence_loop(SEGMENT, [SequenceSummary.from_text(1, SEGMENT)])
        assert result.is_loop is True
        assert result.score == 1.0
        assert result.implicated_sequences == [1]
        assert result.location_repeats == [1]

    def test_empty_history(self):
        result = detect_sequence_loop(SEGMENT, [])
        assert result.is_loop is False
        assert result.score == 0.0
        assert result.repeated_beats == []

    def test_unrelated_history(self):
        result = detect_sequence_loop(SEGMENT, [SequenceSummary.from_text(1, UNRELATED)])
        assert result.is_loop is False
        assert result.score == 0.0


class TestContinuity:
    def test_opening_patterns_allowed_in_first_sequence(self):
        assert validate_sequence_continuity("FADE IN:\nWe meet Margaret.", 1).valid is True

    def test_opening_patterns_flagged_later(self):
        check = validate_sequence_continuity("FADE IN:\nWe meet Margaret.", 3)
        assert check.valid is False
        assert any("opening pattern" in issue for issue in check.issues)

    def test_reset_phrasing_always_flagged(self):
        check = validate_sequence_continuity("It all began on a Tuesday.", 1)
        assert check.valid is False
        assert check.issues[0].startswith("Story reset detected")


class TestCheckLoop:
    def test_combines_both_checks(self):
        result = check_loop(SEGMENT, 2, [SequenceSummary.from_text(1, SEGMENT)])
        payload = result.to_payload()
        assert payload["sequence_number"] == 2
        assert payload["similarity"]["is_loop"] is True
        assert payload["continuity"]["valid"] is True

    def test_no_history_means_first_pass(self):
        assert check_loop(SEGMENT, 1).similarity.is_loop is False
