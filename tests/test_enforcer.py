import pytest
from pydantic import ValidationError

from data_designer_screenplay_guard.enforcer import (
    REMOVAL_MARKER,
    MotifTally,
    TicBudgetState,
    check_motif_clustering,
    enforce_tic_budget,
)


class TestEnforceTicBudget:
    def test_over_injection_is_trimmed_to_cap(self, watch_pass):
        result = enforce_tic_budget(watch_pass)
        assert result.text.count(REMOVAL_MARKER) == 6
        assert result.text.count("his watch.") == 4
        assert result.text.startswith("He checks his watch.\n" * 4)
        assert result.state.count("watch") == 4
        assert result.tallies == [MotifTally("watch", 4, 6)]
        assert len(result.warnings) == 1
        assert result.warnings[0] == '"watch" appears 10x in this pass but only 4 more allowed (global limit: 4)'

    def test_under_budget_is_untouched(self):
        text = "He checks his watch. The gun sits on the table."
        result = enforce_tic_budget(text)
        assert result.text == text
        assert result.warnings == []
        assert result.state.counts_by_motif == {"watch": 1, "gun": 1, "cigarette": 0}

    def test_exhausted_budget_removes_everything(self):
        state = TicBudgetState(counts_by_motif={"watch": 4})
        result = enforce_tic_budget("He checks his watch.", state)
        assert result.text == f"He checks his {REMOVAL_MARKER}."
        assert result.state.count("watch") == 4
        assert len(result.warnings) == 1

    def test_passes_compose(self):
        first = "He checks his watch.\n" * 3
        second = "She taps her watch.\n" * 3
        combined = enforce_tic_budget(first + second)

        one = enforce_tic_budget(first)
        two = enforce_tic_budget(second, one.state)

        assert combined.text == one.text + two.text
        assert combined.state == two.state
        assert two.state.count("watch") == 4

    def test_budget_is_monotonic(self):
        state = None
        seen = []
        for _ in range(4):
            result = enforce_tic_budget("He checks his watch.\n" * 2, state)
            state = result.state
            seen.append(state.count("watch"))
        assert seen == sorted(seen)
        assert seen[-1] == 4

    def test_input_state_is_not_mutated(self, watch_pass):
        state = TicBudgetState(counts_by_motif={"watch": 1})
        enforce_tic_budget(watch_pass, state)
        assert state.counts_by_motif == {"watch": 1}

    def test_custom_removal_marker(self, watch_pass):
        result = enforce_tic_budget(watch_pass, removal_marker="[CUT]")
        assert result.text.count("[CUT]") == 6

    def test_clustering_is_reported_separately(self):
        result = enforce_tic_budget("She grabs her phone. Then the phone rings.")
        assert result.warnings == []
        assert [v.motif for v in result.clustering] == ["phone"]

    def test_marker_text_does_not_count_toward_other_motifs(self, watch_pass):
        result = enforce_tic_budget(watch_pass, removal_marker="[gun]")
        assert result.text.count("[gun]") == 6
        assert result.state.count("gun") == 0
        assert result.tallies == [MotifTally("watch", 4, 6)]

    def test_state_above_cap_is_rejected(self):
        state = TicBudgetState(counts_by_motif={"watch": 9})
        with pytest.raises(ValueError, match="above its limit of 4"):
            enforce_tic_budget("He checks his watch.", state)


class TestExitClicheBudget:
    def test_excess_exits_rotate_through_alternatives(self):
        result = enforce_tic_budget("She walks into the rain.\n" * 3)
        assert result.text == "She walks into the rain.\nShe walks out.\nShe leaves.\n"
        assert result.state.exit_count("into_the_rain") == 1
        assert result.tallies == [MotifTally("into_the_rain", 1, 2)]
        assert result.warnings == [
            'Exit cliché "into_the_rain" appears 3x but only 1 more allowed (global limit: 1)'
        ]

    def test_budget_threads_across_passes(self):
        first = enforce_tic_budget("He storms out.\nShe storms out.")
        assert first.warnings == []
        assert first.state.exit_count("storms_out") == 2

        second = enforce_tic_budget("He storms out again.", first.state)
        assert second.text == "He walks out again."
        assert second.state.exit_count("storms_out") == 2
        assert first.state.exit_count("storms_out") == 2

    def test_motifs_and_exits_are_trimmed_in_one_pass(self, watch_pass):
        text = watch_pass + "He disappears into the night. She vanishes into the night."
        result = enforce_tic_budget(text)
        assert result.text.endswith("He disappears into the night. She walks out.")
        assert result.text.count(REMOVAL_MARKER) == 6
        assert len(result.warnings) == 2
        assert result.state.count("watch") == 4
        assert result.state.exit_count("into_the_night") == 1

    def test_state_above_cap_is_rejected(self):
        state = TicBudgetState(counts_by_exit={"into_the_rain": 3})
        with pytest.raises(ValueError, match="into_the_rain"):
            enforce_tic_budget("A quiet scene.", state)


class TestTicBudgetState:
    def test_json_round_trip(self):
        state = TicBudgetState(counts_by_motif={"watch": 3, "gun": 1})
        assert TicBudgetState.model_validate_json(state.model_dump_json()) == state

    def test_negative_counts_rejected(self):
        with pytest.raises(ValidationError):
            TicBudgetState.model_validate({"counts_by_motif": {"watch": -2}})

    def test_state_is_frozen(self):
        state = TicBudgetState()
        with pytest.raises(ValidationError):
            state.counts_by_motif = {"watch": 1}


class TestClustering:
    def test_far_apart_props_are_fine(self):
        filler = " ".join(["word"] * 1300)
        assert check_motif_clustering(f"Her phone buzzes. {filler} The phone again.") == []
