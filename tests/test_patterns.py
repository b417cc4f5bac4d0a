import re

import pytest

from data_designer_screenplay_guard.patterns import DEFAULT_LIBRARY, PatternLibrary, PatternRule


def _rule(**overrides):
    options = {"name": "sample", "category": "tic", "patterns": (re.compile("sample"),)}
    options.update(overrides)
    return PatternRule(**options)


class TestPatternRule:
    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError):
            _rule(category="vibes")

    def test_unknown_scope_rejected(self):
        with pytest.raises(ValueError):
            _rule(scope="scene")

    def test_empty_patterns_rejected(self):
        with pytest.raises(ValueError):
            _rule(patterns=())

    def test_negative_cap_rejected(self):
        with pytest.raises(ValueError):
            _rule(max_count=-1)

    def test_non_positive_cooldown_rejected(self):
        with pytest.raises(ValueError):
            _rule(cooldown_words=0)

    def test_matches_are_sorted_by_position(self):
        rule = _rule(patterns=(re.compile("b"), re.compile("a")))
        assert [m.start for m in rule.matches("ab ba")] == [0, 1, 3, 4]
        assert rule.count("ab ba") == 4


class TestPatternLibrary:
    def test_rule_lookup(self):
        assert DEFAULT_LIBRARY.rule("reset_phrasing").severity_weight == 2.0
        assert DEFAULT_LIBRARY.rule("watch").max_count == 4

    def test_unknown_rule_raises_key_error(self):
        with pytest.raises(KeyError):
            DEFAULT_LIBRARY.rule("nope")

    def test_rules_in_category(self):
        names = {rule.name for rule in DEFAULT_LIBRARY.rules_in("sensory")}
        assert names == {"smell", "sound", "touch", "taste"}

    def test_duplicate_scored_names_rejected(self):
        with pytest.raises(ValueError):
            PatternLibrary(sensory=DEFAULT_LIBRARY.sensory + (_rule(name="smell", category="sensory"),))

    def test_watch_ignores_the_verb(self):
        watch = DEFAULT_LIBRARY.rule("watch")
        assert watch.count("He glances at his watch.") == 1
        assert watch.count("Watch out! She watches him. They watch closely.") == 0

    def test_cigarette_ignores_smoke_alarm_vocabulary(self):
        cigarette = DEFAULT_LIBRARY.rule("cigarette")
        assert cigarette.count("He lights a cigarette.") == 1
        assert cigarette.count("The ash detector blinks.") == 0

    def test_dialogue_scope(self):
        assert all(rule.scope == "dialogue" for rule in DEFAULT_LIBRARY.too_polished)
        assert all(rule.scope == "document" for rule in DEFAULT_LIBRARY.scored_rules())

    def test_exit_cliches_are_budgeted_but_not_scored(self):
        assert all(rule.max_count for rule in DEFAULT_LIBRARY.exit_cliches)
        assert DEFAULT_LIBRARY.rules_in("exit-cliche") == []
        crowd = next(rule for rule in DEFAULT_LIBRARY.exit_cliches if rule.name == "into_the_crowd")
        assert crowd.count("She melts into the crowd. He disappears into the shadows.") == 2
        assert crowd.count("She walks into the kitchen.") == 0
