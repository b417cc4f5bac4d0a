# The six category scorers. Each consumes DocumentFeatures and returns a
# CategoryScore clamped to [0, 10].

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from data_designer_screenplay_guard.features import DocumentFeatures, find_clustering
from data_designer_screenplay_guard.hyperparameters import Hyperparameters, clamp, tiered_penalty
from data_designer_screenplay_guard.patterns import PatternLibrary


@dataclass(frozen=True)
class CategoryScore:
    score: float
    details: dict[str, object] = field(default_factory=dict)

    def to_payload(self) -> dict[str, object]:
        return {"score": self.score, "details": self.details}


def _finish(raw: float, hp: Hyperparameters, details: dict[str, object]) -> CategoryScore:
    return CategoryScore(score=round(clamp(raw, hp), 1), details=details)


# ---------------------------------------------------------------------------
# Prose mechanics
# ---------------------------------------------------------------------------


def variance_score(std_dev: float, hp: Hyperparameters) -> float:
    for bound, score in hp.variance_steps:
        if std_dev >= bound:
            return score
    return hp.variance_floor_score


def score_prose_mechanics(features: DocumentFeatures, library: PatternLibrary, hp: Hyperparameters) -> CategoryScore:
    stats = features.sentences
    v_score = variance_score(stats.std_dev, hp)

    expected_sensory = features.word_count / hp.sensory_words_per_reference
    sensory_score = min(10.0, features.sensory_total / max(expected_sensory, 1.0) * 10)

    metric_penalty = max(0.0, (stats.metric_ratio - hp.metric_ratio_threshold) * hp.metric_penalty_scale)

    raw = (
        v_score * hp.prose_variance_weight
        + sensory_score * hp.prose_sensory_weight
        + (10 - metric_penalty) * hp.prose_rhythm_weight
    )
    return _finish(raw, hp, {
        "variance": stats.to_payload(),
        "sensory": {**features.sensory_counts, "total": features.sensory_total},
        "sensory_density": round(features.sensory_density, 5),
        "variance_score": v_score,
        "sensory_score": round(sensory_score, 2),
        "metric_penalty": round(metric_penalty, 2),
    })


# ---------------------------------------------------------------------------
# Behavioral control
# ---------------------------------------------------------------------------


def score_behavioral_control(features: DocumentFeatures, library: PatternLibrary, hp: Hyperparameters) -> CategoryScore:
    tics = {rule.name: features.count(rule.name) for rule in library.tics}
    clustering = find_clustering(features.text, library.props)

    violations = 0
    issues: list[str] = []
    for rule in library.tics:
        count = tics[rule.name]
        limit = rule.max_count if rule.max_count is not None else hp.default_tic_cap
        if count > limit:
            violations += count - limit
            issues.append(f"{rule.name}: {count}x (limit: {limit})")

    violations += len(clustering)
    issues.extend(v.describe() for v in clustering)

    raw = 10 - violations / hp.behavioral_violations_per_point
    return _finish(raw, hp, {
        "tics": tics,
        "clustering": [v.to_payload() for v in clustering],
        "violations": violations,
        "issues": issues,
    })


# ---------------------------------------------------------------------------
# AI fingerprint avoidance
# ---------------------------------------------------------------------------


def score_ai_fingerprint(features: DocumentFeatures, library: PatternLibrary, hp: Hyperparameters) -> CategoryScore:
    text = features.text
    clinical = features.group_matches(library.clinical)
    on_the_nose = features.group_matches(library.on_the_nose)
    bangers = features.group_matches(library.banger)

    dialogue_lines = features.dialogue.line_count
    mundanity_ratio = len(bangers) / dialogue_lines if dialogue_lines > 0 else 0.0

    ai_issues: list[str] = []
    ai_penalty = 0.0

    def tier(label: str, count: int, tiers: tuple[tuple[int, float], ...]) -> None:
        nonlocal ai_penalty
        penalty = tiered_penalty(count, tiers)
        if penalty:
            ai_penalty += penalty
            ai_issues.append(f"{label} ({count})")

    purple = features.group_count(library.purple_prose)
    tier("purple prose", purple, hp.purple_prose_tiers)

    verbal_tics = {rule.name: rule.count(text) for rule in library.verbal_tics}
    for rule in library.verbal_tics:
        count = verbal_tics[rule.name]
        limit = rule.max_count or 0
        if count > limit * hp.verbal_tic_excess_multiplier:
            ai_penalty += 2 * rule.severity_weight
            ai_issues.append(f"excessive {rule.name} ({count})")
        elif count > limit:
            ai_penalty += rule.severity_weight
            ai_issues.append(f"high {rule.name} ({count})")

    technobabble = features.group_count(library.technobabble)
    tier("technobabble", technobabble, hp.technobabble_tiers)

    repetitions = features.group_count(library.word_repetition)
    tier("word repetition", repetitions, hp.repetition_tiers)

    summary_endings = features.group_count(library.summary_endings)
    tier("summary endings", summary_endings, hp.summary_ending_tiers)

    lowercase_bugs = features.group_count(library.lowercase_bug)
    tier("lowercase bug", lowercase_bugs, hp.lowercase_bug_tiers)

    double_punctuation = features.group_count(library.double_punctuation)
    tier("punctuation bugs", double_punctuation, hp.double_punctuation_tiers)

    clinical_penalty = sum(rule.severity_weight * features.count(rule.name) for rule in library.clinical)
    on_the_nose_penalty = sum(rule.severity_weight * features.count(rule.name) for rule in library.on_the_nose)
    mundanity_penalty = (
        (mundanity_ratio - hp.mundanity_threshold) * hp.mundanity_scale
        if mundanity_ratio > hp.mundanity_threshold
        else 0.0
    )

    # Messiness reads as human only in moderation.
    over_injected = (
        verbal_tics.get("ellipsis", 0) > hp.over_injected_ellipsis
        or verbal_tics.get("stutter_dash", 0) > hp.over_injected_dashes
    )
    messiness_bonus = (
        0.0
        if over_injected
        else min(hp.messiness_bonus_cap, features.messiness_total * hp.fingerprint_messiness_per_match)
    )

    raw = 10 - clinical_penalty - on_the_nose_penalty - mundanity_penalty - ai_penalty + messiness_bonus
    return _finish(raw, hp, {
        "clinical": clinical,
        "on_the_nose": on_the_nose,
        "bangers": bangers,
        "messiness": {**features.messiness_counts, "total": features.messiness_total},
        "mundanity_ratio": round(mundanity_ratio, 2),
        "dialogue_count": dialogue_lines,
        "ai_issues": ai_issues,
        "ai_penalty": round(ai_penalty, 1),
        "purple_prose": purple,
        "technobabble": technobabble,
        "lowercase_bugs": lowercase_bugs,
        "double_punctuation": double_punctuation,
        "repetitions": repetitions,
        "summary_endings": summary_endings,
        "verbal_tics": verbal_tics,
        "messiness_bonus": round(messiness_bonus, 2),
    })


# ---------------------------------------------------------------------------
# Structural integrity, character dynamics, uniqueness
# ---------------------------------------------------------------------------


def score_structural_integrity(features: DocumentFeatures, library: PatternLibrary, hp: Hyperparameters) -> CategoryScore:
    resets = features.group_matches(library.resets)
    penalty = sum(rule.severity_weight * features.count(rule.name) for rule in library.resets)
    return _finish(10 - penalty, hp, {
        "resets": resets,
        "note": "Full structural analysis requires outline comparison",
    })


def score_character_dynamics(features: DocumentFeatures, library: PatternLibrary, hp: Hyperparameters) -> CategoryScore:
    on_the_nose = features.group_matches(library.on_the_nose)
    penalty = len(on_the_nose) * hp.character_on_the_nose_penalty
    bonus = min(hp.messiness_bonus_cap, features.messiness_total * hp.character_messiness_per_match)
    return _finish(10 - penalty + bonus, hp, {
        "on_the_nose": on_the_nose,
        "messiness": {**features.messiness_counts, "total": features.messiness_total},
        "characters": sorted(features.dialogue.by_character),
        "note": "Voice fingerprinting requires multi-character analysis",
    })


# Signature of a cross-document comparison backend: (text, hp) -> score in [0, 10].
UniquenessBackend = Callable[[str, Hyperparameters], float]


def score_uniqueness(
    features: DocumentFeatures,
    library: PatternLibrary,
    hp: Hyperparameters,
    backend: UniquenessBackend | None = None,
) -> CategoryScore:
    """Cross-document uniqueness.

    Comparing against previously produced documents needs an external corpus,
    so without a ``backend`` this reports the fixed baseline.
    """
    if backend is None:
        return _finish(hp.uniqueness_baseline, hp, {
            "note": "Full uniqueness scoring requires an external corpus comparison",
        })
    return _finish(backend(features.text, hp), hp, {"note": "Scored by external corpus backend"})


CategoryScorer = Callable[[DocumentFeatures, PatternLibrary, Hyperparameters], CategoryScore]

SCORERS: dict[str, CategoryScorer] = {
    "structural": score_structural_integrity,
    "prose": score_prose_mechanics,
    "character": score_character_dynamics,
    "behavioral": score_behavioral_control,
    "ai_fingerprint": score_ai_fingerprint,
}
