# Composite screenplay scorer.
#
# Extracts features once, runs the six category scorers, and folds their
# subscores into a weighted 0-10 composite with a tier label. Pure: the same
# text, library and hyperparameters always produce the same report.

from __future__ import annotations

import logging
from dataclasses import dataclass

from data_designer_screenplay_guard.features import extract_features
from data_designer_screenplay_guard.hyperparameters import (
    CATEGORY_ORDER,
    DEFAULT_HYPERPARAMETERS,
    Hyperparameters,
    clamp,
)
from data_designer_screenplay_guard.patterns import DEFAULT_LIBRARY, PatternLibrary
from data_designer_screenplay_guard.scorers import SCORERS, CategoryScore, UniquenessBackend, score_uniqueness

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScoreReport:
    composite: float
    tier: str
    word_count: int
    categories: dict[str, CategoryScore]
    findings: dict[str, object] | None = None

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "composite": self.composite,
            "tier": self.tier,
            "word_count": self.word_count,
            "categories": {name: score.to_payload() for name, score in self.categories.items()},
        }
        if self.findings is not None:
            payload["findings"] = self.findings
        return payload


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def tier_for(composite: float, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> str:
    for bound, label in hp.tier_bands:
        if composite >= bound:
            return label
    return hp.floor_tier


def composite_score(categories: dict[str, CategoryScore], hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> float:
    total = sum(categories[name].score * hp.weights[name] for name in CATEGORY_ORDER)
    return round(clamp(total, hp), 2)


def _findings(categories: dict[str, CategoryScore]) -> dict[str, object]:
    fingerprint = categories["ai_fingerprint"].details
    prose = categories["prose"].details
    return {
        "clinical_phrases": fingerprint["clinical"],
        "on_the_nose_dialogue": fingerprint["on_the_nose"],
        "bangers": fingerprint["bangers"],
        "tic_counts": categories["behavioral"].details["tics"],
        "sentence_variance": prose["variance"],
        "sensory_density": prose["sensory"],
        "verbal_messiness": fingerprint["messiness"],
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def score_document(
    text: str,
    verbose: bool = False,
    hyperparameters: Hyperparameters | None = None,
    library: PatternLibrary | None = None,
    uniqueness_backend: UniquenessBackend | None = None,
) -> ScoreReport:
    """Score a screenplay for AI-sounding writing.

    Args:
        text: The screenplay (or partial screenplay) to score.
        verbose: Attach the raw findings behind each category to the report.
        hyperparameters: Optional tuning overrides. Uses the defaults if omitted.
        library: Optional pattern library. Uses ``DEFAULT_LIBRARY`` if omitted.
        uniqueness_backend: Optional cross-document comparison; the uniqueness
            category stays at its baseline without one.

    Returns:
        ScoreReport with the composite (0-10), tier, word count and one
        CategoryScore per category.
    """
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    lib = library or DEFAULT_LIBRARY

    features = extract_features(text, lib, hp)
    categories = {name: scorer(features, lib, hp) for name, scorer in SCORERS.items()}
    categories["uniqueness"] = score_uniqueness(features, lib, hp, uniqueness_backend)
    categories = {name: categories[name] for name in CATEGORY_ORDER}

    composite = composite_score(categories, hp)
    report = ScoreReport(
        composite=composite,
        tier=tier_for(composite, hp),
        word_count=features.word_count,
        categories=categories,
        findings=_findings(categories) if verbose else None,
    )
    logger.debug(f"Scored {report.word_count} words: {report.composite}/10 ({report.tier})")
    return report


def quick_score(text: str, hyperparameters: Hyperparameters | None = None) -> dict[str, object]:
    report = score_document(text, hyperparameters=hyperparameters)
    return {"composite": report.composite, "tier": report.tier}


def passes_quality_gate(
    text: str,
    threshold: float | None = None,
    hyperparameters: Hyperparameters | None = None,
) -> dict[str, object]:
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    gate = hp.quality_gate_threshold if threshold is None else threshold
    report = score_document(text, hyperparameters=hp)
    return {"passes": report.composite >= gate, "score": report.composite, "tier": report.tier}


def improvement_suggestions(text: str, hyperparameters: Hyperparameters | None = None) -> dict[str, object]:
    """Turn weak categories into concrete revision notes."""
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    report = score_document(text, verbose=True, hyperparameters=hp)
    cats = report.categories
    weak = hp.suggestion_category_threshold
    suggestions: list[str] = []

    if cats["prose"].score < weak:
        prose = cats["prose"].details
        if prose["variance"]["std_dev"] < 5.0:
            suggestions.append("Increase sentence length variance (target std. dev. above 5.5)")
        if prose["sensory"]["total"] < 10:
            suggestions.append("Add more non-visual sensory details (smell, sound, touch)")

    if cats["behavioral"].score < weak:
        issues = cats["behavioral"].details["issues"]
        if issues:
            suggestions.append(f"Fix tic/prop issues: {', '.join(issues[:3])}")

    if cats["ai_fingerprint"].score < weak:
        fingerprint = cats["ai_fingerprint"].details
        if fingerprint["clinical"]:
            suggestions.append("Remove clinical vocabulary")
        if fingerprint["mundanity_ratio"] > hp.mundanity_threshold:
            suggestions.append('Reduce philosophical "banger" dialogue ratio')
        if fingerprint["messiness"]["total"] < 3:
            suggestions.append("Add verbal friction (stutters, fillers, interruptions)")

    if cats["character"].score < weak and cats["character"].details["on_the_nose"]:
        suggestions.append("Remove on-the-nose dialogue")

    return {"score": report.composite, "tier": report.tier, "suggestions": suggestions}
