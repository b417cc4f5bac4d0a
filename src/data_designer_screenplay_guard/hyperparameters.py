from __future__ import annotations

import math
from dataclasses import dataclass, field

CATEGORY_ORDER = ("structural", "prose", "character", "behavioral", "ai_fingerprint", "uniqueness")


@dataclass(frozen=True)
class Hyperparameters:
    """Tunable thresholds, weights, caps, and penalties used by the engine."""

    weights: dict[str, float] = field(
        default_factory=lambda: {
            "structural": 0.20,
            "prose": 0.20,
            "character": 0.20,
            "behavioral": 0.15,
            "ai_fingerprint": 0.15,
            "uniqueness": 0.10,
        }
    )
    # (lower bound, label), highest first; anything below the last bound is the floor tier.
    tier_bands: tuple[tuple[float, str], ...] = (
        (9.5, "S-Tier"),
        (9.0, "A-Tier"),
        (8.0, "B-Tier"),
        (7.0, "C-Tier"),
        (6.0, "D-Tier"),
    )
    floor_tier: str = "F-Tier"
    score_min: float = 0.0
    score_max: float = 10.0

    # Feature extraction
    min_sentences_for_variance: int = 5
    short_sentence_max_words: int = 5
    medium_sentence_max_words: int = 14
    speaker_name_max_chars: int = 39

    # Prose mechanics
    variance_steps: tuple[tuple[float, float], ...] = (
        (6.0, 10.0),
        (5.5, 9.0),
        (5.0, 8.0),
        (4.5, 7.0),
        (4.0, 6.0),
        (3.5, 5.0),
    )
    variance_floor_score: float = 4.0
    sensory_words_per_reference: float = 300.0
    metric_ratio_threshold: float = 0.5
    metric_penalty_scale: float = 4.0
    prose_variance_weight: float = 0.5
    prose_sensory_weight: float = 0.3
    prose_rhythm_weight: float = 0.2

    # Behavioral control
    default_tic_cap: int = 10
    behavioral_violations_per_point: float = 2.0

    # AI fingerprint
    mundanity_threshold: float = 0.30
    mundanity_scale: float = 10.0
    purple_prose_tiers: tuple[tuple[int, float], ...] = ((10, 3.0), (5, 1.5))
    verbal_tic_excess_multiplier: int = 3
    technobabble_tiers: tuple[tuple[int, float], ...] = ((20, 2.0), (10, 1.0))
    repetition_tiers: tuple[tuple[int, float], ...] = ((10, 1.5),)
    summary_ending_tiers: tuple[tuple[int, float], ...] = ((5, 1.5),)
    lowercase_bug_tiers: tuple[tuple[int, float], ...] = ((50, 3.0), (20, 2.0), (5, 1.0))
    double_punctuation_tiers: tuple[tuple[int, float], ...] = ((5, 1.0),)
    fingerprint_messiness_per_match: float = 0.1
    messiness_bonus_cap: float = 1.5
    over_injected_ellipsis: int = 50
    over_injected_dashes: int = 30

    # Character dynamics
    character_on_the_nose_penalty: float = 0.5
    character_messiness_per_match: float = 0.15

    # Cross-document uniqueness
    uniqueness_baseline: float = 8.0

    # Quality gate
    quality_gate_threshold: float = 7.5
    suggestion_category_threshold: float = 8.0

    # Loop detection
    keyword_min_length: int = 6
    loop_overlap_threshold: float = 0.5
    location_overlap_threshold: float = 0.4
    location_repeat_increment: float = 0.3
    loop_score_threshold: float = 0.7

    # Humanity-gap analysis
    starter_overuse_min: int = 6
    voice_min_utterances: int = 3
    voice_min_words: int = 100
    voice_sentence_length_delta: float = 2.0
    voice_contraction_delta: float = 0.05
    subtext_flag_min: int = 11
    pacing_min_scenes: int = 5
    pacing_uniformity_ratio: float = 0.3
    pacing_short_scene_words: int = 150
    pacing_long_scene_words: int = 600
    pacing_long_scene_min_scenes: int = 21
    stakes_flag_min: int = 3
    action_tell_flag_min: int = 6
    interruption_rate_min: float = 0.03
    trail_off_rate_min: float = 0.05

    def __post_init__(self) -> None:
        missing = set(CATEGORY_ORDER) - set(self.weights)
        if missing:
            raise ValueError(f"Missing category weights: {sorted(missing)}")
        total = sum(self.weights[name] for name in CATEGORY_ORDER)
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Category weights must sum to 1.0, got {total:.4f}")
        bounds = [bound for bound, _ in self.tier_bands]
        if bounds != sorted(bounds, reverse=True):
            raise ValueError("Tier bands must be ordered from highest to lowest bound")


DEFAULT_HYPERPARAMETERS = Hyperparameters()


def tiered_penalty(count: int, tiers: tuple[tuple[int, float], ...]) -> float:
    """Return the penalty of the first tier whose threshold ``count`` exceeds."""
    for threshold, penalty in tiers:
        if count > threshold:
            return penalty
    return 0.0


def clamp(value: float, hp: Hyperparameters) -> float:
    return max(hp.score_min, min(hp.score_max, value))
