# Narrative loop detection for sequence-by-sequence generation.
#
# Two independent, advisory checks: keyword/location similarity against the
# summaries of earlier sequences, and a regex scan for reset or opening-image
# phrasing. Neither mutates text.

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from data_designer_screenplay_guard.hyperparameters import DEFAULT_HYPERPARAMETERS, Hyperparameters
from data_designer_screenplay_guard.patterns import DEFAULT_LIBRARY, PatternLibrary

logger = logging.getLogger(__name__)

_SLUGLINE_RE = re.compile(r"^(?:INT\.|EXT\.)[ \t]+[A-Z' \t\-]+", re.MULTILINE)
_SLUGLINE_PREFIX_RE = re.compile(r"^(?:INT\.|EXT\.)\s+")
_NON_ALPHA_RE = re.compile(r"[^a-zA-Z\s]")


def extract_keywords(text: str, min_length: int = DEFAULT_HYPERPARAMETERS.keyword_min_length) -> frozenset[str]:
    cleaned = _NON_ALPHA_RE.sub("", text.lower())
    return frozenset(word for word in cleaned.split() if len(word) >= min_length)


def extract_sluglines(text: str) -> tuple[str, ...]:
    return tuple(m.group(0).strip() for m in _SLUGLINE_RE.finditer(text))


def slugline_location(slugline: str) -> str:
    """``INT. BARN - NIGHT`` -> ``BARN``."""
    location = _SLUGLINE_PREFIX_RE.sub("", slugline)
    return location.split(" - ")[0].strip()


class SequenceSummary(BaseModel):
    """What one completed sequence covered, as seen by later loop checks."""

    model_config = ConfigDict(frozen=True)

    sequence_number: int = Field(ge=1)
    keywords: frozenset[str] = Field(default_factory=frozenset)
    summary: str = ""
    sluglines: tuple[str, ...] = ()

    @classmethod
    def from_text(
        cls,
        sequence_number: int,
        summary: str,
        sluglines: tuple[str, ...] | list[str] | None = None,
        hyperparameters: Hyperparameters | None = None,
    ) -> SequenceSummary:
        """Build a summary from its raw text; sluglines default to the headings found in it."""
        hp = hyperparameters or DEFAULT_HYPERPARAMETERS
        return cls(
            sequence_number=sequence_number,
            keywords=extract_keywords(summary, hp.keyword_min_length),
            summary=summary,
            sluglines=tuple(sluglines) if sluglines is not None else extract_sluglines(summary),
        )


@dataclass(frozen=True)
class LoopSimilarity:
    is_loop: bool
    score: float
    repeated_beats: list[str]
    implicated_sequences: list[int]
    location_repeats: list[int]

    def to_payload(self) -> dict[str, object]:
        return {
            "is_loop": self.is_loop,
            "score": self.score,
            "repeated_beats": self.repeated_beats,
            "implicated_sequences": self.implicated_sequences,
            "location_repeats": self.location_repeats,
        }


@dataclass(frozen=True)
class ContinuityCheck:
    valid: bool
    issues: list[str]

    def to_payload(self) -> dict[str, object]:
        return {"valid": self.valid, "issues": self.issues}


@dataclass(frozen=True)
class LoopCheckResult:
    sequence_number: int
    similarity: LoopSimilarity
    continuity: ContinuityCheck

    def to_payload(self) -> dict[str, object]:
        return {
            "sequence_number": self.sequence_number,
            "similarity": self.similarity.to_payload(),
            "continuity": self.continuity.to_payload(),
        }


def keyword_overlap(current: frozenset[str], prior: frozenset[str]) -> float:
    """Shared keywords over the smaller set's size."""
    return len(current & prior) / max(min(len(current), len(prior)), 1)


def detect_sequence_loop(
    text: str,
    summaries: list[SequenceSummary],
    hyperparameters: Hyperparameters | None = None,
) -> LoopSimilarity:
    """Score how much a new segment rehashes earlier sequences.

    Overlaps above the loop threshold accumulate into the score; a scene
    location already named in a prior summary adds a fixed increment when the
    overlap is also moderately high.
    """
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    keywords = extract_keywords(text, hp.keyword_min_length)
    locations = [loc for loc in (slugline_location(s) for s in extract_sluglines(text)) if loc]

    score = 0.0
    beats: list[str] = []
    implicated: list[int] = []
    location_repeats: list[int] = []

    for prior in summaries:
        overlap = keyword_overlap(keywords, prior.keywords)
        if overlap > hp.loop_overlap_threshold:
            score += overlap
            implicated.append(prior.sequence_number)
            beats.append(f"Sequence {prior.sequence_number} keywords detected ({overlap:.0%} overlap)")

        prior_text = prior.summary.upper()
        if overlap > hp.location_overlap_threshold and any(loc in prior_text for loc in locations):
            score += hp.location_repeat_increment
            location_repeats.append(prior.sequence_number)
            beats.append(f"Repeat of locations from Sequence {prior.sequence_number}")

    is_loop = score > hp.loop_score_threshold
    if is_loop:
        logger.warning(f"Possible narrative loop (score {score:.2f}): {'; '.join(beats)}")
    return LoopSimilarity(
        is_loop=is_loop,
        score=round(min(score, 1.0), 4),
        repeated_beats=beats,
        implicated_sequences=implicated,
        location_repeats=location_repeats,
    )


def validate_sequence_continuity(
    text: str,
    sequence_number: int,
    library: PatternLibrary | None = None,
) -> ContinuityCheck:
    """Flag reset phrasing always, and opening-image phrasing after the first sequence."""
    lib = library or DEFAULT_LIBRARY
    issues: list[str] = []

    if sequence_number > 1:
        for rule in lib.opening_images:
            for pattern in rule.patterns:
                if pattern.search(text):
                    issues.append(f"Sequence {sequence_number} contains opening pattern: {pattern.pattern}")

    for rule in lib.sequence_resets:
        for pattern in rule.patterns:
            if pattern.search(text):
                issues.append(f"Story reset detected: {pattern.pattern}")

    return ContinuityCheck(valid=not issues, issues=issues)


def check_loop(
    text: str,
    sequence_number: int,
    summaries: list[SequenceSummary] | None = None,
    hyperparameters: Hyperparameters | None = None,
    library: PatternLibrary | None = None,
) -> LoopCheckResult:
    """Run both loop checks for a new segment. An empty history means first pass."""
    return LoopCheckResult(
        sequence_number=sequence_number,
        similarity=detect_sequence_loop(text, summaries or [], hyperparameters),
        continuity=validate_sequence_continuity(text, sequence_number, library),
    )
