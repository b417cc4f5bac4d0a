"""Quantitative signals extracted from raw screenplay text.

Every extractor is total over arbitrary strings: empty or very short input
yields zeroed features instead of raising.
"""

from __future__ import annotations

import math
import re
from bisect import bisect_left
from dataclasses import dataclass

from data_designer_screenplay_guard.hyperparameters import DEFAULT_HYPERPARAMETERS, Hyperparameters
from data_designer_screenplay_guard.patterns import DEFAULT_LIBRARY, PatternLibrary, PatternMatch, PatternRule

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")
_SCENE_HEADING_RE = re.compile(r"^(INT\.|EXT\.)")
_SPEAKER_RE = re.compile(r"^[A-Z][A-Z\s.'()-]+$")
_SPEAKER_EXTENSION_RE = re.compile(r"\s*\([^)]+\)\s*$")
_WORD_RE = re.compile(r"\S+")


@dataclass(frozen=True)
class SentenceStats:
    count: int
    lengths: tuple[int, ...]
    mean: float
    std_dev: float
    short: int
    medium: int
    long: int
    metric_ratio: float

    def to_payload(self) -> dict[str, object]:
        return {
            "count": self.count,
            "mean": self.mean,
            "std_dev": self.std_dev,
            "distribution": {"short": self.short, "medium": self.medium, "long": self.long},
            "metric_ratio": round(self.metric_ratio, 3),
        }


@dataclass(frozen=True)
class Scene:
    header: str
    word_count: int


@dataclass(frozen=True)
class DialogueAttribution:
    by_character: dict[str, list[str]]
    line_count: int
    lines: tuple[str, ...]

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class DocumentFeatures:
    text: str
    word_count: int
    sentences: SentenceStats
    scenes: tuple[Scene, ...]
    dialogue: DialogueAttribution
    matches: dict[str, list[PatternMatch]]
    sensory_counts: dict[str, int]
    messiness_counts: dict[str, int]

    def count(self, rule_name: str) -> int:
        return len(self.matches.get(rule_name, ()))

    def group_count(self, rules: tuple[PatternRule, ...]) -> int:
        return sum(self.count(rule.name) for rule in rules)

    def group_matches(self, rules: tuple[PatternRule, ...]) -> list[str]:
        return [m.text for rule in rules for m in self.matches.get(rule.name, ())]

    @property
    def sensory_total(self) -> int:
        return sum(self.sensory_counts.values())

    @property
    def sensory_density(self) -> float:
        return self.sensory_total / max(self.word_count, 1)

    @property
    def messiness_total(self) -> int:
        return sum(self.messiness_counts.values())


def word_count(text: str) -> int:
    return len(text.split())


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_RE.findall(text) if s.strip()]


def sentence_stats(text: str, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> SentenceStats:
    """Sentence-length distribution: mean, population std. dev. and length buckets.

    Below ``hp.min_sentences_for_variance`` sentences the distribution is too
    thin to mean anything, so everything but the count is zeroed.
    """
    sentences = split_sentences(text)
    lengths = tuple(len(s.split()) for s in sentences)
    if len(lengths) < hp.min_sentences_for_variance:
        return SentenceStats(len(lengths), lengths, 0.0, 0.0, 0, 0, 0, 0.0)

    mean = sum(lengths) / len(lengths)
    variance = sum((n - mean) ** 2 for n in lengths) / len(lengths)
    short = sum(1 for n in lengths if n <= hp.short_sentence_max_words)
    medium = sum(1 for n in lengths if hp.short_sentence_max_words < n <= hp.medium_sentence_max_words)
    long = len(lengths) - short - medium
    return SentenceStats(
        count=len(lengths),
        lengths=lengths,
        mean=round(mean, 1),
        std_dev=round(math.sqrt(variance), 2),
        short=short,
        medium=medium,
        long=long,
        metric_ratio=medium / len(lengths),
    )


def is_scene_heading(line: str) -> bool:
    return bool(_SCENE_HEADING_RE.match(line.strip()))


def segment_scenes(text: str) -> list[Scene]:
    """Split on ``INT.``/``EXT.`` headings; text before the first heading is not a scene."""
    scenes: list[Scene] = []
    header: str | None = None
    words = 0
    for line in text.split("\n"):
        stripped = line.strip()
        if is_scene_heading(stripped):
            if header is not None:
                scenes.append(Scene(header, words))
            header = stripped
            # The heading's own words (minus the INT./EXT. prefix) belong to the scene.
            words = word_count(stripped) - 1
            continue
        if header is not None:
            words += word_count(stripped)
    if header is not None:
        scenes.append(Scene(header, words))
    return scenes


def _is_speaker_line(line: str, hp: Hyperparameters) -> bool:
    return (
        1 < len(line) <= hp.speaker_name_max_chars
        and not is_scene_heading(line)
        and bool(_SPEAKER_RE.match(line))
    )


def attribute_dialogue(text: str, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> DialogueAttribution:
    """Group dialogue by speaker.

    An all-caps line opens a speaker block; following lines (parentheticals
    skipped) belong to it until a blank line, a scene heading, or another
    speaker. Each block becomes one utterance.
    """
    by_character: dict[str, list[str]] = {}
    lines: list[str] = []
    speaker: str | None = None
    buffer: list[str] = []

    def flush() -> None:
        if speaker and buffer:
            by_character.setdefault(speaker, []).append(" ".join(buffer))
        buffer.clear()

    for raw in text.split("\n"):
        line = raw.strip()
        if _is_speaker_line(line, hp):
            flush()
            speaker = _SPEAKER_EXTENSION_RE.sub("", line).strip() or line
            continue
        if not line or is_scene_heading(line):
            flush()
            speaker = None
            continue
        if line.startswith("("):
            continue
        if speaker:
            buffer.append(line)
            lines.append(line)
    flush()

    return DialogueAttribution(by_character=by_character, line_count=len(lines), lines=tuple(lines))


def match_rules(
    text: str,
    rules: list[PatternRule],
    dialogue_text: str = "",
) -> dict[str, list[PatternMatch]]:
    matches: dict[str, list[PatternMatch]] = {}
    for rule in rules:
        target = dialogue_text if rule.scope == "dialogue" else text
        matches[rule.name] = rule.matches(target)
    return matches


def extract_features(
    text: str,
    library: PatternLibrary = DEFAULT_LIBRARY,
    hp: Hyperparameters = DEFAULT_HYPERPARAMETERS,
) -> DocumentFeatures:
    dialogue = attribute_dialogue(text, hp)
    matches = match_rules(text, library.scored_rules(), dialogue.text)
    return DocumentFeatures(
        text=text,
        word_count=word_count(text),
        sentences=sentence_stats(text, hp),
        scenes=tuple(segment_scenes(text)),
        dialogue=dialogue,
        matches=matches,
        sensory_counts={rule.name: len(matches[rule.name]) for rule in library.sensory},
        messiness_counts={rule.name: len(matches[rule.name]) for rule in library.messiness},
    )


@dataclass(frozen=True)
class ClusterViolation:
    motif: str
    distance: int
    required: int

    def describe(self) -> str:
        return f"{self.motif} clustering: {self.distance} words (need {self.required})"

    def to_payload(self) -> dict[str, object]:
        return {"motif": self.motif, "distance": self.distance, "required": self.required}


def word_starts(text: str) -> list[int]:
    """Character offset of every whitespace-delimited word, in order."""
    return [m.start() for m in _WORD_RE.finditer(text)]


def word_offset(starts: list[int], index: int) -> int:
    """Number of words that begin before character ``index``."""
    return bisect_left(starts, index)


def find_clustering(text: str, rules: tuple[PatternRule, ...]) -> list[ClusterViolation]:
    """Flag consecutive occurrences of a prop closer than its cooldown distance."""
    violations: list[ClusterViolation] = []
    starts = word_starts(text)
    for rule in rules:
        if rule.cooldown_words is None:
            continue
        positions = [word_offset(starts, m.start) for m in rule.matches(text)]
        for previous, current in zip(positions, positions[1:]):
            distance = current - previous
            if distance < rule.cooldown_words:
                violations.append(ClusterViolation(rule.name, distance, rule.cooldown_words))
    return violations
