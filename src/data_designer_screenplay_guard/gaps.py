"""Humanity-gap analysis: the tells a composite score does not capture.

Looks at dialogue uniformity, voice differentiation between characters,
subtext, scene pacing, thematic hammering, stakes clichés, dialogue rhythm
and action-line habits. Produces a flat list of issues; nothing is scored.
"""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from dataclasses import dataclass

from data_designer_screenplay_guard.features import (
    DialogueAttribution,
    Scene,
    attribute_dialogue,
    segment_scenes,
    word_count,
)
from data_designer_screenplay_guard.hyperparameters import DEFAULT_HYPERPARAMETERS, Hyperparameters
from data_designer_screenplay_guard.patterns import DEFAULT_LIBRARY, PatternLibrary

logger = logging.getLogger(__name__)

_CLAUSE_SPLIT_RE = re.compile(r"[.!?]+")
_CONTRACTION_RE = re.compile(r"\b\w+'\w+\b")


@dataclass(frozen=True)
class GapIssue:
    category: str
    issue: str

    def to_payload(self) -> dict[str, str]:
        return {"category": self.category, "issue": self.issue}


@dataclass(frozen=True)
class GapReport:
    word_count: int
    scene_count: int
    character_count: int
    issues: list[GapIssue]

    def by_category(self) -> dict[str, list[str]]:
        grouped: dict[str, list[str]] = {}
        for item in self.issues:
            grouped.setdefault(item.category, []).append(item.issue)
        return grouped

    def to_payload(self) -> dict[str, object]:
        return {
            "word_count": self.word_count,
            "scene_count": self.scene_count,
            "character_count": self.character_count,
            "issues": [i.to_payload() for i in self.issues],
        }


def dialogue_uniformity(dialogue: DialogueAttribution, library: PatternLibrary, hp: Hyperparameters) -> list[str]:
    issues: list[str] = []
    starters: Counter[str] = Counter()
    for utterances in dialogue.by_character.values():
        for utterance in utterances:
            for clause in _CLAUSE_SPLIT_RE.split(utterance):
                clause = clause.strip()
                if not clause:
                    continue
                for rule in library.overused_starters:
                    m = rule.search(clause)
                    if m:
                        starters[m.group(0).lower()] += 1

    for starter, count in starters.items():
        if count >= hp.starter_overuse_min:
            issues.append(f'Overused dialogue starter: "{starter}" ({count}x)')

    for character, utterances in dialogue.by_character.items():
        for utterance in utterances:
            for rule in library.too_polished:
                m = rule.search(utterance)
                if m:
                    issues.append(f'{character} uses formal/archaic language: "{m.group(0)}"')
    return issues


def voice_profiles(dialogue: DialogueAttribution, hp: Hyperparameters) -> dict[str, dict[str, float]]:
    profiles: dict[str, dict[str, float]] = {}
    for character, utterances in dialogue.by_character.items():
        if len(utterances) < hp.voice_min_utterances:
            continue
        text = " ".join(utterances)
        words = text.split()
        clauses = _CLAUSE_SPLIT_RE.split(text)
        profiles[character] = {
            "avg_sentence_length": len(words) / max(len(clauses), 1),
            "contraction_rate": len(_CONTRACTION_RE.findall(text)) / max(len(words), 1),
            "question_rate": text.count("?") / len(utterances),
            "exclamation_rate": text.count("!") / len(utterances),
            "word_count": len(words),
        }
    return profiles


def voice_distinctiveness(dialogue: DialogueAttribution, hp: Hyperparameters) -> list[str]:
    profiles = voice_profiles(dialogue, hp)
    names = list(profiles)
    issues: list[str] = []
    for i, first in enumerate(names):
        for second in names[i + 1:]:
            a, b = profiles[first], profiles[second]
            if (
                abs(a["avg_sentence_length"] - b["avg_sentence_length"]) < hp.voice_sentence_length_delta
                and abs(a["contraction_rate"] - b["contraction_rate"]) < hp.voice_contraction_delta
                and a["word_count"] > hp.voice_min_words
                and b["word_count"] > hp.voice_min_words
            ):
                issues.append(f"{first} and {second} have similar speech patterns (low voice differentiation)")
    return issues


def subtext_absence(text: str, library: PatternLibrary, hp: Hyperparameters) -> list[str]:
    issues: list[str] = []
    total = 0
    for rule in library.no_subtext:
        for pattern in rule.patterns:
            found = [m.group(0) for m in pattern.finditer(text)]
            total += len(found)
            issues.extend(f'On-the-nose dialogue (no subtext): "{match}"' for match in found[:2])
    if total >= hp.subtext_flag_min:
        issues.append(f"High on-the-nose dialogue count: {total} instances")
    return issues


def scene_pacing(scenes: list[Scene], hp: Hyperparameters) -> list[str]:
    """Uniform scene lengths read as machine-made; so does a lack of very short or long scenes."""
    if len(scenes) < hp.pacing_min_scenes:
        return ["Too few scenes for pacing analysis"]

    lengths = [s.word_count for s in scenes]
    mean = sum(lengths) / len(lengths)
    std_dev = math.sqrt(sum((n - mean) ** 2 for n in lengths) / len(lengths))
    issues: list[str] = []
    if std_dev < mean * hp.pacing_uniformity_ratio:
        issues.append(f"Scene length too uniform (std. dev. {std_dev:.0f}, avg {mean:.0f})")
    if not any(n < hp.pacing_short_scene_words for n in lengths):
        issues.append(f"No quick-cut scenes (< {hp.pacing_short_scene_words} words)")
    if not any(n > hp.pacing_long_scene_words for n in lengths) and len(scenes) >= hp.pacing_long_scene_min_scenes:
        issues.append(f"No extended scenes (> {hp.pacing_long_scene_words} words)")
    return issues


def thematic_hammer(text: str, library: PatternLibrary) -> list[str]:
    return [
        f'Thematic sledgehammer ({rule.name}): "{m.group(0)}"'
        for rule in library.thematic_hammer
        for m in rule.finditer(text)
    ]


def _per_pattern_overuse(text: str, rules, minimum: int) -> list[str]:
    issues: list[str] = []
    for rule in rules:
        for pattern in rule.patterns:
            found = [m.group(0) for m in pattern.finditer(text)]
            if len(found) >= minimum:
                issues.append(f'{rule.name}: "{found[0]}" ({len(found)}x)')
    return issues


def dialogue_rhythm(dialogue: DialogueAttribution, hp: Hyperparameters) -> list[str]:
    utterances = [u for group in dialogue.by_character.values() for u in group]
    if not utterances:
        return []
    interrupt_rate = sum(1 for u in utterances if "--" in u) / len(utterances)
    trail_rate = sum(1 for u in utterances if "..." in u) / len(utterances)
    issues: list[str] = []
    if interrupt_rate < hp.interruption_rate_min:
        issues.append(f"Low interruption rate: {interrupt_rate:.1%} (humans interrupt more)")
    if trail_rate < hp.trail_off_rate_min:
        issues.append(f"Low trail-off rate: {trail_rate:.1%} (humans trail off more)")
    return issues


def analyze_humanity_gaps(
    text: str,
    hyperparameters: Hyperparameters | None = None,
    library: PatternLibrary | None = None,
) -> GapReport:
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    lib = library or DEFAULT_LIBRARY
    scenes = segment_scenes(text)
    dialogue = attribute_dialogue(text, hp)

    sections = {
        "dialogue_uniformity": dialogue_uniformity(dialogue, lib, hp),
        "voice_distinctiveness": voice_distinctiveness(dialogue, hp),
        "subtext": subtext_absence(text, lib, hp),
        "scene_pacing": scene_pacing(scenes, hp),
        "thematic_hammer": thematic_hammer(text, lib),
        "stakes": _per_pattern_overuse(text, lib.stakes, hp.stakes_flag_min),
        "dialogue_rhythm": dialogue_rhythm(dialogue, hp),
        "action_tells": _per_pattern_overuse(text, lib.action_tells, hp.action_tell_flag_min),
    }
    issues = [GapIssue(category, issue) for category, found in sections.items() for issue in found]
    logger.info(f"Humanity-gap analysis found {len(issues)} issues across {len(scenes)} scenes")
    return GapReport(
        word_count=word_count(text),
        scene_count=len(scenes),
        character_count=len(dialogue.by_character),
        issues=issues,
    )
