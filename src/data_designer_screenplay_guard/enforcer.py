# Tic budget enforcement across sequential generation passes.
#
# Motif and exit-cliché usage is budgeted per document, but documents are
# generated in passes. The caller threads a TicBudgetState from one pass to
# the next; each call trims the newest pass to whatever allowance remains and
# hands back a new state. The input state is never modified.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt

from data_designer_screenplay_guard.features import ClusterViolation, find_clustering
from data_designer_screenplay_guard.patterns import (
    ALTERNATIVE_EXITS,
    DEFAULT_LIBRARY,
    PatternLibrary,
    PatternMatch,
    PatternRule,
)

logger = logging.getLogger(__name__)

REMOVAL_MARKER = "[REMOVED]"

# (start, end, replacement) against the untrimmed pass.
Edit = tuple[int, int, str]


class TicBudgetState(BaseModel):
    """Cumulative motif and exit-cliché usage for one document, carried between passes."""

    model_config = ConfigDict(frozen=True)

    counts_by_motif: dict[str, NonNegativeInt] = Field(default_factory=dict)
    counts_by_exit: dict[str, NonNegativeInt] = Field(default_factory=dict)

    def count(self, motif: str) -> int:
        return self.counts_by_motif.get(motif, 0)

    def exit_count(self, cliche: str) -> int:
        return self.counts_by_exit.get(cliche, 0)


@dataclass(frozen=True)
class MotifTally:
    motif: str
    kept: int
    removed: int

    def to_payload(self) -> dict[str, object]:
        return {"motif": self.motif, "kept": self.kept, "removed": self.removed}


@dataclass(frozen=True)
class EnforcementResult:
    text: str
    state: TicBudgetState
    warnings: list[str]
    tallies: list[MotifTally]
    clustering: list[ClusterViolation]

    def to_payload(self) -> dict[str, object]:
        return {
            "text": self.text,
            "state": self.state.model_dump(),
            "warnings": self.warnings,
            "tallies": [t.to_payload() for t in self.tallies],
            "clustering": [v.to_payload() for v in self.clustering],
        }


def _distinct_matches(text: str, rule: PatternRule) -> list[PatternMatch]:
    """Matches in order of position, dropping any that overlap an earlier one."""
    distinct: list[PatternMatch] = []
    cursor = 0
    for match in rule.matches(text):
        if match.start < cursor:
            continue
        distinct.append(match)
        cursor = match.end
    return distinct


def _plan_budget(
    text: str,
    rules: tuple[PatternRule, ...],
    counts: dict[str, int],
    replacement: Callable[[int], str],
    warning: str,
) -> tuple[list[Edit], list[str], list[MotifTally]]:
    """Keep the earliest occurrences each rule can still afford; plan edits for the rest.

    ``counts`` is updated in place with the new cumulative usage.
    """
    edits: list[Edit] = []
    warnings: list[str] = []
    tallies: list[MotifTally] = []
    for rule in rules:
        limit = rule.max_count if rule.max_count is not None else 0
        used = counts.get(rule.name, 0)
        if used > limit:
            raise ValueError(f"Budget state records {used} uses of {rule.name!r}, above its limit of {limit}")

        matches = _distinct_matches(text, rule)
        found = len(matches)
        remaining = limit - used
        excess = matches[remaining:]
        if excess:
            edits.extend((m.start, m.end, replacement(i)) for i, m in enumerate(excess))
            warnings.append(warning.format(name=rule.name, found=found, remaining=remaining, limit=limit))
            logger.warning(f"Trimmed {len(excess)} of {found} '{rule.name}' occurrences (global limit {limit})")

        if found:
            tallies.append(MotifTally(rule.name, found - len(excess), len(excess)))
        counts[rule.name] = used + found - len(excess)
    return edits, warnings, tallies


def _apply_edits(text: str, edits: list[Edit]) -> str:
    pieces: list[str] = []
    cursor = 0
    for start, end, replacement in sorted(edits):
        if start < cursor:
            continue
        pieces.append(text[cursor:start])
        pieces.append(replacement)
        cursor = end
    pieces.append(text[cursor:])
    return "".join(pieces)


def check_motif_clustering(text: str, library: PatternLibrary | None = None) -> list[ClusterViolation]:
    """Warning-only check: props mentioned closer together than their cooldown."""
    lib = library or DEFAULT_LIBRARY
    return find_clustering(text, lib.props)


def enforce_tic_budget(
    text: str,
    state: TicBudgetState | None = None,
    library: PatternLibrary | None = None,
    removal_marker: str = REMOVAL_MARKER,
) -> EnforcementResult:
    """Trim motif and exit-cliché occurrences in one pass to the budget that remains for the document.

    Every rule is counted against the untrimmed pass, so replacement text
    never counts toward another rule's budget.

    Args:
        text: The newest pass.
        state: Usage carried from earlier passes. ``None`` means first pass.
        library: Optional pattern library; its ``motifs`` and ``exit_cliches``
            groups are enforced.
        removal_marker: Replacement for every motif occurrence over budget.
            Exit clichés over budget become plain exits instead, rotating
            through ``ALTERNATIVE_EXITS``.

    Returns:
        EnforcementResult with the trimmed text, the updated state, one
        warning per over-budget rule, per-rule kept/removed tallies, and the
        clustering violations found in the untrimmed pass.

    Raises:
        ValueError: If the state already records more uses of a rule than its
            limit allows.
    """
    lib = library or DEFAULT_LIBRARY
    prior = state or TicBudgetState()
    motif_counts = dict(prior.counts_by_motif)
    exit_counts = dict(prior.counts_by_exit)

    motif_edits, motif_warnings, motif_tallies = _plan_budget(
        text,
        lib.motifs,
        motif_counts,
        lambda _: removal_marker,
        '"{name}" appears {found}x in this pass but only {remaining} more allowed (global limit: {limit})',
    )
    exit_edits, exit_warnings, exit_tallies = _plan_budget(
        text,
        lib.exit_cliches,
        exit_counts,
        lambda i: ALTERNATIVE_EXITS[i % len(ALTERNATIVE_EXITS)],
        'Exit cliché "{name}" appears {found}x but only {remaining} more allowed (global limit: {limit})',
    )

    return EnforcementResult(
        text=_apply_edits(text, motif_edits + exit_edits),
        state=TicBudgetState(counts_by_motif=motif_counts, counts_by_exit=exit_counts),
        warnings=motif_warnings + exit_warnings,
        tallies=motif_tallies + exit_tallies,
        clustering=check_motif_clustering(text, lib),
    )
