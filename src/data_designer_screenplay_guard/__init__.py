# SPDX-License-Identifier: Apache-2.0
"""Screenplay Guard: AI-writing detection and enforcement for generated screenplays.

Scores screenplay text across six weighted categories with compiled regex
rules, trims overused motifs across sequential generation passes, and flags
narrative loops between sequences. No LLM calls, no API dependencies.

Also registers a ``screenplay-guard`` column type for NeMo Data Designer
through the ``data_designer.plugins`` entry point.

Usage::

    from data_designer_screenplay_guard import score_document

    report = score_document(screenplay_text)
    print(report.composite, report.tier)
"""

from data_designer_screenplay_guard.core import (
    ScoreReport,
    improvement_suggestions,
    passes_quality_gate,
    quick_score,
    score_document,
)
from data_designer_screenplay_guard.enforcer import TicBudgetState, enforce_tic_budget
from data_designer_screenplay_guard.gaps import analyze_humanity_gaps
from data_designer_screenplay_guard.hyperparameters import DEFAULT_HYPERPARAMETERS, Hyperparameters
from data_designer_screenplay_guard.loops import SequenceSummary, check_loop
from data_designer_screenplay_guard.patterns import DEFAULT_LIBRARY, PatternLibrary

__all__ = [
    "score_document",
    "ScoreReport",
    "quick_score",
    "passes_quality_gate",
    "improvement_suggestions",
    "Hyperparameters",
    "DEFAULT_HYPERPARAMETERS",
    "PatternLibrary",
    "DEFAULT_LIBRARY",
    "enforce_tic_budget",
    "TicBudgetState",
    "check_loop",
    "SequenceSummary",
    "analyze_humanity_gaps",
]
