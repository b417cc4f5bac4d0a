# Plain-text rendering of score and gap reports for the terminal.

from __future__ import annotations

from data_designer_screenplay_guard.core import ScoreReport
from data_designer_screenplay_guard.gaps import GapReport
from data_designer_screenplay_guard.hyperparameters import DEFAULT_HYPERPARAMETERS, Hyperparameters

RULE_WIDTH = 60

CATEGORY_TITLES = {
    "structural": "Structural Integrity",
    "prose": "Prose Mechanics",
    "character": "Character Dynamics",
    "behavioral": "Behavioral Control",
    "ai_fingerprint": "AI Fingerprint",
    "uniqueness": "Cross-Project Uniqueness",
}

_FINDING_SECTIONS = (
    ("clinical_phrases", "Clinical Phrases Found"),
    ("on_the_nose_dialogue", "On-the-Nose Dialogue"),
    ("bangers", "Trailer-Speak/Bangers"),
)


def _banner(lines: list[str], title: str, char: str) -> None:
    lines.append("")
    lines.append(char * RULE_WIDTH)
    lines.append(f"  {title}")
    lines.append(char * RULE_WIDTH)


def _category_lines(name: str, details: dict) -> list[str]:
    if name == "prose":
        return [
            f"    - Sentence variance (std. dev.): {details['variance']['std_dev']}",
            f"    - Sensory density: {details['sensory']['total']} refs",
        ]
    if name == "behavioral" and details["issues"]:
        return ["    Issues:"] + [f"      - {issue}" for issue in details["issues"][:5]]
    if name == "ai_fingerprint":
        out = [
            f"    - Clinical phrases: {len(details['clinical'])}",
            f"    - On-the-nose dialogue: {len(details['on_the_nose'])}",
            f"    - Banger/trailer-speak: {len(details['bangers'])}",
            f"    - Mundanity ratio: {details['mundanity_ratio'] * 100:.1f}%",
            f"    - Verbal messiness: {details['messiness']['total']} instances",
        ]
        if details["ai_issues"]:
            out.append(f"    - AI Penalty: -{details['ai_penalty']} points")
            out.append(f"    - AI Issues: {', '.join(details['ai_issues'])}")
        return out
    return []


def render_report(report: ScoreReport, hyperparameters: Hyperparameters | None = None) -> str:
    """Format a ScoreReport the way the ``score`` command prints it."""
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    lines = ["=" * RULE_WIDTH, "  SCREENPLAY GUARD SCORE", "=" * RULE_WIDTH]
    lines.append("")
    lines.append(f"  COMPOSITE SCORE: {report.composite}/10 ({report.tier})")
    lines.append(f"  Word Count: {report.word_count:,}")

    _banner(lines, "CATEGORY BREAKDOWN", "-")
    for name, category in report.categories.items():
        lines.append("")
        lines.append(f"  {CATEGORY_TITLES[name]} ({hp.weights[name]:.0%}): {category.score}/10")
        lines.extend(_category_lines(name, category.details))

    if report.findings is not None:
        _banner(lines, "DETAILED FINDINGS", "-")
        for key, title in _FINDING_SECTIONS:
            found = report.findings[key]
            if found:
                lines.append("")
                lines.append(f"  {title}:")
                lines.extend(f'    - "{phrase}"' for phrase in found[:5])

    lines.append("")
    lines.append("=" * RULE_WIDTH)
    return "\n".join(lines)


def render_gap_report(report: GapReport) -> str:
    lines = ["=" * RULE_WIDTH, "  HUMANITY GAP ANALYSIS", "=" * RULE_WIDTH, ""]
    lines.append(
        f"  Words: {report.word_count:,}  Scenes: {report.scene_count}  Characters: {report.character_count}"
    )
    grouped = report.by_category()
    if not grouped:
        lines.append("")
        lines.append("  No gaps found.")
    for category, issues in grouped.items():
        _banner(lines, f"{category.replace('_', ' ').upper()} ({len(issues)})", "-")
        lines.extend(f"    - {issue}" for issue in issues[:10])
        if len(issues) > 10:
            lines.append(f"    ... and {len(issues) - 10} more")
    lines.append("")
    lines.append("=" * RULE_WIDTH)
    return "\n".join(lines)
