"""Score many screenplay files and compare them side by side."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from data_designer_screenplay_guard.core import ScoreReport, score_document
from data_designer_screenplay_guard.hyperparameters import Hyperparameters

logger = logging.getLogger(__name__)

SCREENPLAY_SUFFIXES = (".txt", ".fountain")

COLUMNS = [
    "File",
    "Composite",
    "Tier",
    "Structural",
    "Prose",
    "Character",
    "Behavioral",
    "AI_Fingerprint",
    "Uniqueness",
    "Words",
]


@dataclass(frozen=True)
class BatchResult:
    path: Path
    report: ScoreReport


def collect_files(paths: list[str | Path]) -> list[Path]:
    """Expand directories to their screenplay files; plain files are taken as given."""
    files: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(sorted(p for p in path.iterdir() if p.is_file() and p.suffix in SCREENPLAY_SUFFIXES))
        elif path.is_file():
            files.append(path)
        else:
            raise FileNotFoundError(f"No such file or directory: {path}")
    return files


def score_files(paths: list[str | Path], hyperparameters: Hyperparameters | None = None) -> list[BatchResult]:
    """Score each file independently. Unreadable files are logged and skipped."""
    results: list[BatchResult] = []
    files = collect_files(paths)
    logger.info(f"Scoring {len(files)} files")
    for path in files:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error(f"   {path.name}: {exc}")
            continue
        report = score_document(text, hyperparameters=hyperparameters)
        logger.info(f"   {path.name}: {report.composite}/10 ({report.tier})")
        results.append(BatchResult(path, report))
    return results


def results_frame(results: list[BatchResult]) -> pd.DataFrame:
    rows = []
    for result in results:
        cats = result.report.categories
        rows.append({
            "File": result.path.name,
            "Composite": result.report.composite,
            "Tier": result.report.tier,
            "Structural": cats["structural"].score,
            "Prose": cats["prose"].score,
            "Character": cats["character"].score,
            "Behavioral": cats["behavioral"].score,
            "AI_Fingerprint": cats["ai_fingerprint"].score,
            "Uniqueness": cats["uniqueness"].score,
            "Words": result.report.word_count,
        })
    return pd.DataFrame(rows, columns=COLUMNS)


def render_table(results: list[BatchResult]) -> str:
    return results_frame(results).to_string(index=False)


def render_csv(results: list[BatchResult]) -> str:
    return results_frame(results).to_csv(index=False)


def summary_statistics(results: list[BatchResult]) -> dict[str, float]:
    """Average, best and worst composite. Empty input gives zeros with a count of 0."""
    if not results:
        return {"avg": 0.0, "max": 0.0, "min": 0.0, "count": 0}
    composites = results_frame(results)["Composite"]
    return {
        "avg": round(float(composites.mean()), 2),
        "max": float(composites.max()),
        "min": float(composites.min()),
        "count": len(results),
    }
