from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import NoReturn

import typer

from data_designer_screenplay_guard.batch import render_csv, render_table, score_files, summary_statistics
from data_designer_screenplay_guard.core import score_document
from data_designer_screenplay_guard.enforcer import TicBudgetState, enforce_tic_budget
from data_designer_screenplay_guard.gaps import analyze_humanity_gaps
from data_designer_screenplay_guard.loops import SequenceSummary, check_loop
from data_designer_screenplay_guard.report import render_gap_report, render_report

app = typer.Typer(help="Screenplay Guard: score screenplays for AI-sounding writing")


def read_text(path: Path) -> str:
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


def load_summaries(path: Path) -> list[SequenceSummary]:
    """Read ``[{"sequence_number": 1, "summary": "...", "sluglines": [...]}, ...]``."""
    entries = json.loads(read_text(path))
    if not isinstance(entries, list):
        raise ValueError(f"Expected a JSON list of sequence summaries in {path}")
    summaries = []
    for entry in entries:
        try:
            summaries.append(
                SequenceSummary.from_text(
                    entry["sequence_number"],
                    entry.get("summary", ""),
                    entry.get("sluglines"),
                )
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"Malformed sequence summary in {path}: {entry!r}") from exc
    return summaries


def fail(exc: Exception) -> NoReturn:
    typer.secho(str(exc), fg=typer.colors.RED)
    raise typer.Exit(code=1) from exc


@app.callback()
def configure(
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
) -> None:
    """Screenplay Guard: score screenplays for AI-sounding writing."""
    logging.basicConfig(level=log_level.upper(), format="%(levelname)s %(name)s: %(message)s")


@app.command("score")
def score(
    file: Path = typer.Argument(..., help="Screenplay file"),
    verbose: bool = typer.Option(False, "--verbose", help="Show detailed findings"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON instead of a formatted report"),
) -> None:
    """Score one screenplay."""
    try:
        text = read_text(file)
    except (FileNotFoundError, UnicodeDecodeError) as exc:
        fail(exc)

    report = score_document(text, verbose=verbose)
    if json_output:
        typer.echo(json.dumps(report.to_payload(), indent=2))
    else:
        typer.echo(render_report(report))


@app.command("batch")
def batch(
    paths: list[Path] = typer.Argument(..., help="Files or directories of .txt/.fountain screenplays"),
    csv_output: bool = typer.Option(False, "--csv", help="Output as CSV"),
) -> None:
    """Score many screenplays and print a comparison table."""
    try:
        results = score_files(paths)
    except FileNotFoundError as exc:
        fail(exc)

    if not results:
        typer.secho("No screenplay files found.", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    typer.echo(render_csv(results) if csv_output else render_table(results))
    if len(results) > 1:
        stats = summary_statistics(results)
        typer.echo(
            f"Statistics: Avg={stats['avg']:.2f} | Max={stats['max']} | Min={stats['min']} | Count={stats['count']}"
        )


@app.command("enforce")
def enforce(
    file: Path = typer.Argument(..., help="Newest generation pass"),
    state: Path | None = typer.Option(None, "--state", help="Budget state JSON from earlier passes"),
    state_out: Path | None = typer.Option(None, "--state-out", help="Where to write the updated state"),
    output: Path | None = typer.Option(None, "--output", help="Where to write the trimmed text"),
    json_output: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
) -> None:
    """Trim motif overuse in one pass against the document's running budget."""
    try:
        text = read_text(file)
        prior = TicBudgetState.model_validate_json(read_text(state)) if state else None
        result = enforce_tic_budget(text, prior)
    except (FileNotFoundError, ValueError) as exc:
        fail(exc)

    if state_out:
        state_out.write_text(result.state.model_dump_json(indent=2) + "\n")
    if output:
        output.write_text(result.text)

    if json_output:
        typer.echo(json.dumps(result.to_payload(), indent=2))
        return

    for warning in result.warnings:
        typer.secho(warning, fg=typer.colors.YELLOW)
    for violation in result.clustering:
        typer.secho(violation.describe(), fg=typer.colors.YELLOW)
    if output:
        removed = sum(t.removed for t in result.tallies)
        typer.secho(f"Wrote {output} ({removed} occurrences removed)", fg=typer.colors.GREEN)
    else:
        typer.echo(result.text)


@app.command("loop-check")
def loop_check(
    file: Path = typer.Argument(..., help="New sequence text"),
    sequence: int = typer.Option(..., "--sequence", min=1, help="Sequence number of the new text"),
    summaries: Path | None = typer.Option(None, "--summaries", help="JSON list of prior sequence summaries"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Check a new sequence for narrative loops and story resets."""
    try:
        text = read_text(file)
        history = load_summaries(summaries) if summaries else []
    except (FileNotFoundError, ValueError) as exc:
        fail(exc)

    result = check_loop(text, sequence, history)
    if json_output:
        typer.echo(json.dumps(result.to_payload(), indent=2))
        return

    similarity = result.similarity
    color = typer.colors.RED if similarity.is_loop else typer.colors.GREEN
    typer.secho(f"Loop score: {similarity.score} ({'LOOP' if similarity.is_loop else 'ok'})", fg=color)
    for beat in similarity.repeated_beats:
        typer.echo(f"  - {beat}")
    for issue in result.continuity.issues:
        typer.secho(f"  - {issue}", fg=typer.colors.YELLOW)


@app.command("gaps")
def gaps(
    file: Path = typer.Argument(..., help="Screenplay file"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Deep humanity-gap analysis."""
    try:
        text = read_text(file)
    except (FileNotFoundError, UnicodeDecodeError) as exc:
        fail(exc)

    report = analyze_humanity_gaps(text)
    if json_output:
        typer.echo(json.dumps(report.to_payload(), indent=2))
    else:
        typer.echo(render_gap_report(report))


def main():
    app()


if __name__ == "__main__":
    main()
