import json

from typer.testing import CliRunner

from data_designer_screenplay_guard.cli import app

runner = CliRunner()

SEGMENT = (
    "INT. KITCHEN - NIGHT\n"
    "Margaret scrubs the enormous skillet while Bernard rehearses apologies.\n"
)


class TestScoreCommand:
    def test_missing_file_exits_with_error(self, tmp_path):
        result = runner.invoke(app, ["score", str(tmp_path / "missing.txt")])
        assert result.exit_code == 1
        assert "File not found" in result.output

    def test_json_output(self, tmp_path, clean_prose):
        path = tmp_path / "script.txt"
        path.write_text(clean_prose)
        result = runner.invoke(app, ["score", str(path), "--json"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["composite"] == 9.8
        assert payload["tier"] == "S-Tier"
        assert "findings" not in payload

    def test_text_report(self, tmp_path):
        path = tmp_path / "script.txt"
        path.write_text("Affirmative. The truth is, I need you to understand.")
        result = runner.invoke(app, ["score", str(path), "--verbose"])
        assert result.exit_code == 0
        assert "COMPOSITE SCORE:" in result.output
        assert "DETAILED FINDINGS" in result.output
        assert '"Affirmative"' in result.output


class TestBatchCommand:
    def test_csv(self, tmp_path, clean_prose, robotic_prose):
        (tmp_path / "one.txt").write_text(clean_prose)
        (tmp_path / "two.txt").write_text(robotic_prose)
        result = runner.invoke(app, ["batch", str(tmp_path), "--csv"])
        assert result.exit_code == 0
        assert "File,Composite,Tier" in result.output
        assert "Count=2" in result.output

    def test_empty_directory(self, tmp_path):
        result = runner.invoke(app, ["batch", str(tmp_path)])
        assert result.exit_code == 1
        assert "No screenplay files found." in result.output

    def test_missing_path(self, tmp_path):
        result = runner.invoke(app, ["batch", str(tmp_path / "nope")])
        assert result.exit_code == 1


class TestEnforceCommand:
    def test_state_threads_between_runs(self, tmp_path, watch_pass):
        source = tmp_path / "pass1.txt"
        source.write_text(watch_pass)
        state = tmp_path / "state.json"
        cleaned = tmp_path / "pass1.clean.txt"

        result = runner.invoke(
            app, ["enforce", str(source), "--state-out", str(state), "--output", str(cleaned)]
        )
        assert result.exit_code == 0
        saved = json.loads(state.read_text())
        assert saved["counts_by_motif"] == {"watch": 4, "gun": 0, "cigarette": 0}
        assert set(saved["counts_by_exit"].values()) == {0}
        assert cleaned.read_text().count("[REMOVED]") == 6

        result = runner.invoke(app, ["enforce", str(source), "--state", str(state), "--json"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["tallies"] == [{"motif": "watch", "kept": 0, "removed": 10}]

    def test_malformed_state(self, tmp_path, watch_pass):
        source = tmp_path / "pass.txt"
        source.write_text(watch_pass)
        state = tmp_path / "state.json"
        state.write_text('{"counts_by_motif": {"watch": -2}}')
        result = runner.invoke(app, ["enforce", str(source), "--state", str(state)])
        assert result.exit_code == 1

    def test_state_above_cap(self, tmp_path, watch_pass):
        source = tmp_path / "pass.txt"
        source.write_text(watch_pass)
        state = tmp_path / "state.json"
        state.write_text('{"counts_by_motif": {"watch": 9}}')
        result = runner.invoke(app, ["enforce", str(source), "--state", str(state)])
        assert result.exit_code == 1
        assert "above its limit" in result.stdout


class TestLoopCheckCommand:
    def test_loop_detected(self, tmp_path):
        source = tmp_path / "seq2.txt"
        source.write_text(SEGMENT)
        summaries = tmp_path / "summaries.json"
        summaries.write_text(json.dumps([{"sequence_number": 1, "summary": SEGMENT}]))
        result = runner.invoke(
            app, ["loop-check", str(source), "--sequence", "2", "--summaries", str(summaries), "--json"]
        )
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["similarity"]["is_loop"] is True

    def test_malformed_summaries(self, tmp_path):
        source = tmp_path / "seq2.txt"
        source.write_text(SEGMENT)
        summaries = tmp_path / "summaries.json"
        summaries.write_text(json.dumps([{"summary": SEGMENT}]))
        result = runner.invoke(app, ["loop-check", str(source), "--sequence", "2", "--summaries", str(summaries)])
        assert result.exit_code == 1


class TestGapsCommand:
    def test_json_output(self, tmp_path):
        path = tmp_path / "script.txt"
        path.write_text("INT. ROOM - DAY\nA chair.\n")
        result = runner.invoke(app, ["gaps", str(path), "--json"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["scene_count"] == 1
        assert {"category": "scene_pacing", "issue": "Too few scenes for pacing analysis"} in payload["issues"]

    def test_text_report(self, tmp_path):
        path = tmp_path / "script.txt"
        path.write_text("INT. ROOM - DAY\nA chair.\n")
        result = runner.invoke(app, ["gaps", str(path)])
        assert result.exit_code == 0
        assert "HUMANITY GAP ANALYSIS" in result.output
