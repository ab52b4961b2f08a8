"""Tests for the chatexport command-line commands."""

from __future__ import annotations

import csv
import json

import pytest
from click.testing import CliRunner

from chatexport.cli.main import main


def read_rows(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestCLIBasic:
    def setup_method(self):
        self.runner = CliRunner()

    def test_help(self):
        result = self.runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for name in ("csv", "separate", "dataset", "repair", "interactive"):
            assert name in result.output

    def test_csv_help(self):
        result = self.runner.invoke(main, ["csv", "--help"])
        assert result.exit_code == 0
        assert "--format" in result.output
        assert "--output" in result.output

    def test_missing_input(self, tmp_path):
        result = self.runner.invoke(main, ["csv", str(tmp_path / "nope.json"), "-o", "out.csv"])
        assert result.exit_code != 0


class TestCSVCommand:
    def setup_method(self):
        self.runner = CliRunner()

    def test_inline_default(self, export_file, tmp_path):
        out = tmp_path / "out.csv"
        result = self.runner.invoke(main, ["csv", str(export_file), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert "Saved" in result.output
        rows = read_rows(out)
        assert rows[0] == ["id", "topic", "memoryPrompt", "messages"]
        assert [row[0] for row in rows[1:]] == ["s1", "s2", "s3"]

    def test_per_line_by_name(self, export_file, tmp_path):
        out = tmp_path / "out.csv"
        result = self.runner.invoke(main, ["csv", str(export_file), "-f", "per-line", "-o", str(out)])
        assert result.exit_code == 0, result.output
        rows = read_rows(out)
        assert len(rows) == 1 + 5
        assert rows[4][4] == "line one\nline two"

    def test_json_embed(self, export_file, tmp_path):
        out = tmp_path / "out.csv"
        result = self.runner.invoke(main, ["csv", str(export_file), "-f", "3", "-o", str(out)])
        assert result.exit_code == 0, result.output
        rows = read_rows(out)
        assert json.loads(rows[2][3]) == []
        assert len(json.loads(rows[3][3])) == 3

    def test_separate_format_rejected(self, export_file, tmp_path):
        out = tmp_path / "out.csv"
        result = self.runner.invoke(main, ["csv", str(export_file), "-f", "4", "-o", str(out)])
        assert result.exit_code == 1
        assert "separate" in result.output
        assert not out.exists()

    def test_invalid_format(self, export_file, tmp_path):
        out = tmp_path / "out.csv"
        result = self.runner.invoke(main, ["csv", str(export_file), "-f", "9", "-o", str(out)])
        assert result.exit_code == 1
        assert "Invalid CSV format option" in result.output
        assert not out.exists()

    def test_malformed_input(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        result = self.runner.invoke(main, ["csv", str(bad), "-o", str(tmp_path / "out.csv")])
        assert result.exit_code == 1
        assert "Error reading or parsing" in result.output

    def test_wrong_shape(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text('{"sessions": []}')
        result = self.runner.invoke(main, ["csv", str(bad), "-o", str(tmp_path / "out.csv")])
        assert result.exit_code == 1

    def test_overwrite_declined(self, export_file, tmp_path):
        out = tmp_path / "out.csv"
        out.write_text("keep me")
        result = self.runner.invoke(main, ["csv", str(export_file), "-o", str(out)], input="n\n")
        assert result.exit_code == 0
        assert "Aborted" in result.output
        assert out.read_text() == "keep me"

    def test_overwrite_with_yes(self, export_file, tmp_path):
        out = tmp_path / "out.csv"
        out.write_text("replace me")
        result = self.runner.invoke(main, ["csv", str(export_file), "-o", str(out), "-y"])
        assert result.exit_code == 0, result.output
        assert read_rows(out)[0][0] == "id"

    def test_log_dir_writes_events(self, export_file, tmp_path):
        logs = tmp_path / "logs"
        out = tmp_path / "out.csv"
        result = self.runner.invoke(
            main, ["--log-dir", str(logs), "csv", str(export_file), "-o", str(out)]
        )
        assert result.exit_code == 0, result.output
        log_files = list(logs.glob("*.jsonl"))
        assert len(log_files) == 1
        events = [json.loads(line) for line in log_files[0].read_text().splitlines()]
        assert events[0]["event"] == "export_start"
        assert events[-1]["event"] == "export_finish"

    def test_verbose_progress(self, export_file, tmp_path):
        out = tmp_path / "out.csv"
        result = self.runner.invoke(main, ["-v", "csv", str(export_file), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert "Writing" in result.output


class TestSeparateCommand:
    def setup_method(self):
        self.runner = CliRunner()

    def test_writes_both_files(self, export_file, tmp_path):
        sessions_csv = tmp_path / "sessions.csv"
        messages_csv = tmp_path / "messages.csv"
        result = self.runner.invoke(
            main,
            ["separate", str(export_file), "--sessions", str(sessions_csv), "--messages", str(messages_csv)],
        )
        assert result.exit_code == 0, result.output
        assert read_rows(sessions_csv)[0] == ["id", "topic", "memoryPrompt"]
        assert len(read_rows(sessions_csv)) == 4
        messages = read_rows(messages_csv)
        assert messages[0] == ["session_id", "message_id", "date", "role", "content", "memoryPrompt"]
        assert len(messages) == 6


class TestDatasetCommand:
    def setup_method(self):
        self.runner = CliRunner()

    def test_stdout(self, export_file):
        result = self.runner.invoke(main, ["dataset", str(export_file)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [s["id"] for s in data["dataset"]] == ["s1", "s2", "s3"]

    def test_json_suffix_appended(self, export_file, tmp_path):
        result = self.runner.invoke(main, ["dataset", str(export_file), "-o", str(tmp_path / "data")])
        assert result.exit_code == 0, result.output
        saved = tmp_path / "data.json"
        assert json.loads(saved.read_text(encoding="utf-8"))["dataset"][2]["mask"]["name"] == "Résumé bot"

    def test_existing_suffix_kept(self, export_file, tmp_path):
        result = self.runner.invoke(main, ["dataset", str(export_file), "-o", str(tmp_path / "data.json")])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "data.json").exists()
        assert not (tmp_path / "data.json.json").exists()


class TestRepairCommand:
    def setup_method(self):
        self.runner = CliRunner()

    def test_default_output_path(self, export_file, tmp_path):
        original = export_file.read_bytes()
        result = self.runner.invoke(main, ["repair", str(export_file)])
        assert result.exit_code == 0, result.output
        assert "1 sessions patched" in result.output
        repaired = tmp_path / "repaired_chat-sessions.json"
        tree = json.loads(repaired.read_text(encoding="utf-8"))
        model_config = tree["chat-next-web-store"]["sessions"][0]["mask"]["modelConfig"]
        assert "systemprompt" in model_config
        assert export_file.read_bytes() == original

    def test_explicit_output(self, export_file, tmp_path):
        out = tmp_path / "fixed.json"
        result = self.runner.invoke(main, ["repair", str(export_file), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert out.exists()

    def test_prefix_from_environment(self, export_file, tmp_path, monkeypatch):
        monkeypatch.setenv("CHATEXPORT_REPAIRED_PREFIX", "fixed_")
        result = self.runner.invoke(main, ["repair", str(export_file)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "fixed_chat-sessions.json").exists()

    def test_check_reports_without_writing(self, export_file, tmp_path):
        result = self.runner.invoke(main, ["repair", "--check", str(export_file)])
        assert result.exit_code == 1
        assert "Sessions needing repair" in result.output
        assert not (tmp_path / "repaired_chat-sessions.json").exists()

    def test_check_clean_after_repair(self, export_file, tmp_path):
        self.runner.invoke(main, ["repair", str(export_file)])
        result = self.runner.invoke(main, ["repair", "--check", str(tmp_path / "repaired_chat-sessions.json")])
        assert result.exit_code == 0

    def test_malformed_input(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("[1, 2")
        result = self.runner.invoke(main, ["repair", str(bad)])
        assert result.exit_code == 1
        assert "Error repairing" in result.output


class TestEncodingSetting:
    """CHATEXPORT_ENCODING applies to the export read and every file written."""

    def setup_method(self):
        self.runner = CliRunner()

    @pytest.fixture
    def latin1_export(self, tmp_path, store_dict, monkeypatch):
        monkeypatch.setenv("CHATEXPORT_ENCODING", "latin-1")
        path = tmp_path / "latin.json"
        path.write_text(json.dumps(store_dict, ensure_ascii=False), encoding="latin-1")
        return path

    def test_csv(self, latin1_export, tmp_path):
        out = tmp_path / "out.csv"
        result = self.runner.invoke(main, ["csv", str(latin1_export), "-f", "2", "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert "merci \xe0 vous".encode("latin-1") in out.read_bytes()
        with open(out, newline="", encoding="latin-1") as f:
            assert "merci à vous" in [row[4] for row in csv.reader(f)]

    def test_separate(self, latin1_export, tmp_path):
        sessions_csv = tmp_path / "sessions.csv"
        messages_csv = tmp_path / "messages.csv"
        result = self.runner.invoke(
            main,
            ["separate", str(latin1_export), "--sessions", str(sessions_csv), "--messages", str(messages_csv)],
        )
        assert result.exit_code == 0, result.output
        assert "merci à vous" in messages_csv.read_text(encoding="latin-1")

    def test_dataset(self, latin1_export, tmp_path):
        out = tmp_path / "data.json"
        result = self.runner.invoke(main, ["dataset", str(latin1_export), "-o", str(out)])
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="latin-1"))
        assert data["dataset"][2]["mask"]["name"] == "Résumé bot"

    def test_repair(self, latin1_export, tmp_path):
        result = self.runner.invoke(main, ["repair", str(latin1_export)])
        assert result.exit_code == 0, result.output
        repaired = tmp_path / "repaired_latin.json"
        assert "Résumé bot" in repaired.read_text(encoding="latin-1")

    def test_default_utf8_rejects_latin1_input(self, tmp_path, store_dict):
        path = tmp_path / "latin.json"
        path.write_text(json.dumps(store_dict, ensure_ascii=False), encoding="latin-1")
        result = self.runner.invoke(main, ["csv", str(path), "-o", str(tmp_path / "out.csv")])
        assert result.exit_code == 1
        assert "Error reading or parsing" in result.output

    def test_unencodable_output_fails_cleanly(self, tmp_path, store_dict, monkeypatch):
        monkeypatch.setenv("CHATEXPORT_ENCODING", "ascii")
        # non-ASCII text stays in \u escapes, so only the output side fails
        path = tmp_path / "ascii.json"
        path.write_text(json.dumps(store_dict), encoding="ascii")
        result = self.runner.invoke(main, ["csv", str(path), "-f", "2", "-o", str(tmp_path / "out.csv")])
        assert result.exit_code == 1
        assert "Failed to convert sessions to CSV" in result.output


class TestLoneSurrogateInput:
    def setup_method(self):
        self.runner = CliRunner()

    def test_csv_and_repair_succeed(self, tmp_path, lone_surrogate_json):
        path = tmp_path / "chat.json"
        path.write_text(lone_surrogate_json, encoding="utf-8")
        out = tmp_path / "out.csv"
        result = self.runner.invoke(main, ["csv", str(path), "-f", "2", "-o", str(out)])
        assert result.exit_code == 0, result.output
        result = self.runner.invoke(main, ["repair", str(path)])
        assert result.exit_code == 0, result.output
        assert "\ufffd" in (tmp_path / "repaired_chat.json").read_text(encoding="utf-8")
