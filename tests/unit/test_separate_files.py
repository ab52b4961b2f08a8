"""Tests for the separate sessions/messages CSV output."""

from __future__ import annotations

import csv

import pytest

from chatexport.core.cancel import CancellationToken
from chatexport.core.errors import OutputError
from chatexport.projections import CSVFormat, create_separate_csv_files


def read_csv(path):
    with open(path, newline="", encoding="utf-8") as handle:
        return list(csv.reader(handle))


class TestCreateSeparateCSVFiles:
    def test_writes_both_files(self, tmp_path, sessions):
        sessions_csv = tmp_path / "sessions.csv"
        messages_csv = tmp_path / "messages.csv"

        result = create_separate_csv_files(sessions, sessions_csv, messages_csv)

        assert result.format is CSVFormat.SEPARATE_FILES
        assert result.locations == [str(sessions_csv), str(messages_csv)]
        assert result.rows_written == {str(sessions_csv): 3, str(messages_csv): 5}
        assert not result.cancelled

    def test_sessions_file_layout(self, tmp_path, sessions):
        sessions_csv = tmp_path / "sessions.csv"
        create_separate_csv_files(sessions, sessions_csv, tmp_path / "messages.csv")

        rows = read_csv(sessions_csv)
        assert rows[0] == ["id", "topic", "memoryPrompt"]
        assert rows[1] == ["s1", "Greetings", "The user greeted the assistant."]
        assert rows[3] == ["s3", "Quotes, commas", 'Tricky characters, "quoted".']

    def test_messages_file_matches_per_line(self, tmp_path, sessions):
        messages_csv = tmp_path / "messages.csv"
        create_separate_csv_files(sessions, tmp_path / "sessions.csv", messages_csv)

        rows = read_csv(messages_csv)
        assert rows[0] == ["session_id", "message_id", "date", "role", "content", "memoryPrompt"]
        assert [row[1] for row in rows[1:]] == ["m1", "m2", "m3", "m4", "m5"]

    def test_first_file_kept_when_second_fails(self, tmp_path, sessions):
        """No rollback: the sessions file stays when the messages file cannot be written."""
        sessions_csv = tmp_path / "sessions.csv"
        messages_csv = tmp_path / "missing-dir" / "messages.csv"

        with pytest.raises(OutputError) as exc_info:
            create_separate_csv_files(sessions, sessions_csv, messages_csv)

        assert exc_info.value.path == messages_csv
        assert sessions_csv.exists()
        assert len(read_csv(sessions_csv)) == 4

    def test_cancel_skips_messages_file(self, tmp_path, sessions):
        token = CancellationToken()
        token.cancel()
        sessions_csv = tmp_path / "sessions.csv"
        messages_csv = tmp_path / "messages.csv"

        result = create_separate_csv_files(sessions, sessions_csv, messages_csv, cancel=token)

        assert result.cancelled
        assert result.locations == [str(sessions_csv)]
        assert read_csv(sessions_csv) == [["id", "topic", "memoryPrompt"]]
        assert not messages_csv.exists()
