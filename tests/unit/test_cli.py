"""Unit tests for the ``python -m docflow.cli.process`` command line tool."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from docflow.cli.process import _build_parser, main
from docflow.config.settings import Settings


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the CLI from an empty directory with offline defaults."""
    monkeypatch.chdir(tmp_path)
    for name in Settings.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    return tmp_path


class TestParser:
    def test_process_arguments(self) -> None:
        args = _build_parser().parse_args(
            [
                "process",
                "a.txt",
                "--document-id",
                "doc-7",
                "--chunk-size",
                "500",
                "--chunk-overlap",
                "20",
                "--json",
            ]
        )
        assert args.command == "process"
        assert args.file == "a.txt"
        assert args.document_id == "doc-7"
        assert args.chunk_size == 500
        assert args.chunk_overlap == 20
        assert args.json_output is True

    def test_process_defaults(self) -> None:
        args = _build_parser().parse_args(["process", "a.txt"])
        assert args.document_id is None
        assert args.chunk_size is None
        assert args.chunk_overlap is None
        assert args.json_output is False


class TestCommands:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_types(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["types"])
        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        for file_type in ("pdf", "docx", "xlsx", "image", "text"):
            assert file_type in out
        assert ".xls" in out

    def test_process_text_summary(
        self, cli_env: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = cli_env / "notes.txt"
        path.write_text("alpha beta gamma delta", encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["process", str(path), "--document-id", "doc-1"])

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "notes.txt" in out
        assert "doc-1" in out
        assert "Chunks: 1" in out

    def test_process_json(self, cli_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = cli_env / "words.md"
        path.write_text(" ".join(f"w{i}" for i in range(300)), encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(
                [
                    "process",
                    str(path),
                    "--document-id",
                    "doc-2",
                    "--chunk-size",
                    "100",
                    "--chunk-overlap",
                    "0",
                    "--json",
                ]
            )

        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        # Loggers cached by earlier tests may still write to stdout.
        payload, _ = json.JSONDecoder().raw_decode(out, out.index('{\n  "status"'))
        assert payload["status"]["document_id"] == "doc-2"
        assert payload["status"]["status"] == "completed"
        assert len(payload["content"]["chunks"]) == 4
        assert payload["content"]["metadata"]["file_name"] == "words.md"

    def test_missing_file(self, cli_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["process", str(cli_env / "absent.txt")])
        assert exc_info.value.code == 1
        assert "File not found" in capsys.readouterr().err

    def test_unsupported_file(self, cli_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = cli_env / "data.xyz"
        path.write_bytes(b"\x00\x01")
        with pytest.raises(SystemExit) as exc_info:
            main(["process", str(path)])
        assert exc_info.value.code == 1
        assert "Unsupported file type" in capsys.readouterr().err

    def test_invalid_chunk_options(
        self, cli_env: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = cli_env / "notes.txt"
        path.write_text("alpha", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main(["process", str(path), "--chunk-size", "10", "--chunk-overlap", "10"])
        assert exc_info.value.code == 1
        assert "chunk_overlap" in capsys.readouterr().err
