from __future__ import annotations

import io
import json
import logging

import pytest

from mlutil.cli import build_parser, main
from mlutil.logger import logger


class _RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def log_records():
    handler = _RecordingHandler()
    logger.addHandler(handler)
    yield handler.records
    logger.removeHandler(handler)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("MLUTIL_TOKEN_INTERVAL", "MLUTIL_ON_DECODE_ERROR", "MLUTIL_MODE"):
        monkeypatch.delenv(key, raising=False)


def test_tokenize_command_prints_tokens(capsys):
    assert main(["tokenize", "def fooBar(x)"]) == 0
    assert capsys.readouterr().out == "def foo bar ( x )\n"


def test_tokenize_command_json(capsys):
    assert main(["tokenize", "--json", "__init__(self)"]) == 0
    assert json.loads(capsys.readouterr().out) == ["init", "(", "self", ")"]


def test_tokenize_command_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("x = 12\n"))
    assert main(["tokenize", "--mode", "simple"]) == 0
    assert capsys.readouterr().out == "x NUMBER\n"


def test_corpus_command_writes_output(tmp_path):
    src = tmp_path / "in.py"
    src.write_text("import os\nos.getCwd()\n", encoding="utf-8")
    out = tmp_path / "out.txt"
    assert main(["corpus", str(src), str(out), "--no-progress"]) == 0
    assert out.read_text(encoding="utf-8").splitlines() == [
        "import os",
        "os . get cwd ( )",
    ]


def test_corpus_command_missing_input(tmp_path):
    code = main(
        ["corpus", str(tmp_path / "nope.py"), str(tmp_path / "out"), "--no-progress"]
    )
    assert code == 1


def test_corpus_command_fail_on_decode_error(tmp_path):
    src = tmp_path / "bad.py"
    src.write_bytes(b"\xff\n")
    code = main(
        [
            "corpus",
            str(src),
            str(tmp_path / "out"),
            "--on-decode-error",
            "fail",
            "--no-progress",
        ]
    )
    assert code == 1


def test_corpus_command_rejects_bad_interval(tmp_path):
    src = tmp_path / "in.py"
    src.write_text("a\n", encoding="utf-8")
    code = main(["corpus", str(src), str(tmp_path / "out"), "--interval", "0"])
    assert code == 1


def test_parser_requires_subcommand():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_corpus_command_unwritable_output(tmp_path, log_records):
    src = tmp_path / "in.py"
    src.write_text("a\n", encoding="utf-8")
    out_dir = tmp_path / "outdir"
    out_dir.mkdir()
    code = main(["corpus", str(src), str(out_dir), "--no-progress"])
    assert code == 1
    errors = [r for r in log_records if r.levelno == logging.ERROR]
    assert errors
    assert str(out_dir) in errors[0].getMessage()


def test_corpus_command_logs_missing_input(tmp_path, log_records):
    code = main(
        ["corpus", str(tmp_path / "nope.py"), str(tmp_path / "out"), "--no-progress"]
    )
    assert code == 1
    assert any(
        r.levelno == logging.ERROR and "Input file not found" in r.getMessage()
        for r in log_records
    )
