from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from hvacquote.cli import main, parse_args

ENV_VARS = (
    "HVACQUOTE_PRICING_CONFIG",
    "HVACQUOTE_CATALOG_CSV",
    "HVACQUOTE_OUTPUT_DIR",
    "HVACQUOTE_OVERHEAD_PCT",
    "HVACQUOTE_MARKUP_PCT",
    "HVACQUOTE_DISCOUNT_PCT",
    "HVACQUOTE_TAX_PCT",
    "HVACQUOTE_NO_PDF",
    "HVACQUOTE_VERBOSE",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path):
    monkeypatch.chdir(tmp_path)
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    yield
    # load_dotenv writes straight into os.environ
    for var in ENV_VARS:
        os.environ.pop(var, None)


def test_main_writes_outputs(job_file: Path, tmp_path: Path) -> None:
    out_dir = tmp_path / "cli-out"
    rc = main([str(job_file), "--output-dir", str(out_dir), "--no-pdf"])

    assert rc == 0
    assert (out_dir / "quote.txt").exists()
    assert (out_dir / "quote.xlsx").exists()
    assert (out_dir / "estimate.json").exists()
    assert not (out_dir / "quote.pdf").exists()


def test_main_reads_dotenv(job_file: Path, tmp_path: Path) -> None:
    out_dir = tmp_path / "dotenv-out"
    (tmp_path / ".env").write_text(f"HVACQUOTE_OUTPUT_DIR={out_dir}\nHVACQUOTE_NO_PDF=1\n", encoding="utf-8")

    rc = main([str(job_file)])

    assert rc == 0
    assert (out_dir / "quote.txt").exists()
    assert not (out_dir / "quote.pdf").exists()


def test_validation_errors_exit_with_two(job_file: Path, tmp_path: Path, caplog) -> None:
    with caplog.at_level(logging.ERROR):
        rc = main([str(job_file), "--output-dir", str(tmp_path / "out"), "--markup", "-5"])

    assert rc == 2
    assert "INVALID_PERCENTAGE" in caplog.text


def test_missing_job_exits_with_two(tmp_path: Path) -> None:
    assert main([str(tmp_path / "nope.yaml")]) == 2


def test_search_lists_catalog_matches(caplog) -> None:
    with caplog.at_level(logging.INFO):
        rc = main(["--search", "elbow", "--category", "Fittings"])

    assert rc == 0
    assert "ELB9004RES" in caplog.text
    assert "8 item(s)" in caplog.text


def test_job_required_without_search() -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_args([])
    assert excinfo.value.code == 2
