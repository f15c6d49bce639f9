from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest

from hvacquote.api import ARTIFACT_NAMES, QuoteOptions, build_estimate, load_job, quote
from hvacquote.errors import ConfigurationError, InvalidQuantityError


def test_build_estimate_from_job(job_file: Path, pricing, catalog) -> None:
    estimate = build_estimate(load_job(job_file), pricing, catalog)

    pipe, plenum = estimate.line_items
    assert pipe.stock_number == "PIPE036030"
    assert pipe.resolved_unit_price == Decimal("5.8")
    assert plenum.multiplier_source == "override"
    assert plenum.resolved_unit_price == Decimal("100")
    assert estimate.labor_items[0].rate == pricing.labor_rate
    assert estimate.project.project_name == "Furnace Swap"

    assert pipe.labor_hours == Decimal("0.1")

    totals = estimate.totals
    # 20 ft at 0.1 install hours each, charged at the configured 95/hr
    assert totals.material_labor_hours == Decimal("2")
    assert totals.labor_subtotal == Decimal("570")
    assert totals.subtotal == Decimal("861")
    assert totals.total == Decimal("1253.0133")


def test_explicit_percentages_beat_job_file(job_file: Path, pricing, catalog) -> None:
    estimate = build_estimate(load_job(job_file), pricing, catalog, {"tax": "0", "markup": None})

    assert estimate.percentages.tax == Decimal("0")
    assert estimate.percentages.markup == Decimal("40")
    assert estimate.total == Decimal("1193.346")


def test_job_without_percentages_uses_config_defaults(pricing, catalog) -> None:
    job = {"custom": [{"description": "Service call", "unit_price": 100}]}
    estimate = build_estimate(job, pricing, catalog)

    assert estimate.percentages.overhead == Decimal("15")
    assert estimate.percentages.markup == Decimal("25")


def test_job_rows_override_install_hours(pricing, catalog) -> None:
    job = {
        "materials": [
            {"stock_number": "PIPE036030", "quantity": 20, "labor_hours": 0},
            {"description": "Furnace", "unit_cost": 1400, "category": "Equipment", "labor_hours": "6"},
        ]
    }
    estimate = build_estimate(job, pricing, catalog)
    pipe, furnace = estimate.line_items

    assert pipe.total_labor_hours == 0
    assert furnace.labor_hours == Decimal("6")
    assert estimate.totals.material_labor_hours == Decimal("6")
    assert estimate.totals.labor_subtotal == Decimal("570")


def test_invalid_job_rows(pricing, catalog) -> None:
    with pytest.raises(ConfigurationError):
        build_estimate({"materials": [{"description": "Mystery", "unit_cost": 5}]}, pricing, catalog)
    with pytest.raises(ConfigurationError):
        build_estimate({"materials": {"stock_number": "PIPE036030"}}, pricing, catalog)
    with pytest.raises(ConfigurationError):
        build_estimate({"project": {"budget": 10}}, pricing, catalog)
    with pytest.raises(InvalidQuantityError):
        build_estimate({"materials": [{"stock_number": "PIPE036030", "quantity": -2}]}, pricing, catalog)


def test_load_job_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_job(tmp_path / "missing.json")

    listing = tmp_path / "job.json"
    listing.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
    with pytest.raises(ConfigurationError, match="mapping"):
        load_job(listing)


def test_quote_writes_all_artifacts(job_file: Path, tmp_path: Path) -> None:
    out_dir = tmp_path / "out"
    artifacts = quote(QuoteOptions(job=job_file, output_dir=out_dir))

    assert set(artifacts) == {"text", "pdf", "xlsx", "json"}
    for key, path in artifacts.items():
        assert path == out_dir.resolve() / ARTIFACT_NAMES[key]
        assert path.exists()

    payload = json.loads(artifacts["json"].read_text(encoding="utf-8"))
    assert payload["totals"]["total"] == "1253.0133"
    assert payload["labor_hours"] == "6"
    assert "TOTAL: $1,253.01" in artifacts["text"].read_text(encoding="utf-8")


def test_quote_respects_overrides_and_no_pdf(job_file: Path, tmp_path: Path) -> None:
    artifacts = quote(QuoteOptions(job=job_file, output_dir=tmp_path / "out", tax="0", write_pdf=False))

    assert "pdf" not in artifacts
    payload = json.loads(artifacts["json"].read_text(encoding="utf-8"))
    assert payload["percentages"]["tax"] == "0"
    assert payload["totals"]["total"] == "1193.346"
