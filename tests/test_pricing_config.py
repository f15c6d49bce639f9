from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest

from hvacquote.errors import ConfigurationError, UnknownCategoryError
from hvacquote.pricing_config import (
    get_pricing_config,
    load_pricing_config,
    pricing_from_dict,
    reload_pricing_config,
)


def _minimal() -> dict:
    return {
        "version": 3,
        "defaults": {"overhead_percent": 10, "markup_percent": 40, "tax_percent": 5, "labor_rate": 80},
        "multipliers": {"Pipe": 0.5, "Duct": 0.6},
    }


def test_packaged_config_loads(pricing) -> None:
    assert pricing.version == "2024.1"
    assert pricing.multipliers["Pipe"] == Decimal("0.55")
    assert pricing.multipliers.multiplier_for("Equipment") == Decimal("0.35")
    assert pricing.labor_rate == Decimal("95")
    assert pricing.defaults.overhead == Decimal("15")
    assert pricing.defaults.markup == Decimal("25")
    assert pricing.defaults.tax == Decimal("5")
    assert pricing.company.city == "Calgary, Alberta"
    assert len(pricing.quote_terms) == 3


def test_json_config_file(tmp_path: Path) -> None:
    path = tmp_path / "pricing.json"
    path.write_text(json.dumps(_minimal()), encoding="utf-8")

    config = load_pricing_config(path)

    assert config.source == path
    assert config.version == "3"
    assert config.multipliers.categories == ("Pipe", "Duct")
    assert config.defaults.discount == 0
    assert config.company.name == "AfterHours HVAC"
    with pytest.raises(UnknownCategoryError):
        config.multipliers.multiplier_for("Equipment")


@pytest.mark.parametrize(
    "mutate",
    [
        lambda raw: raw["multipliers"].update({"Pipe": 1.5}),
        lambda raw: raw["multipliers"].update({"Pipe": 0}),
        lambda raw: raw["defaults"].update({"markup_percent": -5}),
        lambda raw: raw.pop("multipliers"),
        lambda raw: raw.update({"surprise": True}),
    ],
)
def test_schema_violations_raise(mutate) -> None:
    raw = _minimal()
    mutate(raw)
    with pytest.raises(ConfigurationError):
        pricing_from_dict(raw)


def test_schema_error_names_location() -> None:
    raw = _minimal()
    raw["multipliers"]["Duct"] = "cheap"
    with pytest.raises(ConfigurationError, match="multipliers/Duct"):
        pricing_from_dict(raw)


def test_missing_or_unparseable_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_pricing_config(tmp_path / "nope.yaml")

    broken = tmp_path / "broken.yaml"
    broken.write_text("multipliers: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Unable to parse"):
        load_pricing_config(broken)


def test_default_percentage_overrides(pricing) -> None:
    merged = pricing.default_percentages({"markup": "30", "tax": None})
    assert merged.markup == "30"
    assert merged.tax == Decimal("5")

    with pytest.raises(ConfigurationError):
        pricing.default_percentages({"profit": "10"})


def test_cached_config_reload(tmp_path: Path) -> None:
    path = tmp_path / "pricing.json"
    path.write_text(json.dumps(_minimal()), encoding="utf-8")

    first = get_pricing_config(path)
    assert get_pricing_config(path) is first

    raw = _minimal()
    raw["multipliers"]["Pipe"] = 0.4
    path.write_text(json.dumps(raw), encoding="utf-8")

    reloaded = reload_pricing_config(path)
    assert reloaded is not first
    assert reloaded.multipliers["Pipe"] == Decimal("0.4")
    get_pricing_config.cache_clear()
