from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

from hvacquote.catalog import Catalog
from hvacquote.estimate import Estimate
from hvacquote.models import CatalogEntry, Percentages, ProjectInfo
from hvacquote.pricing_config import MultiplierTable, PricingConfig, load_pricing_config


@pytest.fixture
def multipliers() -> MultiplierTable:
    return MultiplierTable({"Pipe": "0.5", "Duct": "0.6", "Fittings": "0.45"})


@pytest.fixture
def pipe_entry() -> CatalogEntry:
    return CatalogEntry(
        stock_number="PIPE036030",
        description='3" x 60" Galvanized Pipe',
        unit_cost=Decimal("10"),
        unit="ft",
        category="Pipe",
    )


@pytest.fixture
def pricing() -> PricingConfig:
    return load_pricing_config()


@pytest.fixture
def catalog() -> Catalog:
    return Catalog.load()


@pytest.fixture
def small_catalog() -> Catalog:
    frame = pd.DataFrame(
        {
            "stock_number": ["P-100", "D-200", "F-300"],
            "description": ["4in Galvanized Pipe", "Round Duct 6in", "90 Degree Elbow"],
            "unit_cost": ["10.00", "12.00", "4.50"],
            "unit": ["ft", "ft", ""],
            "category": ["Pipe", "Duct", "Fittings"],
        }
    )
    return Catalog(frame, source="fixture")


@pytest.fixture
def estimate(multipliers: MultiplierTable) -> Estimate:
    return Estimate(
        multipliers,
        Percentages(overhead=Decimal("10"), markup=Decimal("40"), discount=Decimal("10"), tax=Decimal("5")),
        project=ProjectInfo(project_name="Basement Reno", customer_name="Pat Lee"),
    )


@pytest.fixture
def job_file(tmp_path: Path) -> Path:
    path = tmp_path / "job.yaml"
    path.write_text(
        """
project:
  project_name: Furnace Swap
  customer_name: Pat Lee
  customer_phone: 555-0100
percentages:
  overhead: 10
  markup: 40
  discount: 10
  tax: 5
materials:
  - stock_number: PIPE036030
    quantity: 20
  - description: Custom plenum
    unit_cost: 50
    category: Duct
    quantity: 1
    multiplier: 0.5
labor:
  - description: Install
    hours: 4
custom:
  - description: Permit fee
    unit_price: 75
""".strip(),
        encoding="utf-8",
    )
    return path
