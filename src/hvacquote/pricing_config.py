"""Pricing configuration: category multipliers, default percentages and quote terms.

The configuration is read once, validated against a JSON schema, and then
treated as immutable for the life of the process. Engine objects receive the
:class:`MultiplierTable` explicitly instead of reaching for module state.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import yaml
from jsonschema import Draft7Validator

from .errors import ConfigurationError, InvalidMultiplierError, UnknownCategoryError
from .models import Percentages, to_decimal

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_PRICING_PATH = DATA_DIR / "pricing.yaml"
SCHEMA_PATH = DATA_DIR / "pricing.schema.json"

ONE = Decimal("1")

logger = logging.getLogger(__name__)


def validate_multiplier(value: object, field_name: str = "multiplier") -> Decimal:
    """Return ``value`` as a Decimal in ``(0, 1]`` or raise :class:`InvalidMultiplierError`."""
    multiplier = to_decimal(value)
    if multiplier is None or multiplier <= 0 or multiplier > ONE:
        raise InvalidMultiplierError(value, field=field_name)
    return multiplier


class MultiplierTable(Mapping[str, Decimal]):
    """Read-only ``category -> multiplier`` mapping.

    The set of categories is closed once the table is built; lookups for any
    other category raise :class:`UnknownCategoryError`.
    """

    def __init__(self, rates: Mapping[str, object]):
        cleaned: Dict[str, Decimal] = {}
        for category, raw in rates.items():
            name = str(category).strip()
            if not name:
                raise ConfigurationError("Multiplier table contains a blank category name")
            try:
                cleaned[name] = validate_multiplier(raw, field_name=name)
            except InvalidMultiplierError as exc:
                raise ConfigurationError(f"Invalid multiplier for category {name!r}: {raw!r}") from exc
        self._rates = MappingProxyType(cleaned)

    def __getitem__(self, category: str) -> Decimal:
        return self._rates[category]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rates)

    def __len__(self) -> int:
        return len(self._rates)

    def __repr__(self) -> str:
        return f"MultiplierTable({dict(self._rates)!r})"

    def multiplier_for(self, category: str) -> Decimal:
        try:
            return self._rates[str(category).strip()]
        except KeyError:
            raise UnknownCategoryError(category, field="category") from None

    @property
    def categories(self) -> Tuple[str, ...]:
        return tuple(self._rates)


@dataclass(frozen=True)
class CompanyInfo:
    name: str = "AfterHours HVAC"
    city: str = ""
    phone: str = ""


@dataclass(frozen=True)
class PricingConfig:
    """Validated contents of a pricing configuration file."""

    multipliers: MultiplierTable
    defaults: Percentages
    labor_rate: Decimal
    company: CompanyInfo = field(default_factory=CompanyInfo)
    quote_terms: Tuple[str, ...] = ()
    version: str = "unknown"
    source: Optional[Path] = None

    def default_percentages(self, overrides: Optional[Mapping[str, object]] = None) -> Percentages:
        """Return the configured percentages with any non-``None`` overrides applied.

        Override keys are the :class:`Percentages` field names. Negative or
        non-numeric overrides are left for the estimate to reject.
        """
        values = self.defaults.as_dict()
        for key, raw in (overrides or {}).items():
            if raw is None:
                continue
            if key not in values:
                raise ConfigurationError(f"Unknown percentage override: {key}")
            values[key] = raw
        return Percentages(**values)


def _schema_validator() -> Draft7Validator:
    with SCHEMA_PATH.open("r", encoding="utf-8") as f:
        schema = json.load(f)
    return Draft7Validator(schema)


def _read_raw(path: Path) -> dict:
    if not path.exists():
        raise ConfigurationError(f"Pricing config not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        try:
            if path.suffix.lower() in {".yaml", ".yml"}:
                raw = yaml.safe_load(f)
            else:
                raw = json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Unable to parse pricing config {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Pricing config {path} must contain a mapping")
    return raw


def pricing_from_dict(raw: Mapping[str, object], source: Optional[Path] = None) -> PricingConfig:
    """Validate ``raw`` against the pricing schema and build a :class:`PricingConfig`."""
    errors: List[str] = []
    for error in sorted(_schema_validator().iter_errors(dict(raw)), key=lambda e: list(e.path)):
        location = "/".join(str(part) for part in error.path) or "<root>"
        errors.append(f"{location}: {error.message}")
    if errors:
        raise ConfigurationError("Invalid pricing config: " + "; ".join(errors))

    defaults = raw.get("defaults") or {}
    percentages = Percentages(
        overhead=to_decimal(defaults.get("overhead_percent", 0)),
        markup=to_decimal(defaults.get("markup_percent", 0)),
        discount=to_decimal(defaults.get("discount_percent", 0)),
        tax=to_decimal(defaults.get("tax_percent", 0)),
    )
    company_raw = raw.get("company") or {}
    company = CompanyInfo(**company_raw) if company_raw else CompanyInfo()

    return PricingConfig(
        multipliers=MultiplierTable(raw["multipliers"]),
        defaults=percentages,
        labor_rate=to_decimal(defaults.get("labor_rate", 0)),
        company=company,
        quote_terms=tuple(raw.get("quote_terms") or ()),
        version=str(raw.get("version", "unknown")),
        source=source,
    )


def load_pricing_config(path: Optional[Path] = None) -> PricingConfig:
    """Load and validate pricing configuration from a YAML or JSON file."""
    config_path = Path(path) if path else DEFAULT_PRICING_PATH
    config = pricing_from_dict(_read_raw(config_path), source=config_path)
    logger.info(
        "Loaded pricing config %s (version %s, %d categories)",
        config_path,
        config.version,
        len(config.multipliers),
    )
    return config


@lru_cache(maxsize=None)
def get_pricing_config(path: Optional[Path] = None) -> PricingConfig:
    """Process-wide pricing config; loaded on first use and reused afterwards."""
    return load_pricing_config(path)


def reload_pricing_config(path: Optional[Path] = None) -> PricingConfig:
    """Drop the cached config and read it again from disk."""
    get_pricing_config.cache_clear()
    return get_pricing_config(path)


__all__ = [
    "DEFAULT_PRICING_PATH",
    "MultiplierTable",
    "CompanyInfo",
    "PricingConfig",
    "validate_multiplier",
    "pricing_from_dict",
    "load_pricing_config",
    "get_pricing_config",
    "reload_pricing_config",
]
