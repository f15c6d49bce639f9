"""Estimate computation engine for HVAC material and labor quotes."""

from .catalog import Catalog
from .errors import (
    CatalogError,
    ConfigurationError,
    ErrorKind,
    EstimateError,
    StaleEstimateError,
)
from .estimate import Estimate, RecomputeState
from .models import CatalogEntry, CustomItem, EstimateTotals, LaborItem, LineItem, Percentages, ProjectInfo
from .pricing_config import MultiplierTable, PricingConfig, get_pricing_config, load_pricing_config

__all__ = [
    "Catalog",
    "CatalogEntry",
    "CatalogError",
    "ConfigurationError",
    "CustomItem",
    "ErrorKind",
    "Estimate",
    "EstimateError",
    "EstimateTotals",
    "LaborItem",
    "LineItem",
    "MultiplierTable",
    "Percentages",
    "PricingConfig",
    "ProjectInfo",
    "RecomputeState",
    "StaleEstimateError",
    "get_pricing_config",
    "load_pricing_config",
]
