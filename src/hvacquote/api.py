from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .catalog import Catalog
from .config import PERCENT_ENV_VARS, Config, load_config
from .errors import ConfigurationError
from .estimate import Estimate
from .export import write_payload, write_pdf, write_text, write_workbook
from .models import CatalogEntry, ProjectInfo, to_decimal
from .pricing_config import PricingConfig, load_pricing_config

ARTIFACT_NAMES = {
    "text": "quote.txt",
    "pdf": "quote.pdf",
    "xlsx": "quote.xlsx",
    "json": "estimate.json",
}

logger = logging.getLogger(__name__)


@dataclass
class QuoteOptions:
    job: Path
    pricing_config: Optional[Path] = None
    catalog: Optional[Path] = None
    output_dir: Optional[Path] = None
    overhead: Optional[str] = None
    markup: Optional[str] = None
    discount: Optional[str] = None
    tax: Optional[str] = None
    write_pdf: bool = True


def load_job(path: Path) -> dict:
    """Read a job description from a JSON or YAML file."""
    job_path = Path(path)
    if not job_path.exists():
        raise ConfigurationError(f"Job file not found: {job_path}")
    with job_path.open("r", encoding="utf-8") as f:
        try:
            if job_path.suffix.lower() in {".yaml", ".yml"}:
                raw = yaml.safe_load(f)
            else:
                raw = json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Unable to parse job file {job_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Job file {job_path} must contain a mapping")
    return raw


def _section(job: Mapping[str, object], key: str) -> list:
    value = job.get(key) or []
    if not isinstance(value, list):
        raise ConfigurationError(f"Job section '{key}' must be a list")
    for index, row in enumerate(value):
        if not isinstance(row, dict):
            raise ConfigurationError(f"Job section '{key}' entry {index} must be a mapping")
    return value


def _project(job: Mapping[str, object]) -> ProjectInfo:
    raw = job.get("project") or {}
    if not isinstance(raw, dict):
        raise ConfigurationError("Job section 'project' must be a mapping")
    known = ProjectInfo.__dataclass_fields__
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ConfigurationError(f"Unknown project fields: {', '.join(unknown)}")
    return ProjectInfo(**{key: str(value) for key, value in raw.items() if value is not None})


def _material_entry(row: Mapping[str, object], catalog: Catalog) -> CatalogEntry:
    stock_number = str(row.get("stock_number") or "").strip()
    if stock_number and "unit_cost" not in row:
        return catalog.get(stock_number)
    if "description" not in row or "category" not in row:
        raise ConfigurationError(
            "Materials need a stock_number or an inline description, unit_cost and category"
        )
    return CatalogEntry(
        stock_number=stock_number,
        description=str(row["description"]),
        unit_cost=to_decimal(row.get("unit_cost")),
        unit=str(row.get("unit") or "each"),
        category=str(row["category"]),
    )


def build_estimate(
    job: Mapping[str, object],
    pricing: PricingConfig,
    catalog: Catalog,
    percentages: Optional[Mapping[str, object]] = None,
) -> Estimate:
    """Assemble an estimate from a job mapping.

    Percentages are layered: pricing config defaults, then the job's own
    ``percentages`` block, then ``percentages`` passed here (env/CLI).
    """
    job_percentages = job.get("percentages") or {}
    if not isinstance(job_percentages, dict):
        raise ConfigurationError("Job section 'percentages' must be a mapping")
    overrides = dict(job_percentages)
    overrides.update({key: value for key, value in (percentages or {}).items() if value is not None})

    estimate = Estimate.from_config(pricing, overrides, project=_project(job))

    for row in _section(job, "materials"):
        entry = _material_entry(row, catalog)
        estimate.add_line_item(entry, row.get("quantity", 1), row.get("multiplier"), row.get("labor_hours"))
    for row in _section(job, "labor"):
        rate = row.get("rate")
        estimate.add_labor_item(
            str(row.get("description") or "Labor"),
            row.get("hours", 0),
            pricing.labor_rate if rate is None else rate,
        )
    for row in _section(job, "custom"):
        estimate.add_custom_item(
            str(row.get("description") or "Custom item"),
            row.get("unit_price"),
            row.get("quantity", 1),
        )

    logger.info(
        "Built estimate with %d materials, %d labor and %d custom items",
        len(estimate.line_items),
        len(estimate.labor_items),
        len(estimate.custom_items),
    )
    return estimate


def write_artifacts(
    estimate: Estimate,
    pricing: PricingConfig,
    output_dir: Path,
    include_pdf: bool = True,
) -> Dict[str, Path]:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    artifacts = {
        "text": write_text(estimate, output_dir / ARTIFACT_NAMES["text"], pricing.company, pricing.quote_terms),
        "xlsx": write_workbook(estimate, output_dir / ARTIFACT_NAMES["xlsx"]),
        "json": write_payload(estimate, output_dir / ARTIFACT_NAMES["json"]),
    }
    if include_pdf:
        artifacts["pdf"] = write_pdf(estimate, output_dir / ARTIFACT_NAMES["pdf"], pricing.company, pricing.quote_terms)
    return artifacts


def generate_quote(cfg: Config, job_path: Path) -> Dict[str, Path]:
    """Load pricing and catalog per ``cfg``, price the job and write every artifact."""
    pricing = load_pricing_config(cfg.pricing_config_path)
    catalog = Catalog.load(cfg.catalog_path)
    estimate = build_estimate(load_job(job_path), pricing, catalog, cfg.percentage_overrides())
    logger.info("Quote total: %s", estimate.total)
    return write_artifacts(estimate, pricing, cfg.output_dir, include_pdf=cfg.write_pdf)


def quote(options: QuoteOptions) -> Dict[str, Path]:
    """Programmatic interface to price a job file and return artifact paths.

    Returns a dict with keys: text, xlsx, json and (unless disabled) pdf.
    """
    env = dict(os.environ)
    if options.pricing_config:
        env["HVACQUOTE_PRICING_CONFIG"] = str(options.pricing_config)
    if options.catalog:
        env["HVACQUOTE_CATALOG_CSV"] = str(options.catalog)
    if options.output_dir:
        env["HVACQUOTE_OUTPUT_DIR"] = str(options.output_dir)
    for name, var in PERCENT_ENV_VARS.items():
        value = getattr(options, name)
        if value is not None:
            env[var] = str(value)
    if not options.write_pdf:
        env["HVACQUOTE_NO_PDF"] = "1"

    cfg = load_config(env, None)
    return generate_quote(cfg, options.job)


__all__ = [
    "ARTIFACT_NAMES",
    "QuoteOptions",
    "load_job",
    "build_estimate",
    "write_artifacts",
    "generate_quote",
    "quote",
]
