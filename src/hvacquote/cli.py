import argparse
import logging
import os
from pathlib import Path
from typing import Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from .api import generate_quote
from .catalog import Catalog
from .config import Config, load_config
from .errors import CatalogError, ConfigurationError, EstimateError

logger = logging.getLogger(__name__)


def run(runtime_config: Config, job_path: Path) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    artifacts = generate_quote(runtime_config, job_path)
    logger.info("Outputs:")
    for path in artifacts.values():
        logger.info(" - %s", path)
    return 0


def search(runtime_config: Config, keyword: str, category: Optional[str] = None) -> int:
    catalog = Catalog.load(runtime_config.catalog_path)
    matches = catalog.lookup(category=category, keyword=keyword)
    if not matches:
        logger.info("No catalog items match %r", keyword)
        return 0
    for entry in matches:
        logger.info(
            "%-12s %-50s %10s /%-5s %s",
            entry.stock_number,
            entry.description,
            f"{entry.unit_cost:.2f}",
            entry.unit,
            entry.category,
        )
    logger.info("%d item(s)", len(matches))
    return 0


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Price an HVAC job and write customer quote outputs")
    parser.add_argument("job", nargs="?", help="Job file (JSON or YAML) listing materials, labor and custom items")
    parser.add_argument("--pricing-config", help="Pricing config YAML/JSON with multipliers and default percentages")
    parser.add_argument("--catalog", help="Supplier catalog CSV")
    parser.add_argument("--output-dir", help="Directory for generated outputs")
    parser.add_argument("--overhead", help="Overhead percent override")
    parser.add_argument("--markup", help="Markup percent override")
    parser.add_argument("--discount", help="Discount percent override")
    parser.add_argument("--tax", help="Tax percent override")
    parser.add_argument("--no-pdf", action="store_true", help="Skip the PDF quote")
    parser.add_argument("--search", metavar="KEYWORD", help="List catalog items matching KEYWORD instead of quoting")
    parser.add_argument("--category", help="Restrict --search to one catalog category")
    parser.add_argument("-v", "--verbose", action="store_true", help="Increase logging verbosity")
    args = parser.parse_args(argv)
    if not args.job and not args.search:
        parser.error("a job file is required unless --search is given")
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    args = parse_args(argv)
    runtime_cfg = load_config(os.environ, args)
    log_level = logging.DEBUG if runtime_cfg.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(message)s")
    try:
        if args.search:
            return search(runtime_cfg, args.search, args.category)
        return run(runtime_cfg, Path(args.job))
    except (EstimateError, ConfigurationError, CatalogError) as exc:
        logger.error("Estimate failed: %s", exc)
        return 2
    except Exception:  # pragma: no cover - defensive
        logger.exception("Fatal error during quote generation")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
