from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, Mapping, Optional

from .catalog import DEFAULT_CATALOG_PATH
from .pricing_config import DEFAULT_PRICING_PATH


_BOOLEAN_TRUE = {"1", "true", "yes", "on"}

PERCENT_ENV_VARS = {
    "overhead": "HVACQUOTE_OVERHEAD_PCT",
    "markup": "HVACQUOTE_MARKUP_PCT",
    "discount": "HVACQUOTE_DISCOUNT_PCT",
    "tax": "HVACQUOTE_TAX_PCT",
}


@dataclass(frozen=True)
class Config:
    """Runtime configuration assembled from environment variables and CLI options."""

    pricing_config_path: Path
    catalog_path: Path
    output_dir: Path
    overhead_percent: Optional[str] = None
    markup_percent: Optional[str] = None
    discount_percent: Optional[str] = None
    tax_percent: Optional[str] = None
    write_pdf: bool = True
    verbose: bool = False

    def percentage_overrides(self) -> Dict[str, Optional[str]]:
        """Percentages set through env/CLI, keyed like :class:`~hvacquote.models.Percentages`."""
        return {
            "overhead": self.overhead_percent,
            "markup": self.markup_percent,
            "discount": self.discount_percent,
            "tax": self.tax_percent,
        }


def _to_path(value: object | None) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value.expanduser().resolve()
    text = str(value).strip()
    if not text:
        return None
    return Path(text).expanduser().resolve()


def _to_text(value: object | None) -> Optional[str]:
    # Percentages stay text so the engine converts them straight to Decimal.
    if value is None:
        return None
    text = str(value).replace("%", "").strip()
    return text or None


def _flag(value: object | None) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _BOOLEAN_TRUE


def _namespace(cli_args: object | None) -> SimpleNamespace:
    if cli_args is None:
        return SimpleNamespace()
    if isinstance(cli_args, SimpleNamespace):
        return cli_args
    if hasattr(cli_args, "__dict__"):
        return SimpleNamespace(**{k: v for k, v in vars(cli_args).items()})
    return SimpleNamespace()


def load_config(env: Mapping[str, str], cli_args: object | None = None) -> Config:
    """Build a runtime :class:`Config` from environment variables and CLI options."""

    pricing_config_path = _to_path(env.get("HVACQUOTE_PRICING_CONFIG")) or DEFAULT_PRICING_PATH
    catalog_path = _to_path(env.get("HVACQUOTE_CATALOG_CSV")) or DEFAULT_CATALOG_PATH
    output_dir = _to_path(env.get("HVACQUOTE_OUTPUT_DIR")) or (Path.cwd() / "outputs").resolve()
    percents = {name: _to_text(env.get(var)) for name, var in PERCENT_ENV_VARS.items()}
    write_pdf = not _flag(env.get("HVACQUOTE_NO_PDF"))
    verbose = _flag(env.get("HVACQUOTE_VERBOSE"))

    cli_ns = _namespace(cli_args)
    if getattr(cli_ns, "pricing_config", None):
        pricing_config_path = _to_path(cli_ns.pricing_config) or pricing_config_path
    if getattr(cli_ns, "catalog", None):
        catalog_path = _to_path(cli_ns.catalog) or catalog_path
    if getattr(cli_ns, "output_dir", None):
        output_dir = _to_path(cli_ns.output_dir) or output_dir
    for name in PERCENT_ENV_VARS:
        value = getattr(cli_ns, name, None)
        if value is not None:
            percents[name] = _to_text(value)
    if getattr(cli_ns, "no_pdf", False):
        write_pdf = False
    if getattr(cli_ns, "verbose", False):
        verbose = True

    return Config(
        pricing_config_path=pricing_config_path,
        catalog_path=catalog_path,
        output_dir=output_dir,
        overhead_percent=percents["overhead"],
        markup_percent=percents["markup"],
        discount_percent=percents["discount"],
        tax_percent=percents["tax"],
        write_pdf=write_pdf,
        verbose=verbose,
    )


__all__ = ["Config", "load_config", "PERCENT_ENV_VARS"]
