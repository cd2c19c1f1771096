from __future__ import annotations

import argparse
import json
import sys
from contextlib import ExitStack
from pathlib import Path

from dotenv import load_dotenv

from ..catalog.base import CatalogError
from ..catalog.memory import InMemoryCatalog
from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..db.import_log import ImportLog, ImportLogError, NullImportLog, audit_log_connection
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.config_models import ImporterConfig
from ..services.summary import render_import_summary, render_preview_summary, render_preview_table
from ..services.workflow import parse_and_preview, run_import
from ..tabular.reader import InputFileError, read_input_file

"""CLI entrypoint.

    variation-import preview --product 42 --input rows.tsv
    variation-import import  --product 42 --input rows.xlsx --config config/import.yml

Flow:
- Load .env (database settings for the audit log) and the YAML config
- Load the catalog from ``catalog_path`` (or ``--catalog``)
- Read the input file, run preview or import, print a SUMMARY line
- After an import, save the catalog back to the same file

Exit codes: 0 success, 2 partial failure / row errors, 1 fatal.
"""

__all__ = [
    "EXIT_FATAL",
    "EXIT_PARTIAL_FAILURE",
    "EXIT_SUCCESS_ALL",
    "main",
]

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

SUMMARY_PREFIX = "SUMMARY "


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; values override the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="variation-import",
        description="Bulk import product variations from CSV/TSV or spreadsheet rows",
    )
    sub = p.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("preview", "Parse, validate and classify rows without writing"),
        ("import", "Create / update variations for the product"),
    ):
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument("--product", type=int, required=True, help="Target product id")
        sp.add_argument("--input", type=Path, required=True, help="CSV/TSV text file or .xlsx/.xls")
        sp.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
        sp.add_argument("--catalog", type=Path, default=None, help="Catalog JSON (overrides catalog_path)")
        sp.add_argument("--debug", action="store_true", help="Enable debug logging")
        if name == "preview":
            sp.add_argument("--json", action="store_true", help="Print the full preview as JSON")
    return p.parse_args(argv)


def _catalog_path(args: argparse.Namespace, cfg: ImporterConfig) -> Path | None:
    if args.catalog is not None:
        return args.catalog
    if cfg.catalog_path:
        return Path(cfg.catalog_path)
    return None


def _preview(args: argparse.Namespace, cfg: ImporterConfig, catalog: InMemoryCatalog, raw: str) -> int:
    logger = setup_logging()
    preview = parse_and_preview(raw, args.product, catalog, cfg)
    if args.json:
        print(json.dumps(preview.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(render_preview_table(preview))
    for err in preview.errors:
        logger.error(err)
    if preview.message:
        logger.info(preview.message)
    log_summary(render_preview_summary(preview).removeprefix(SUMMARY_PREFIX))

    if not preview.success:
        return EXIT_FATAL
    if preview.variation_counts.invalid > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _import(
    args: argparse.Namespace,
    cfg: ImporterConfig,
    catalog: InMemoryCatalog,
    catalog_path: Path,
    raw: str,
) -> int:
    logger = setup_logging()
    error_log = ErrorLogBuffer(cfg.error_log_dir)
    with ExitStack() as stack:
        import_log: ImportLog = NullImportLog()
        if cfg.audit_log.enabled:
            try:
                import_log = stack.enter_context(audit_log_connection(cfg.audit_log))
            except ImportLogError as e:
                logger.warning(f"audit log disabled: {e}")
        result = run_import(raw, args.product, catalog, cfg, import_log=import_log, error_log=error_log)

    if result.effective_count > 0 or result.converted:
        try:
            catalog.save(catalog_path)
        except OSError as e:
            logger.error(f"failed saving catalog {catalog_path}: {e}")
            return EXIT_FATAL

    for err in result.errors:
        logger.error(err)
    logger.info(result.message)
    log_summary(render_import_summary(result).removeprefix(SUMMARY_PREFIX))

    if result.success:
        return EXIT_SUCCESS_ALL
    if result.aborted:
        return EXIT_FATAL
    return EXIT_PARTIAL_FAILURE


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # argv=[] must not fall back to sys.argv (pytest arguments)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    catalog_path = _catalog_path(args, cfg)
    if catalog_path is None:
        logger.error("config: catalog_path is not set (use --catalog)")
        return EXIT_FATAL
    try:
        catalog = InMemoryCatalog.load(catalog_path)
    except CatalogError as e:
        logger.error(f"catalog: {e}")
        return EXIT_FATAL
    catalog.convertible_types = cfg.convertible_types

    try:
        raw = read_input_file(args.input)
    except InputFileError as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL

    logger.info(f"{args.command}: product={args.product} input={args.input}")
    if args.command == "preview":
        return _preview(args, cfg, catalog, raw)
    return _import(args, cfg, catalog, catalog_path, raw)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
