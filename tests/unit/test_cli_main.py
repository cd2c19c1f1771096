from __future__ import annotations
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from variation_import.catalog.memory import InMemoryCatalog
from variation_import.cli import main as cli_main
from variation_import.db.import_log import ImportLogError
from variation_import.logging.init import reset_logging


@pytest.fixture()
def seeded_catalog(temp_workdir: Path) -> tuple[Path, int]:
    catalog = InMemoryCatalog()
    product = catalog.add_product("simple", "Shirt", sku="SH")
    path = temp_workdir / "data" / "catalog.json"
    catalog.save(path)
    return path, product.id


def _write_input(temp_workdir: Path, text: str, name: str = "rows.tsv") -> Path:
    path = temp_workdir / "data" / name
    path.write_text(text, encoding="utf-8")
    return path


def test_cli_preview_success(write_config, seeded_catalog, temp_workdir: Path, capsys):
    reset_logging()
    _, pid = seeded_catalog
    inp = _write_input(temp_workdir, "Size\tPrice\nM\t10\nL\t12\n")
    code = cli_main(["preview", "--product", str(pid), "--input", str(inp)])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY rows=2 new=2 update=0 unchanged=0 invalid=0 untouched=0" in out
    assert "INFO 2 variations and 1 attributes will be imported." in out
    # preview never writes
    stored = InMemoryCatalog.load(temp_workdir / "data" / "catalog.json")
    assert stored.get_product(pid).type == "simple"


def test_cli_preview_json(write_config, seeded_catalog, temp_workdir: Path, capsys):
    reset_logging()
    _, pid = seeded_catalog
    inp = _write_input(temp_workdir, "Size,Price\nM,10\n")
    code = cli_main(["preview", "--product", str(pid), "--input", str(inp), "--json"])
    out = capsys.readouterr().out
    assert code == 0
    start = out.index("{")
    payload = json.loads(out[start : out.index("\nINFO", start)])
    assert payload["success"] is True
    assert payload["summary"]["variation_counts"]["new"] == 1


def test_cli_preview_row_errors_exit_partial(write_config, seeded_catalog, temp_workdir: Path, capsys):
    reset_logging()
    _, pid = seeded_catalog
    inp = _write_input(temp_workdir, "Size,Price\nM,10\nL,0\n")
    code = cli_main(["preview", "--product", str(pid), "--input", str(inp)])
    assert code == 2
    assert "invalid=1" in capsys.readouterr().out


def test_cli_import_converts_and_saves(write_config, seeded_catalog, temp_workdir: Path, capsys):
    reset_logging()
    path, pid = seeded_catalog
    inp = _write_input(temp_workdir, "Size,Price,Sku\nM,10,SH-M\nL,12,SH-L\n")
    code = cli_main(["import", "--product", str(pid), "--input", str(inp)])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY created=2 updated=0 unchanged=0 errors=0 converted=true" in out
    stored = InMemoryCatalog.load(path)
    assert stored.get_product(pid).is_variable
    assert {v.sku for v in stored.get_existing_variants(pid)} == {"SH-M", "SH-L"}

    # second run is a no-op
    reset_logging()
    code = cli_main(["import", "--product", str(pid), "--input", str(inp)])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY created=0 updated=0 unchanged=2 errors=0 converted=false" in out


def test_cli_import_partial_failure(write_config, seeded_catalog, temp_workdir: Path, capsys):
    reset_logging()
    _, pid = seeded_catalog
    inp = _write_input(temp_workdir, "Size,Price\nM,10\nL,abc\n")
    code = cli_main(["import", "--product", str(pid), "--input", str(inp)])
    out = capsys.readouterr().out
    assert code == 2
    assert "ERROR Row 3 has validation errors" in out
    assert list((temp_workdir / "logs").glob("errors-*.log"))


def test_cli_import_product_missing_is_fatal(write_config, seeded_catalog, temp_workdir: Path, capsys):
    reset_logging()
    inp = _write_input(temp_workdir, "Size,Price\nM,10\n")
    code = cli_main(["import", "--product", "999", "--input", str(inp)])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR Product not found: 999" in out


def test_cli_missing_config(temp_workdir: Path, capsys):
    reset_logging()
    inp = _write_input(temp_workdir, "Size,Price\nM,10\n")
    code = cli_main(["preview", "--product", "1", "--input", str(inp)])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_cli_missing_catalog_file(write_config, temp_workdir: Path, capsys):
    reset_logging()
    inp = _write_input(temp_workdir, "Size,Price\nM,10\n")
    code = cli_main(["preview", "--product", "1", "--input", str(inp)])
    assert code == 1
    assert "ERROR catalog:" in capsys.readouterr().out


def test_cli_missing_input_file(write_config, seeded_catalog, temp_workdir: Path, capsys):
    reset_logging()
    code = cli_main(["preview", "--product", "1", "--input", str(temp_workdir / "none.tsv")])
    assert code == 1
    assert "ERROR input:" in capsys.readouterr().out


def test_cli_catalog_option_overrides_config(write_config, temp_workdir: Path, capsys):
    reset_logging()
    catalog = InMemoryCatalog()
    product = catalog.add_product("variable", "Mug")
    other = temp_workdir / "other.json"
    catalog.save(other)
    inp = _write_input(temp_workdir, "Color,Price\nRed,3\n")
    code = cli_main(
        ["import", "--product", str(product.id), "--input", str(inp), "--catalog", str(other)]
    )
    assert code == 0
    assert len(InMemoryCatalog.load(other).get_existing_variants(product.id)) == 1


def test_cli_audit_log_unavailable_falls_back(write_config, seeded_catalog, temp_workdir: Path, capsys):
    reset_logging()
    text = write_config.read_text(encoding="utf-8").replace("enabled: false", "enabled: true")
    write_config.write_text(text, encoding="utf-8")
    _, pid = seeded_catalog
    inp = _write_input(temp_workdir, "Size,Price\nM,10\n")
    with patch(
        "variation_import.cli.__main__.audit_log_connection",
        side_effect=ImportLogError("failed connecting"),
    ):
        code = cli_main(["import", "--product", str(pid), "--input", str(inp)])
    out = capsys.readouterr().out
    assert code == 0
    assert "WARN audit log disabled: failed connecting" in out


def test_cli_debug_flag(write_config, seeded_catalog, temp_workdir: Path, capsys):
    reset_logging()
    _, pid = seeded_catalog
    inp = _write_input(temp_workdir, "Size,Price\nM,10\n")
    code = cli_main(["preview", "--product", str(pid), "--input", str(inp), "--debug"])
    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out
    reset_logging()
