from __future__ import annotations

import json
from pathlib import Path

import pytest

from variation_import.catalog.memory import InMemoryCatalog
from variation_import.cli import main as cli_main
from variation_import.logging.init import reset_logging

"""Integration: partial failure (some rows invalid, the rest written).

- valid rows are created / updated
- invalid rows are skipped and reported
- exit code 2 (partial failure)
- SUMMARY reports the error count
- the error log holds one JSON line per validation error and skipped row
"""


@pytest.fixture
def partial_setup(temp_workdir: Path, write_config) -> dict[str, object]:
    catalog = InMemoryCatalog()
    other = catalog.add_product("simple", "Other", sku="TAKEN")
    product = catalog.add_product("variable", "Poster")
    size = catalog.get_or_create_attribute("Size")
    a3 = catalog.get_or_create_term(size.key, "A3")
    catalog.add_variant(product.id, 20.0, {size.key: a3.slug}, sku="P-A3")
    catalog.save(temp_workdir / "data" / "catalog.json")
    rows = temp_workdir / "data" / "rows.tsv"
    rows.write_text(
        "Size\tPrice\tSku\n"
        "A3\t25\tP-A3\n"
        "A2\t30\tTAKEN\n"
        "A1\t\t\n"
        "A4\t15\tP-A4\n",
        encoding="utf-8",
    )
    return {"product_id": product.id, "other_id": other.id, "rows": rows}


def test_run_partial_failure(partial_setup, temp_workdir: Path, capsys):
    reset_logging()
    pid = partial_setup["product_id"]
    code = cli_main(["import", "--product", str(pid), "--input", str(partial_setup["rows"])])
    out = capsys.readouterr().out

    assert code == 2
    assert "SUMMARY created=1 updated=1 unchanged=0 errors=2 converted=false" in out
    assert "ERROR Row 3 has validation errors" in out
    assert "ERROR Row 4 has validation errors" in out

    stored = InMemoryCatalog.load(temp_workdir / "data" / "catalog.json")
    by_sku = {v.sku: v for v in stored.get_existing_variants(pid)}
    assert set(by_sku) == {"P-A3", "P-A4"}
    assert by_sku["P-A3"].price == 25.0

    log_files = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(log_files) == 1
    records = [json.loads(line) for line in log_files[0].read_text(encoding="utf-8").splitlines()]
    assert [(r["row"], r["error_type"]) for r in records] == [
        (3, "DUPLICATE_SKU"),
        (4, "INVALID_PRICE"),
        (3, "ROW_INVALID"),
        (4, "ROW_INVALID"),
    ]
    assert {r["product_id"] for r in records} == {pid}
