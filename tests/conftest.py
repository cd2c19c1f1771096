# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pytest

from variation_import.catalog.memory import InMemoryCatalog
from variation_import.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """price_tolerance: 0.01
convertible_types: [simple, grouped, external]
catalog_path: ./data/catalog.json
error_log_dir: ./logs
audit_log:
  enabled: false
  table: bulk_variations_logs
  database:
    host: localhost
    port: 5432
    user: appuser
    password: secret
    database: shop
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog()


@pytest.fixture()
def variable_product(catalog: InMemoryCatalog):
    """Variable product with attribute Color (Red, Blue) and two variations."""
    product = catalog.add_product("variable", "T-Shirt", sku="TS")
    color = catalog.get_or_create_attribute("Color")
    red = catalog.get_or_create_term(color.key, "Red")
    blue = catalog.get_or_create_term(color.key, "Blue")
    catalog.add_variant(product.id, 10.0, {color.key: red.slug}, sku="TS-RED")
    catalog.add_variant(product.id, 12.0, {color.key: blue.slug}, sku="TS-BLUE")
    return product


@pytest.fixture()
def sample_tsv() -> str:
    return "Color\tSize\tPrice\tSku\nRed\tM\t10.00\tTS-RED-M\nBlue\tL\t12.50\tTS-BLUE-L\n"


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()
