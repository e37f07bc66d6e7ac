"""Tests for migrate_products.extract_products module."""

from unittest.mock import patch

import pytest

from migrate_products.errors import SourceQueryFailed, SourceUnavailable
from migrate_products.extract_products import _read_only_url, extract_products


class TestReadOnlyUrl:
    def test_sqlite_file_opened_read_only(self) -> None:
        url = _read_only_url("sqlite:///easymart.db")
        assert url.database == "file:easymart.db"
        assert url.query["mode"] == "ro"
        assert url.query["uri"] == "true"

    def test_memory_database_unchanged(self) -> None:
        assert _read_only_url("sqlite://").database is None

    def test_other_backends_unchanged(self) -> None:
        url = _read_only_url("postgresql://user:pw@db/shop")
        assert url.database == "shop"
        assert "mode" not in url.query


class TestExtractProducts:
    def test_reads_all_rows_in_order(self, products_db, source_factory) -> None:
        rows = [source_factory("A"), source_factory("B", tags="x, y"), source_factory("C", price=5.5)]
        url = products_db(rows)

        records = extract_products(url)

        assert [r.sku for r in records] == ["A", "B", "C"]
        assert records[1].tags == "x, y"
        assert records[2].price == 5.5
        assert records[0] == rows[0]

    def test_custom_table(self, products_db, source_factory) -> None:
        url = products_db([source_factory("A")], table="catalog")
        assert [r.sku for r in extract_products(url, table="catalog")] == ["A"]

    def test_empty_table(self, products_db) -> None:
        assert extract_products(products_db([])) == []

    def test_rows_without_sku_skipped(self, products_db, source_factory) -> None:
        url = products_db([source_factory("A"), source_factory(""), source_factory("B")])
        assert [r.sku for r in extract_products(url)] == ["A", "B"]

    def test_null_price_kept_as_none(self, products_db, source_factory) -> None:
        url = products_db([source_factory("A", price=None)])
        assert extract_products(url)[0].price is None

    def test_non_numeric_price_raises_query_failed(self, products_db, source_factory) -> None:
        url = products_db([source_factory("A"), source_factory("B", price="call us")])
        with pytest.raises(SourceQueryFailed, match="B"):
            extract_products(url)

    def test_missing_database_raises_unavailable(self, tmp_path) -> None:
        with pytest.raises(SourceUnavailable):
            extract_products(f"sqlite:///{tmp_path / 'missing.db'}")

    def test_source_is_not_created(self, tmp_path) -> None:
        path = tmp_path / "missing.db"
        with pytest.raises(SourceUnavailable):
            extract_products(f"sqlite:///{path}")
        assert not path.exists()

    def test_missing_table_raises_query_failed(self, products_db, source_factory) -> None:
        url = products_db([source_factory("A")])
        with pytest.raises(SourceQueryFailed):
            extract_products(url, table="inventory")

    def test_invalid_table_name_rejected(self, products_db) -> None:
        with pytest.raises(SourceQueryFailed):
            extract_products(products_db([]), table="products; DROP TABLE products")

    def test_invalid_url_raises_unavailable(self) -> None:
        with pytest.raises(SourceUnavailable):
            extract_products("not a url")

    def test_engine_disposed_on_failure(self, products_db, source_factory) -> None:
        url = products_db([source_factory("A")])
        with patch("migrate_products.extract_products.Engine.dispose") as mock_dispose:
            with pytest.raises(SourceQueryFailed):
                extract_products(url, table="inventory")
        mock_dispose.assert_called_once()
