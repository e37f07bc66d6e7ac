"""Tests for migrate_products.transform_products module."""

from migrate_products.transform_products import (
    build_embedding_text,
    normalize_tags,
    transform_product,
    transform_products,
)


class TestNormalizeTags:
    def test_json_array(self) -> None:
        assert normalize_tags('["a", "b"]') == ["a", "b"]

    def test_comma_separated_with_trailing_comma(self) -> None:
        assert normalize_tags("a, b ,") == ["a", "b"]

    def test_malformed_json_falls_back_to_commas(self) -> None:
        assert normalize_tags('["a", "b"') == ['["a"', '"b"']

    def test_json_array_elements_trimmed_and_empty_dropped(self) -> None:
        assert normalize_tags('[" a ", "", "  ", "b"]') == ["a", "b"]

    def test_json_scalar_wrapped(self) -> None:
        assert normalize_tags('"sale"') == ["sale"]

    def test_json_number_wrapped(self) -> None:
        assert normalize_tags("42") == ["42"]

    def test_json_boolean_uses_json_spelling(self) -> None:
        assert normalize_tags("true") == ["true"]

    def test_none_and_blank(self) -> None:
        assert normalize_tags(None) == []
        assert normalize_tags("") == []
        assert normalize_tags("   ") == []

    def test_list_input(self) -> None:
        assert normalize_tags(["desk ", " ", "oak"]) == ["desk", "oak"]

    def test_normalizing_twice_is_stable(self) -> None:
        for raw in ('["a", " b "]', "a, b ,", '["a",'):
            once = normalize_tags(raw)
            assert normalize_tags(once) == once
            assert all(tag and tag == tag.strip() for tag in once)


class TestBuildEmbeddingText:
    def test_full_product(self, source_factory) -> None:
        product = source_factory(price=199.0, currency="AUD", search_content="home office")
        text = build_embedding_text(product, ["desk", "oak"])
        assert text == (
            "Oak Desk Solid oak writing desk from Woodworks. "
            "Price: 199 AUD. Tags: desk, oak. home office"
        )

    def test_no_tags_leaves_empty_segment(self, source_factory) -> None:
        product = source_factory(price=12.5, search_content="")
        text = build_embedding_text(product, [])
        assert text == "Oak Desk Solid oak writing desk from Woodworks. Price: 12.5 AUD. ."

    def test_missing_description(self) -> None:
        product = {"title": "Lamp", "description": None, "vendor": "Glow", "price": 30, "currency": "USD"}
        text = build_embedding_text(product, [])
        assert text.startswith("Lamp  from Glow. Price: 30 USD")

    def test_missing_price_renders_empty(self, source_factory) -> None:
        text = build_embedding_text(source_factory(price=None, search_content=""), [])
        assert text == "Oak Desk Solid oak writing desk from Woodworks. Price:  AUD. ."

    def test_deterministic(self, source_factory) -> None:
        product = source_factory()
        assert build_embedding_text(product, ["x"]) == build_embedding_text(product, ["x"])


class TestTransformProduct:
    def test_maps_fields(self, source_factory) -> None:
        record = transform_product(source_factory(sku="SKU-9", tags="desk, oak"))

        assert record.sku == "SKU-9"
        assert record.tags == ["desk", "oak"]
        assert record.price == 199.0
        assert record.embedding is None
        assert "Tags: desk, oak" in record.embedding_text

    def test_defaults_empty_description_and_search_content(self, source_factory) -> None:
        record = transform_product(source_factory(description=None, search_content=None))
        assert record.description == ""
        assert record.search_content == ""

    def test_accepts_dict_rows(self) -> None:
        row = {
            "sku": "D-1", "handle": "d-1", "title": "Chair", "description": "", "vendor": "Sit",
            "price": 80.0, "currency": "AUD", "image_url": "", "product_url": "",
            "tags": '["seating"]', "search_content": "",
        }
        record = transform_product(row)
        assert record.tags == ["seating"]
        assert record.embedding_text.startswith("Chair  from Sit. Price: 80 AUD. Tags: seating")

    def test_embedding_text_present_when_title_or_vendor_present(self, source_factory) -> None:
        record = transform_product(source_factory(title="", description="", vendor="Woodworks"))
        assert record.embedding_text

    def test_idempotent(self, source_factory) -> None:
        product = source_factory(tags='[" a ", "b"]')
        assert transform_product(product) == transform_product(product)

    def test_transform_products_keeps_order(self, source_factory) -> None:
        records = transform_products([source_factory("A"), source_factory("B"), source_factory("C")])
        assert [r.sku for r in records] == ["A", "B", "C"]
