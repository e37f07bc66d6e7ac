"""Map source rows to the destination document shape."""

import json
from typing import Any

from common.utils import get_value
from migrate_products.models import EnrichedRecord


def _clean_tags(values: list[Any]) -> list[str]:
    tags = []
    for value in values:
        tag = value if isinstance(value, str) else json.dumps(value)
        tag = tag.strip()
        if tag:
            tags.append(tag)
    return tags


def normalize_tags(raw: Any) -> list[str]:
    """
    Normalize the source tags field into a list of trimmed, non-empty strings.

    A JSON array is used as-is, any other JSON value becomes a single tag, and
    text that is not valid JSON is split on commas.
    """
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return _clean_tags(list(raw))

    raw = str(raw)
    if not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        return _clean_tags(raw.split(","))

    if isinstance(parsed, list):
        return _clean_tags(parsed)
    return _clean_tags([parsed])


def _format_price(price: Any) -> str:
    """Render integral floats without a trailing .0 (19.0 -> "19"); a missing price renders empty."""
    if price is None:
        return ""
    if isinstance(price, float) and price.is_integer():
        return str(int(price))
    return str(price)


def build_embedding_text(product: Any, tags: list[str]) -> str:
    """Build the text summarising a product for semantic search."""
    title = get_value(product, "title") or ""
    description = get_value(product, "description") or ""
    vendor = get_value(product, "vendor") or ""
    currency = get_value(product, "currency") or ""

    basic_info = f"{title} {description} from {vendor}"
    pricing = f"Price: {_format_price(get_value(product, 'price'))} {currency}"
    tag_text = f"Tags: {', '.join(tags)}" if tags else ""
    search_content = get_value(product, "search_content") or ""

    return ". ".join([basic_info, pricing, tag_text, search_content]).strip()


def transform_product(product: Any) -> EnrichedRecord:
    """Transform a source product (SourceRecord or dict) into an EnrichedRecord."""
    tags = normalize_tags(get_value(product, "tags"))

    return EnrichedRecord(
        sku=get_value(product, "sku"),
        handle=get_value(product, "handle"),
        title=get_value(product, "title"),
        description=get_value(product, "description") or "",
        vendor=get_value(product, "vendor"),
        price=get_value(product, "price"),
        currency=get_value(product, "currency"),
        image_url=get_value(product, "image_url"),
        product_url=get_value(product, "product_url"),
        tags=tags,
        search_content=get_value(product, "search_content") or "",
        embedding_text=build_embedding_text(product, tags),
    )


def transform_products(products: list[Any]) -> list[EnrichedRecord]:
    return [transform_product(product) for product in products]
