"""Read product rows from the source store."""

import logging
import re
from collections import Counter
from typing import Any, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from migrate_products.errors import SourceQueryFailed, SourceUnavailable
from migrate_products.models import SourceRecord

logger = logging.getLogger(__name__)

SOURCE_COLUMNS = (
    "sku",
    "handle",
    "title",
    "description",
    "vendor",
    "price",
    "currency",
    "image_url",
    "product_url",
    "tags",
    "search_content",
)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _read_only_url(url: str) -> URL:
    """Turn a SQLite URL into its read-only URI form; other URLs pass through."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return parsed
    if not parsed.database or parsed.database == ":memory:":
        return parsed
    if parsed.database.startswith("file:"):
        return parsed
    return parsed.set(
        database=f"file:{parsed.database}",
        query={**parsed.query, "mode": "ro", "uri": "true"},
    )


def _create_engine(url: str) -> Engine:
    try:
        return create_engine(_read_only_url(url))
    except (ArgumentError, SQLAlchemyError, ValueError) as exc:
        raise SourceUnavailable(f"Invalid source database URL: {exc}") from exc


def _parse_price(sku: str, price: Any) -> Optional[float]:
    if price is None:
        return None
    try:
        return float(price)
    except (TypeError, ValueError) as exc:
        raise SourceQueryFailed(f"Product {sku} has a non-numeric price: {price!r}") from exc


def _to_record(row) -> SourceRecord:
    sku = str(row["sku"]).strip()
    return SourceRecord(
        sku=sku,
        handle=row["handle"],
        title=row["title"],
        description=row["description"],
        vendor=row["vendor"],
        price=_parse_price(sku, row["price"]),
        currency=row["currency"],
        image_url=row["image_url"],
        product_url=row["product_url"],
        tags=row["tags"],
        search_content=row["search_content"],
    )


def extract_products(url: str, table: str = "products") -> list[SourceRecord]:
    """
    Read every product row from the source table, in the store's natural order.

    The connection is opened read-only and released on every exit path.

    Args:
        url: SQLAlchemy database URL of the source store
        table: Name of the product table

    Returns:
        List of SourceRecord objects

    Raises:
        SourceUnavailable: If the store cannot be opened
        SourceQueryFailed: If the read itself fails
    """
    if not _IDENTIFIER.match(table):
        raise SourceQueryFailed(f"Invalid source table name: {table!r}")

    engine = _create_engine(url)
    logger.info("Opening source database: %s", engine.url.render_as_string(hide_password=True))
    try:
        try:
            connection = engine.connect()
        except SQLAlchemyError as exc:
            raise SourceUnavailable(f"Cannot open source database: {exc}") from exc

        with connection:
            stmt = text(f"SELECT {', '.join(SOURCE_COLUMNS)} FROM {table}")
            try:
                rows = connection.execute(stmt).mappings().all()
            except SQLAlchemyError as exc:
                raise SourceQueryFailed(f"Failed to read table {table}: {exc}") from exc
    finally:
        engine.dispose()

    records = []
    for row in rows:
        if row["sku"] is None or not str(row["sku"]).strip():
            logger.warning("Skipping product with missing sku: handle=%s", row["handle"])
            continue
        records.append(_to_record(row))

    duplicates = [sku for sku, count in Counter(r.sku for r in records).items() if count > 1]
    if duplicates:
        logger.warning("Source contains %d duplicated skus: %s", len(duplicates), ", ".join(duplicates))

    logger.info("Extracted %d products from %s", len(records), table)
    return records
