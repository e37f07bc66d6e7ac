from __future__ import annotations

import sqlite3
from types import SimpleNamespace
from typing import Any

import pytest
from pymongo.errors import DuplicateKeyError, OperationFailure

from migrate_products.models import EnrichedRecord, SourceRecord

DIMENSIONS = 768

PRODUCT_COLUMNS = (
    "sku TEXT, handle TEXT, title TEXT, description TEXT, vendor TEXT, price REAL, "
    "currency TEXT, image_url TEXT, product_url TEXT, tags TEXT, search_content TEXT"
)


def make_source(sku: str = "SKU-1", **overrides: Any) -> SourceRecord:
    fields = {
        "sku": sku,
        "handle": f"handle-{sku.lower()}",
        "title": "Oak Desk",
        "description": "Solid oak writing desk",
        "vendor": "Woodworks",
        "price": 199.0,
        "currency": "AUD",
        "image_url": f"https://cdn.example.com/{sku}.jpg",
        "product_url": f"https://shop.example.com/products/{sku}",
        "tags": '["desk", "oak"]',
        "search_content": "home office furniture",
    }
    fields.update(overrides)
    return SourceRecord(**fields)


def make_enriched(sku: str = "SKU-1", embedding: list[float] | None = None, **overrides: Any) -> EnrichedRecord:
    fields = {
        "sku": sku,
        "handle": f"handle-{sku.lower()}",
        "title": "Oak Desk",
        "description": "Solid oak writing desk",
        "vendor": "Woodworks",
        "price": 199.0,
        "currency": "AUD",
        "image_url": f"https://cdn.example.com/{sku}.jpg",
        "product_url": f"https://shop.example.com/products/{sku}",
        "tags": ["desk", "oak"],
        "search_content": "home office furniture",
        "embedding_text": f"Oak Desk {sku}",
        "embedding": embedding,
    }
    fields.update(overrides)
    return EnrichedRecord(**fields)


def write_products_db(path, rows: list[SourceRecord], table: str = "products") -> str:
    """Create a SQLite product table and return its SQLAlchemy URL."""
    connection = sqlite3.connect(path)
    try:
        connection.execute(f"CREATE TABLE {table} ({PRODUCT_COLUMNS})")
        connection.executemany(
            f"INSERT INTO {table} VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                (
                    r.sku, r.handle, r.title, r.description, r.vendor, r.price,
                    r.currency, r.image_url, r.product_url, r.tags, r.search_content,
                )
                for r in rows
            ],
        )
        connection.commit()
    finally:
        connection.close()
    return f"sqlite:///{path}"


class FakeProvider:
    """Embedding provider returning fixed vectors.

    `always_fail` maps a text to the error raised on every call; `fail_first`
    maps a text to errors raised on its first calls, in order.
    """

    def __init__(
        self,
        dimensions: int = DIMENSIONS,
        always_fail: dict[str, Exception] | None = None,
        fail_first: dict[str, list[Exception]] | None = None,
    ):
        self.dimensions = dimensions
        self.always_fail = always_fail or {}
        self.fail_first = {text: list(errors) for text, errors in (fail_first or {}).items()}
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if text in self.always_fail:
            raise self.always_fail[text]
        if self.fail_first.get(text):
            raise self.fail_first[text].pop(0)
        return [0.1] * self.dimensions


class FakeCollection:
    """In-memory stand-in for a pymongo collection."""

    def __init__(self, docs: list[dict] | None = None, search_indexes: list[str] | None = None):
        self.docs = [dict(d) for d in docs or []]
        self.search_indexes = list(search_indexes or [])
        self.created_search_indexes: list[Any] = []
        self.unique_sku = False
        self.fail_insert_for: set[str] = set()
        self.fail_search_indexes = False

    def list_search_indexes(self):
        if self.fail_search_indexes:
            raise OperationFailure("search indexes are not supported on this deployment")
        return [{"name": name} for name in self.search_indexes]

    def create_search_index(self, model):
        self.created_search_indexes.append(model)
        self.search_indexes.append(model.document["name"])
        return model.document["name"]

    def create_index(self, keys, name=None, unique=False):
        if unique and keys == [("sku", 1)]:
            skus = [d["sku"] for d in self.docs]
            if len(skus) != len(set(skus)):
                raise DuplicateKeyError("E11000 duplicate key error building index", 11000)
            self.unique_sku = True
        return name

    def delete_many(self, filter):
        deleted = len(self.docs)
        self.docs = []
        return SimpleNamespace(deleted_count=deleted)

    def insert_one(self, doc):
        if doc["sku"] in self.fail_insert_for:
            raise OperationFailure("write concern error")
        if self.unique_sku and any(d["sku"] == doc["sku"] for d in self.docs):
            raise DuplicateKeyError("E11000 duplicate key error", 11000)
        self.docs.append(dict(doc))
        return SimpleNamespace(inserted_id=len(self.docs))

    def count_documents(self, filter):
        if not filter:
            return len(self.docs)
        return sum(1 for d in self.docs if d.get("embedding") is not None)

    def find_one(self, filter=None):
        return dict(self.docs[0]) if self.docs else None


@pytest.fixture()
def source_factory():
    return make_source


@pytest.fixture()
def enriched_factory():
    return make_enriched


@pytest.fixture()
def products_db(tmp_path):
    """Return a function that writes source rows to a temporary SQLite file."""

    def _write(rows: list[SourceRecord], table: str = "products") -> str:
        return write_products_db(tmp_path / "source.db", rows, table=table)

    return _write


@pytest.fixture()
def provider_factory():
    return FakeProvider


@pytest.fixture()
def collection_factory():
    return FakeCollection
