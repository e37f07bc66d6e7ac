"""Deliver enriched records to the document store or to an export file."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from botocore.exceptions import BotoCoreError, ClientError
from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError
from pymongo.operations import SearchIndexModel

from common.aws import is_s3_path, split_s3_path, upload_json_to_s3
from common.local_io import write_json_atomic
from common.serialization import serialize_dataclass
from migrate_products.config import FileConfig, MongoConfig
from migrate_products.errors import (
    DestinationUnavailable,
    DuplicateKey,
    IndexProvisionFailed,
    InsertFailed,
    SinkWriteFailed,
)
from migrate_products.models import EnrichedRecord, InsertOutcome

logger = logging.getLogger(__name__)

SKU_INDEX_NAME = "sku_unique"


def to_document(record: EnrichedRecord) -> dict[str, Any]:
    """Serialize a record for storage; a missing embedding omits the key."""
    document = serialize_dataclass(record)
    if document["embedding"] is None:
        del document["embedding"]
    return document


@contextmanager
def connect_collection(config: MongoConfig) -> Iterator[Collection]:
    """
    Open the target collection and close the client on exit.

    Raises:
        DestinationUnavailable: If the server cannot be reached
    """
    try:
        client = MongoClient(config.uri, serverSelectionTimeoutMS=10000)
    except PyMongoError as exc:
        raise DestinationUnavailable(f"Invalid document store URI: {exc}") from exc

    try:
        try:
            client.admin.command("ping")
        except PyMongoError as exc:
            raise DestinationUnavailable(f"Cannot reach document store: {exc}") from exc
        logger.info("Connected to document store")
        yield client[config.database][config.collection]
    finally:
        client.close()
        logger.info("Closed document store connection")


class MongoSink:
    """Full-replace writer for one document-store collection."""

    def __init__(
        self,
        collection: Collection,
        index_name: str = "vector_index",
        dimensions: int = 768,
        purge: bool = True,
    ):
        self.collection = collection
        self.index_name = index_name
        self.dimensions = dimensions
        self.purge_enabled = purge

    def _ensure_vector_index(self) -> None:
        try:
            existing = {index["name"] for index in self.collection.list_search_indexes()}
            if self.index_name in existing:
                logger.info("Vector search index %s already exists", self.index_name)
                return

            logger.info("Creating vector search index %s", self.index_name)
            model = SearchIndexModel(
                definition={
                    "fields": [
                        {
                            "type": "vector",
                            "path": "embedding",
                            "numDimensions": self.dimensions,
                            "similarity": "cosine",
                        }
                    ]
                },
                name=self.index_name,
                type="vectorSearch",
            )
            self.collection.create_search_index(model)
        except PyMongoError as exc:
            raise IndexProvisionFailed(f"Vector index {self.index_name}: {exc}") from exc

    def _ensure_sku_index(self) -> None:
        try:
            self.collection.create_index([("sku", ASCENDING)], name=SKU_INDEX_NAME, unique=True)
        except PyMongoError as exc:
            raise IndexProvisionFailed(f"Unique sku index: {exc}") from exc

    @staticmethod
    def _provision(step) -> None:
        """Run one index step; failures are logged only, the index may be managed out of band."""
        try:
            step()
        except IndexProvisionFailed as exc:
            logger.warning("Index provisioning failed (continuing): %s", exc)

    def purge(self) -> int:
        """Delete every document in the collection. Returns the deleted count."""
        try:
            result = self.collection.delete_many({})
        except PyMongoError as exc:
            raise DestinationUnavailable(f"Failed to clear collection: {exc}") from exc
        logger.info("Deleted %d existing documents", result.deleted_count)
        return result.deleted_count

    def insert_record(self, record: EnrichedRecord) -> None:
        """
        Insert one record as a document.

        Raises:
            DuplicateKey: A document with the same sku already exists
            InsertFailed: Any other write error
        """
        try:
            self.collection.insert_one(to_document(record))
        except DuplicateKeyError as exc:
            raise DuplicateKey(record.sku) from exc
        except PyMongoError as exc:
            raise InsertFailed(record.sku, str(exc)) from exc

    def insert_records(self, records: list[EnrichedRecord]) -> InsertOutcome:
        outcome = InsertOutcome()
        logger.info("Inserting %d products", len(records))
        for record in records:
            try:
                self.insert_record(record)
            except DuplicateKey:
                outcome.duplicates += 1
                outcome.duplicate_skus.append(record.sku)
                logger.warning("Duplicate sku (skipped): %s", record.sku)
                continue
            except InsertFailed as exc:
                outcome.failed += 1
                outcome.failed_skus.append(record.sku)
                logger.error("%s", exc)
                continue
            outcome.inserted += 1
            logger.debug("Inserted %s - %s", record.sku, record.title)
        return outcome

    def write(self, records: list[EnrichedRecord]) -> InsertOutcome:
        """Provision indexes, purge (when enabled) and insert every record.

        The unique sku index is built after the purge, once the collection no
        longer holds duplicated skus from an earlier unindexed load.
        """
        self._provision(self._ensure_vector_index)

        deleted = 0
        if self.purge_enabled:
            deleted = self.purge()
        else:
            logger.info("Purge disabled, existing skus will be skipped as duplicates")

        self._provision(self._ensure_sku_index)

        outcome = self.insert_records(records)
        outcome.deleted = deleted
        logger.info(
            "Loaded %d products (%d duplicates skipped, %d failed)",
            outcome.inserted,
            outcome.duplicates,
            outcome.failed,
        )
        return outcome


def write_export(records: list[EnrichedRecord], config: FileConfig) -> tuple[str, int]:
    """
    Write every record as one JSON array to the configured path.

    The file is replaced in full on every run. ``s3://bucket/key`` paths are
    uploaded to S3, anything else is written locally.

    Returns:
        Tuple of (output location, size in bytes)

    Raises:
        SinkWriteFailed: If the document cannot be written
    """
    documents = [to_document(record) for record in records]
    path = config.output_path

    if is_s3_path(path):
        try:
            bucket, key = split_s3_path(path)
            size = upload_json_to_s3(documents, bucket, key)
        except (ValueError, BotoCoreError, ClientError) as exc:
            raise SinkWriteFailed(f"Failed to upload export to {path}: {exc}") from exc
        logger.info("Exported %d products to %s", len(documents), path)
        return path, size

    try:
        filepath = write_json_atomic(documents, Path(path))
        size = filepath.stat().st_size
    except (OSError, TypeError, ValueError) as exc:
        raise SinkWriteFailed(f"Failed to write export to {path}: {exc}") from exc

    logger.info("Exported %d products to %s", len(documents), filepath)
    return str(filepath), size
