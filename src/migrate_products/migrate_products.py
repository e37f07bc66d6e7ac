"""Run the product catalog migration or export end to end."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from migrate_products.batch_embed import embed_in_batches
from migrate_products.config import FILE_MODE, STORE_MODE, MigrationConfig, validate_config
from migrate_products.embedding_client import EmbeddingClient
from migrate_products.extract_products import extract_products
from migrate_products.load_products import MongoSink, connect_collection, write_export
from migrate_products.models import BatchOutcome, EnrichedRecord, RunSummary
from migrate_products.transform_products import transform_products
from migrate_products.verify_migration import verify_migration

logger = logging.getLogger(__name__)


def _embed(
    records: list[EnrichedRecord],
    config: MigrationConfig,
    client: EmbeddingClient,
    cancel_event: Optional[threading.Event],
    sleep: Callable[[float], None],
) -> tuple[list[EnrichedRecord], BatchOutcome]:
    return embed_in_batches(
        records,
        client,
        batch_size=config.batch.batch_size,
        batch_delay=config.batch.batch_delay,
        progress_every=config.batch.progress_every,
        max_workers=config.batch.max_workers,
        timeout_seconds=config.batch.timeout_seconds,
        cancel_event=cancel_event,
        sleep=sleep,
    )


def run_migration(
    config: MigrationConfig,
    mode: str,
    embedding_client: Optional[EmbeddingClient] = None,
    cancel_event: Optional[threading.Event] = None,
    connect: Callable = connect_collection,
    sleep: Callable[[float], None] = time.sleep,
) -> RunSummary:
    """
    Extract, transform, embed and deliver the product catalog.

    In store mode the target collection is purged (when ``mongo.purge`` is
    set) and replaced with this run's records, then verified. In file mode the
    export file is overwritten.

    Args:
        config: Validated run configuration
        mode: "store" or "file"
        embedding_client: Client to use instead of one built from config
        cancel_event: Set to abort the run at the next window boundary
        connect: Context manager factory yielding the destination collection
        sleep: Sleep function for batch pacing

    Returns:
        RunSummary for the run

    Raises:
        PipelineError: Any fatal error (configuration, source, destination,
            file write, cancellation)
    """
    validate_config(config, mode)
    start = time.monotonic()

    logger.info("Step 1: Extracting products from source")
    products = extract_products(config.source.url, config.source.table)

    if not products:
        logger.warning("No products found in source")
        summary = RunSummary(mode=mode, extracted=0, attempted=0, succeeded=0, failed=0, duration_seconds=0.0)
        if mode == FILE_MODE and config.file.write_empty:
            summary.output_location, summary.output_bytes = write_export([], config.file)
        summary.duration_seconds = round(time.monotonic() - start, 2)
        return summary

    logger.info("Step 2: Transforming %d products", len(products))
    records = transform_products(products)

    client = embedding_client or EmbeddingClient.from_config(config.embedding)

    if mode == FILE_MODE:
        logger.info("Step 3: Generating embeddings")
        embedded, outcome = _embed(records, config, client, cancel_event, sleep)

        logger.info("Step 4: Exporting to %s", config.file.output_path)
        location, size = write_export(embedded, config.file)

        return RunSummary(
            mode=mode,
            extracted=len(products),
            attempted=outcome.attempted,
            succeeded=outcome.succeeded,
            failed=outcome.failed,
            failed_skus=outcome.failed_skus,
            duration_seconds=round(time.monotonic() - start, 2),
            output_location=location,
            output_bytes=size,
        )

    logger.info("Step 3: Connecting to document store")
    with connect(config.mongo) as collection:
        logger.info("Step 4: Generating embeddings")
        embedded, outcome = _embed(records, config, client, cancel_event, sleep)

        logger.info("Step 5: Loading products into %s.%s", config.mongo.database, config.mongo.collection)
        sink = MongoSink(
            collection,
            index_name=config.mongo.index_name,
            dimensions=config.embedding.dimensions,
            purge=config.mongo.purge,
        )
        inserted = sink.write(embedded)

        logger.info("Step 6: Verifying migration")
        report = verify_migration(collection)

    return RunSummary(
        mode=STORE_MODE,
        extracted=len(products),
        attempted=outcome.attempted,
        succeeded=outcome.succeeded,
        failed=outcome.failed,
        failed_skus=outcome.failed_skus,
        duration_seconds=round(time.monotonic() - start, 2),
        output_location=f"{config.mongo.database}.{config.mongo.collection}",
        inserted=inserted.inserted,
        duplicates=inserted.duplicates,
        insert_failures=inserted.failed,
        deleted=inserted.deleted,
        verification=report,
    )
