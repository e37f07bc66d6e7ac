"""Embed enriched records in paced, fixed-size windows."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, Iterator, Optional

from migrate_products.embedding_client import EmbeddingClient
from migrate_products.errors import EmbeddingError, RunCancelled
from migrate_products.models import BatchOutcome, EnrichedRecord

logger = logging.getLogger(__name__)


def iter_batches(records: list[EnrichedRecord], batch_size: int) -> Iterator[list[EnrichedRecord]]:
    for start in range(0, len(records), batch_size):
        yield records[start:start + batch_size]


def _embed_one(client: EmbeddingClient, record: EnrichedRecord) -> list[float] | EmbeddingError:
    try:
        return client.embed(record.embedding_text)
    except EmbeddingError as exc:
        return exc


def _check_cancelled(cancel_event: Optional[threading.Event], deadline: Optional[float]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise RunCancelled("Run cancelled")
    if deadline is not None and time.monotonic() >= deadline:
        raise RunCancelled("Run exceeded its timeout")


def _pause(
    delay: float,
    sleep: Callable[[float], None],
    cancel_event: Optional[threading.Event],
) -> None:
    if cancel_event is not None:
        cancel_event.wait(delay)
    else:
        sleep(delay)


def embed_in_batches(
    records: list[EnrichedRecord],
    client: EmbeddingClient,
    batch_size: int = 25,
    batch_delay: float = 1.5,
    progress_every: int = 10,
    max_workers: int = 1,
    timeout_seconds: Optional[float] = None,
    cancel_event: Optional[threading.Event] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> tuple[list[EnrichedRecord], BatchOutcome]:
    """
    Attach embeddings to records, one window of ``batch_size`` at a time.

    A record whose embedding fails is kept without an embedding and counted as
    failed; no failure stops the remaining records. Consecutive windows are
    separated by ``batch_delay`` seconds. Cancellation and the optional timeout
    are checked at every window boundary.

    Args:
        records: Transformed records, in output order
        client: Embedding client (owns per-call retries)
        batch_size: Records per window
        batch_delay: Seconds to wait between windows
        progress_every: Log progress after every Nth successful embedding
        max_workers: Embed a window's records concurrently when > 1
        timeout_seconds: Abort with RunCancelled once this much time has passed
        cancel_event: Abort with RunCancelled once this event is set
        sleep: Sleep function used for pacing when no cancel_event is given

    Returns:
        Tuple of (records in input order, BatchOutcome)
    """
    outcome = BatchOutcome()
    results: list[EnrichedRecord] = []
    deadline = time.monotonic() + timeout_seconds if timeout_seconds else None
    total = len(records)
    total_batches = (total + batch_size - 1) // batch_size

    executor = ThreadPoolExecutor(max_workers=max_workers) if max_workers > 1 else None
    try:
        for batch_num, batch in enumerate(iter_batches(records, batch_size), 1):
            _check_cancelled(cancel_event, deadline)
            logger.info("Batch %d/%d (%d products)", batch_num, total_batches, len(batch))

            if executor is not None:
                embeddings = list(executor.map(lambda r: _embed_one(client, r), batch))
            else:
                embeddings = [_embed_one(client, record) for record in batch]

            for record, embedding in zip(batch, embeddings):
                if isinstance(embedding, EmbeddingError):
                    outcome.record_failure(record.sku)
                    logger.warning("Failed to embed %s: %s", record.sku, embedding)
                    results.append(record)
                    continue

                outcome.record_success()
                logger.debug("Embedded %s - %s", record.sku, record.title)
                results.append(replace(record, embedding=embedding))
                if outcome.succeeded % progress_every == 0:
                    logger.info("Embedded %d/%d products", outcome.succeeded, total)

            if batch_num < total_batches:
                logger.info("Waiting %.1fs before next batch...", batch_delay)
                _pause(batch_delay, sleep, cancel_event)
    finally:
        if executor is not None:
            executor.shutdown(wait=True)

    logger.info(
        "Embedding complete: %d attempted, %d succeeded, %d failed",
        outcome.attempted,
        outcome.succeeded,
        outcome.failed,
    )
    return results, outcome
