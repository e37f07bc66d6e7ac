"""Read back the destination collection after a store run."""

import logging
from typing import Optional

from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from migrate_products.models import VerificationReport

logger = logging.getLogger(__name__)

HAS_EMBEDDING = {"embedding": {"$exists": True, "$ne": None}}


def verify_migration(collection: Collection) -> Optional[VerificationReport]:
    """
    Count documents, documents with an embedding, and describe one sample.

    Read-only. A failed read is logged and returns None; it never affects the
    outcome of the run.
    """
    try:
        total = collection.count_documents({})
        with_embedding = collection.count_documents(HAS_EMBEDDING)
        sample_doc = collection.find_one({})
    except PyMongoError as exc:
        logger.warning("Verification failed: %s", exc)
        return None

    sample = None
    if sample_doc:
        embedding = sample_doc.get("embedding")
        sample = {
            "sku": sample_doc.get("sku"),
            "title": sample_doc.get("title"),
            "has_embedding": bool(embedding),
            "embedding_dimensions": len(embedding) if embedding else 0,
        }

    report = VerificationReport(total=total, with_embedding=with_embedding, sample=sample)
    logger.info(
        "Verification: %d documents, %d with embeddings, %d missing embeddings",
        report.total,
        report.with_embedding,
        report.missing_embedding,
    )
    if sample:
        logger.info(
            "Sample product: sku=%s title=%s embedding_dimensions=%d",
            sample["sku"],
            sample["title"],
            sample["embedding_dimensions"],
        )
    return report
