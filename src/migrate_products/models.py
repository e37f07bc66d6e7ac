"""Data models for the migrate_products pipeline."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class SourceRecord:
    """Product row as read from the source table."""
    sku: str
    handle: str
    title: str
    description: Optional[str]
    vendor: str
    price: Optional[float]
    currency: str
    image_url: str
    product_url: str
    tags: Optional[str]
    search_content: Optional[str]


@dataclass(frozen=True)
class EnrichedRecord:
    """Product in the destination shape, with normalized tags and embedding text."""
    sku: str
    handle: str
    title: str
    description: str
    vendor: str
    price: Optional[float]
    currency: str
    image_url: str
    product_url: str
    tags: list[str]
    search_content: str
    embedding_text: str
    embedding: Optional[list[float]] = None

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None


@dataclass
class BatchOutcome:
    """Embedding counts accumulated across every batch of a run."""
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    failed_skus: list[str] = field(default_factory=list)

    def record_success(self) -> None:
        self.attempted += 1
        self.succeeded += 1

    def record_failure(self, sku: str) -> None:
        self.attempted += 1
        self.failed += 1
        self.failed_skus.append(sku)


@dataclass
class InsertOutcome:
    """Per-document results of writing to the document store."""
    inserted: int = 0
    duplicates: int = 0
    failed: int = 0
    deleted: int = 0
    duplicate_skus: list[str] = field(default_factory=list)
    failed_skus: list[str] = field(default_factory=list)


@dataclass
class VerificationReport:
    """Read-back of the destination collection after a store run."""
    total: int
    with_embedding: int
    sample: Optional[dict[str, Any]] = None

    @property
    def missing_embedding(self) -> int:
        return self.total - self.with_embedding


@dataclass
class RunSummary:
    """Final operator-facing summary of one run."""
    mode: str
    extracted: int
    attempted: int
    succeeded: int
    failed: int
    duration_seconds: float
    output_location: Optional[str] = None
    failed_skus: list[str] = field(default_factory=list)
    inserted: Optional[int] = None
    duplicates: Optional[int] = None
    insert_failures: Optional[int] = None
    deleted: Optional[int] = None
    output_bytes: Optional[int] = None
    verification: Optional[VerificationReport] = None
