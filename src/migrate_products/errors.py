"""Error types for the migrate_products pipeline.

Fatal errors (configuration, source, destination connectivity, file write,
cancellation) abort the run. Per-item embedding and insert errors are
absorbed into outcome counters by the scheduler and the store sink.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every error raised by the pipeline."""


class ConfigurationError(PipelineError):
    """Required settings are missing or invalid."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


class SourceError(PipelineError):
    pass


class SourceUnavailable(SourceError):
    """The source store could not be opened."""


class SourceQueryFailed(SourceError):
    """The source store opened but the read failed."""


class ProviderError(Exception):
    """Error reported by an embedding provider.

    ``rate_limited`` is the only property the retry policy looks at.
    """

    def __init__(self, message: str, rate_limited: bool = False):
        super().__init__(message)
        self.rate_limited = rate_limited


class EmbeddingError(PipelineError):
    pass


class EmbeddingRejected(EmbeddingError):
    """The provider refused the request (not retried)."""


class EmbeddingUnavailable(EmbeddingError):
    """The provider kept rate limiting until attempts ran out."""


class DestinationError(PipelineError):
    pass


class DestinationUnavailable(DestinationError):
    """The document store could not be reached."""


class IndexProvisionFailed(DestinationError):
    """Index lookup or creation failed. Logged, never fatal."""


class DuplicateKey(DestinationError):
    """A document with the same sku already exists."""

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"Duplicate sku: {sku}")


class InsertFailed(DestinationError):
    """A single document insert failed for a reason other than a duplicate."""

    def __init__(self, sku: str, reason: str):
        self.sku = sku
        super().__init__(f"Insert failed for sku {sku}: {reason}")


class SinkWriteFailed(PipelineError):
    """The export file could not be written."""


class RunCancelled(PipelineError):
    """The run was cancelled or exceeded its deadline."""
