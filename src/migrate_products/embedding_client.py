"""Embedding provider adapter and the retry-with-backoff client around it."""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

import openai
from openai import OpenAI

from migrate_products.config import EmbeddingConfig
from migrate_products.errors import EmbeddingRejected, EmbeddingUnavailable, ProviderError

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    def embed(self, text: str) -> list[float]:
        ...


class OpenAIEmbeddingProvider:
    """Calls the OpenAI embeddings endpoint for one text at a time."""

    def __init__(self, api_key: str, model: str, dimensions: int):
        self.client = OpenAI(api_key=api_key, max_retries=0)
        self.model = model
        self.dimensions = dimensions

    def embed(self, text: str) -> list[float]:
        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=text,
                dimensions=self.dimensions,
            )
        except openai.RateLimitError as exc:
            raise ProviderError(str(exc), rate_limited=True) from exc
        except openai.OpenAIError as exc:
            raise ProviderError(str(exc)) from exc

        data = getattr(response, "data", None)
        if not data or getattr(data[0], "embedding", None) is None:
            raise ProviderError("Embedding response contained no vector")
        return list(data[0].embedding)


class EmbeddingClient:
    """
    Retry policy around an embedding provider.

    Rate-limited calls are retried up to ``max_attempts`` total attempts,
    sleeping ``min(base_delay * 2**attempt, max_delay)`` between them. Any other
    provider error is raised immediately without a retry.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        dimensions: int = 768,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider
        self.dimensions = dimensions
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.sleep = sleep

    @classmethod
    def from_config(cls, config: EmbeddingConfig) -> EmbeddingClient:
        provider = OpenAIEmbeddingProvider(
            api_key=config.api_key,
            model=config.model,
            dimensions=config.dimensions,
        )
        return cls(
            provider,
            dimensions=config.dimensions,
            max_attempts=config.max_attempts,
            base_delay=config.backoff_base,
            max_delay=config.backoff_cap,
        )

    def backoff_delay(self, attempt: int) -> float:
        return min(self.base_delay * 2 ** attempt, self.max_delay)

    def embed(self, text: str) -> list[float]:
        """
        Embed one text.

        Raises:
            EmbeddingUnavailable: Still rate limited after the last attempt
            EmbeddingRejected: Any other provider error, or a vector of the wrong size
        """
        for attempt in range(self.max_attempts):
            try:
                vector = self.provider.embed(text)
            except ProviderError as exc:
                if not exc.rate_limited:
                    raise EmbeddingRejected(str(exc)) from exc
                if attempt == self.max_attempts - 1:
                    raise EmbeddingUnavailable(
                        f"Rate limited after {self.max_attempts} attempts: {exc}"
                    ) from exc
                delay = self.backoff_delay(attempt)
                logger.warning("Rate limit hit. Retrying in %.1f seconds...", delay)
                self.sleep(delay)
                continue

            if len(vector) != self.dimensions:
                raise EmbeddingRejected(
                    f"Expected {self.dimensions} dimensions, got {len(vector)}"
                )
            return vector

        raise EmbeddingUnavailable("Max retries exceeded")
