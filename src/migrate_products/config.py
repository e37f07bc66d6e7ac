"""Configuration loader for migrate_products.

Non-secret settings live in the ``configs/<name>.yaml`` profiles shipped with
the package; credentials and connection descriptors come from the environment
(``.env`` is honoured).
The resulting ``MigrationConfig`` is immutable and passed explicitly to each
pipeline component.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from common.config import find_config_path, load_yaml
from migrate_products.errors import ConfigurationError

CONFIG_DIR = Path(__file__).parent / "configs"

STORE_MODE = "store"
FILE_MODE = "file"
MODES = (STORE_MODE, FILE_MODE)


@dataclass(frozen=True)
class SourceConfig:
    url: Optional[str] = None
    table: str = "products"


@dataclass(frozen=True)
class EmbeddingConfig:
    model: str = "text-embedding-3-small"
    dimensions: int = 768
    api_key: Optional[str] = field(default=None, repr=False)
    max_attempts: int = 3
    backoff_base: float = 1.0
    backoff_cap: float = 30.0


@dataclass(frozen=True)
class BatchConfig:
    batch_size: int = 25
    batch_delay: float = 1.5
    progress_every: int = 10
    max_workers: int = 1
    timeout_seconds: Optional[float] = None


@dataclass(frozen=True)
class MongoConfig:
    uri: Optional[str] = field(default=None, repr=False)
    database: str = "inventory_database"
    collection: str = "items"
    index_name: str = "vector_index"
    purge: bool = True


@dataclass(frozen=True)
class FileConfig:
    output_path: Optional[str] = None
    write_empty: bool = False


@dataclass(frozen=True)
class MigrationConfig:
    source: SourceConfig = field(default_factory=SourceConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    mongo: MongoConfig = field(default_factory=MongoConfig)
    file: FileConfig = field(default_factory=FileConfig)


def load_config(
    config_name: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> MigrationConfig:
    """Load configuration from a YAML profile plus environment secrets.

    Args:
        config_name: Profile name (without .yaml) or a path to a YAML file.
                    If None, uses CONFIG_ENV env var or "prod".
        environ: Environment mapping to read secrets from (default: os.environ
                 after loading .env)

    Returns:
        Loaded MigrationConfig object
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    config_path = find_config_path(config_name, CONFIG_DIR, env_var="CONFIG_ENV")
    data = load_yaml(config_path)
    return _apply_environment(_parse_config(data), environ)


def _parse_config(data: dict) -> MigrationConfig:
    """Parse config dictionary into MigrationConfig object."""
    source = data.get("source", {})
    embedding = data.get("embedding", {})
    batch = data.get("batch", {})
    mongo = data.get("mongo", {})
    output = data.get("file", {})

    return MigrationConfig(
        source=SourceConfig(
            url=source.get("url"),
            table=source.get("table", "products"),
        ),
        embedding=EmbeddingConfig(
            model=embedding.get("model", "text-embedding-3-small"),
            dimensions=embedding.get("dimensions", 768),
            max_attempts=embedding.get("max_attempts", 3),
            backoff_base=embedding.get("backoff_base", 1.0),
            backoff_cap=embedding.get("backoff_cap", 30.0),
        ),
        batch=BatchConfig(
            batch_size=batch.get("batch_size", 25),
            batch_delay=batch.get("batch_delay", 1.5),
            progress_every=batch.get("progress_every", 10),
            max_workers=batch.get("max_workers", 1),
            timeout_seconds=batch.get("timeout_seconds"),
        ),
        mongo=MongoConfig(
            database=mongo.get("database", "inventory_database"),
            collection=mongo.get("collection", "items"),
            index_name=mongo.get("index_name", "vector_index"),
            purge=mongo.get("purge", True),
        ),
        file=FileConfig(
            output_path=output.get("output_path"),
            write_empty=output.get("write_empty", False),
        ),
    )


def _apply_environment(config: MigrationConfig, environ: Mapping[str, str]) -> MigrationConfig:
    """Fill credentials and descriptors from environment variables."""
    source_url = environ.get("SOURCE_DATABASE_URL") or config.source.url
    output_path = environ.get("EXPORT_OUTPUT_PATH") or config.file.output_path

    return replace(
        config,
        source=replace(config.source, url=source_url),
        embedding=replace(config.embedding, api_key=environ.get("OPENAI_API_KEY") or None),
        mongo=replace(config.mongo, uri=environ.get("MONGODB_URI") or None),
        file=replace(config.file, output_path=output_path),
    )


def validate_config(config: MigrationConfig, mode: str) -> None:
    """Check that everything the given mode needs is present.

    Raises:
        ConfigurationError: Listing every problem found.
    """
    problems = []

    if mode not in MODES:
        problems.append(f"mode must be one of {', '.join(MODES)}, got {mode!r}")
    if not config.source.url:
        problems.append("source database URL is required (SOURCE_DATABASE_URL or source.url)")
    if not config.embedding.api_key:
        problems.append("embedding credential is required (OPENAI_API_KEY)")
    if mode == STORE_MODE and not config.mongo.uri:
        problems.append("document store URI is required in store mode (MONGODB_URI)")
    if mode == FILE_MODE and not config.file.output_path:
        problems.append("output path is required in file mode (EXPORT_OUTPUT_PATH or file.output_path)")

    if config.embedding.dimensions <= 0:
        problems.append("embedding.dimensions must be positive")
    if config.embedding.max_attempts <= 0:
        problems.append("embedding.max_attempts must be positive")
    if config.embedding.backoff_base < 0:
        problems.append("embedding.backoff_base must not be negative")
    if config.embedding.backoff_cap < config.embedding.backoff_base:
        problems.append("embedding.backoff_cap must be >= embedding.backoff_base")
    if config.batch.batch_size <= 0:
        problems.append("batch.batch_size must be positive")
    if config.batch.batch_delay < 0:
        problems.append("batch.batch_delay must not be negative")
    if config.batch.progress_every <= 0:
        problems.append("batch.progress_every must be positive")
    if config.batch.max_workers <= 0:
        problems.append("batch.max_workers must be positive")
    if config.batch.timeout_seconds is not None and config.batch.timeout_seconds <= 0:
        problems.append("batch.timeout_seconds must be positive when set")

    if problems:
        raise ConfigurationError(problems)
