"""Helper functions for migrate_products CLI."""

from __future__ import annotations

import argparse
import json
from dataclasses import replace

from common.cli_helpers import parse_non_negative_float, parse_positive_int
from common.serialization import serialize_dataclass
from migrate_products.config import MODES, MigrationConfig
from migrate_products.models import RunSummary


def parse_migrate_products_args(argv: list[str] | None = None) -> argparse.Namespace:
    '''Parse CLI arguments for migrate_products.'''

    parser = argparse.ArgumentParser(
        description="Migrate the product catalog into a vector-enabled document store or export file.",
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        required=True,
        help="store: replace the document store collection; file: write a JSON export",
    )
    parser.add_argument("--config", default=None, help="Config profile name or YAML path (default: CONFIG_ENV or prod)")

    # Batch options
    parser.add_argument(
        "--batch-size",
        type=lambda v: parse_positive_int(v, "batch-size"),
        default=None,
        help="Products per embedding batch",
    )
    parser.add_argument(
        "--batch-delay",
        type=lambda v: parse_non_negative_float(v, "batch-delay"),
        default=None,
        help="Seconds to wait between batches",
    )
    parser.add_argument(
        "--max-workers",
        type=lambda v: parse_positive_int(v, "max-workers"),
        default=None,
        help="Concurrent embedding calls per batch",
    )

    # Output options
    parser.add_argument("--output", default=None, help="Export path in file mode (local path or s3://bucket/key)")
    parser.add_argument(
        "--no-purge",
        action="store_true",
        help="Keep existing documents in store mode (existing skus are skipped as duplicates)",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")

    return parser.parse_args(argv)


def apply_overrides(config: MigrationConfig, args: argparse.Namespace) -> MigrationConfig:
    '''Apply CLI flag overrides on top of the loaded configuration.'''

    batch_changes = {}
    if args.batch_size is not None:
        batch_changes["batch_size"] = args.batch_size
    if args.batch_delay is not None:
        batch_changes["batch_delay"] = args.batch_delay
    if args.max_workers is not None:
        batch_changes["max_workers"] = args.max_workers

    config = replace(config, batch=replace(config.batch, **batch_changes))
    if args.output:
        config = replace(config, file=replace(config.file, output_path=args.output))
    if args.no_purge:
        config = replace(config, mongo=replace(config.mongo, purge=False))
    return config


def format_summary(summary: RunSummary) -> str:
    '''Render the run summary as one JSON line, omitting fields that do not apply.'''

    data = serialize_dataclass(summary, drop_none=True)
    return json.dumps(data, ensure_ascii=False, sort_keys=True)
