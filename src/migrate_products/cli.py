"""CLI for migrating the product catalog."""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from common.cli_helpers import setup_logging
from migrate_products.config import load_config
from migrate_products.errors import PipelineError
from migrate_products.helpers import apply_overrides, format_summary, parse_migrate_products_args
from migrate_products.migrate_products import run_migration

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    args = parse_migrate_products_args(argv)

    load_dotenv()
    setup_logging(args.log_level or os.environ.get("LOG_LEVEL", "INFO"))

    try:
        config = apply_overrides(load_config(args.config), args)
        summary = run_migration(config, args.mode)
    except (FileNotFoundError, PipelineError) as exc:
        logger.error("Migration failed: %s", exc)
        sys.exit(1)

    logger.info(
        "Migration complete: %d attempted, %d succeeded, %d failed in %.2fs",
        summary.attempted,
        summary.succeeded,
        summary.failed,
        summary.duration_seconds,
    )
    if summary.failed_skus:
        logger.warning("Products without embeddings: %s", ", ".join(summary.failed_skus))
    print(format_summary(summary))


if __name__ == "__main__":
    main()
