import json
import logging
from typing import Any

import boto3

logger = logging.getLogger(__name__)


def get_s3_client():
    """Create S3 client."""
    return boto3.client("s3")


def is_s3_path(path: str) -> bool:
    return path.startswith("s3://")


def split_s3_path(path: str) -> tuple[str, str]:
    """Split ``s3://bucket/key`` into ``(bucket, key)``."""
    if not is_s3_path(path):
        raise ValueError(f"Not an S3 path: {path}")
    bucket, _, key = path[len("s3://"):].partition("/")
    if not bucket or not key:
        raise ValueError(f"S3 path must be s3://bucket/key, got: {path}")
    return bucket, key


def upload_json_to_s3(data: Any, bucket: str, key: str, indent: int | None = 2) -> int:
    """Upload an in-memory JSON document to S3. Returns the body size in bytes."""
    body = json.dumps(data, indent=indent, ensure_ascii=False, default=str).encode("utf-8")

    s3 = get_s3_client()
    s3.put_object(
        Bucket=bucket,
        Key=key,
        Body=body,
        ContentType="application/json",
    )
    logger.debug("Uploaded %d bytes to s3://%s/%s", len(body), bucket, key)
    return len(body)
