from __future__ import annotations

from typing import TYPE_CHECKING

import boto3
from botocore.client import BaseClient

from src.config import AwsSettings

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client
else:
    S3Client = BaseClient  # type: ignore[misc,assignment]


def s3_client(settings: AwsSettings | None = None) -> S3Client:
    cfg = settings or AwsSettings.from_env()
    session = boto3.session.Session(region_name=cfg.region)
    return session.client("s3", endpoint_url=cfg.endpoint_url)
