from __future__ import annotations

import os
from dataclasses import dataclass


def _env_str(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip() or None


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class AwsSettings:
    """Region and endpoint for the S3 sink.

    ENDPOINT_URL wins; with USE_LOCALSTACK set and no ENDPOINT_URL, boto3 is
    pointed at LOCALSTACK_ENDPOINT_URL. Otherwise endpoint_url is None (real AWS).
    """

    region: str = "eu-west-1"
    endpoint_url: str | None = None

    @staticmethod
    def from_env() -> "AwsSettings":
        endpoint_url = _env_str("ENDPOINT_URL")
        if endpoint_url is None and _env_bool("USE_LOCALSTACK", False):
            endpoint_url = _env_str("LOCALSTACK_ENDPOINT_URL") or "http://localhost:4566"
        return AwsSettings(
            region=_env_str("AWS_REGION") or "eu-west-1",
            endpoint_url=endpoint_url,
        )


@dataclass(frozen=True, slots=True)
class BuildSettings:
    """Where the feed comes from and where timetables go.

    Env vars:
      - GTFS_PATH (default: data/gtfs)
      - TIMETABLE_OUTPUT_DIR (default: output)
      - TIMETABLE_BUCKET: when set, documents go to S3 instead of the filesystem
      - TIMETABLE_PREFIX (default: timetables)
      - TIMETABLE_WORKERS (default: 1)
      - LOG_LEVEL (default: INFO)
    """

    gtfs_path: str = "data/gtfs"
    output_dir: str = "output"
    bucket: str | None = None
    prefix: str = "timetables"
    workers: int = 1
    log_level: str = "INFO"

    @staticmethod
    def from_env() -> "BuildSettings":
        return BuildSettings(
            gtfs_path=_env_str("GTFS_PATH") or "data/gtfs",
            output_dir=_env_str("TIMETABLE_OUTPUT_DIR") or "output",
            bucket=_env_str("TIMETABLE_BUCKET"),
            prefix=(_env_str("TIMETABLE_PREFIX") or "timetables").strip("/"),
            workers=max(1, _env_int("TIMETABLE_WORKERS", 1)),
            log_level=(_env_str("LOG_LEVEL") or "INFO").upper(),
        )
