from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any

from src.adapters.aws import s3_client
from src.adapters.persistence.timetable_document import (
    dumps_document,
    timetable_key,
    timetable_to_dict,
)
from src.app.ports.output import ITimetableSink
from src.domain.models import TimetableRecord

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class S3TimetableSink(ITimetableSink):
    """Stores timetable documents in S3 under <prefix>/<YYYY-MM-DD>/<route_id>.json.

    S3 has no directory rename, so objects are uploaded as they come and
    abort() deletes the ones written during this run.

    Env vars:
      - TIMETABLE_BUCKET (required)
      - TIMETABLE_PREFIX (default: timetables)
      - ENDPOINT_URL (preferred for LocalStack)
      - AWS_REGION
    """

    bucket: str | None = None
    prefix: str | None = None

    _written: list[str] = field(default_factory=list)
    _client: Any | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def _bucket(self) -> str:
        value = self.bucket or os.getenv("TIMETABLE_BUCKET")
        if not value:
            raise RuntimeError("Missing TIMETABLE_BUCKET")
        return value

    def _prefix(self) -> str:
        return (self.prefix or os.getenv("TIMETABLE_PREFIX") or "timetables").strip("/")

    def _s3(self) -> Any:
        # boto3 clients are thread-safe, sessions are not: build one client once.
        with self._lock:
            if self._client is None:
                self._client = s3_client()
            return self._client

    def put_timetable(self, record: TimetableRecord) -> str:
        key = f"{self._prefix()}/{timetable_key(record.service_date, record.route_id)}"
        self._s3().put_object(
            Bucket=self._bucket(),
            Key=key,
            Body=dumps_document(timetable_to_dict(record)).encode("utf-8"),
            ContentType="application/json",
        )
        with self._lock:
            self._written.append(key)
        return key

    def commit(self) -> None:
        logger.info(
            "Uploaded %d timetable documents to s3://%s/%s",
            len(self._written),
            self._bucket(),
            self._prefix(),
        )
        self._written.clear()

    def abort(self) -> None:
        if not self._written:
            return
        s3 = self._s3()
        bucket = self._bucket()
        keys, self._written = self._written, []
        # delete_objects accepts at most 1000 keys per call.
        for start in range(0, len(keys), 1000):
            batch = keys[start : start + 1000]
            s3.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
            )
        logger.warning("Removed %d uploaded documents after abort", len(keys))
