from __future__ import annotations

import logging
import os
import shutil
import threading
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from src.adapters.persistence.timetable_document import (
    dumps_document,
    timetable_key,
    timetable_to_dict,
)
from src.app.ports.output import ITimetableSink
from src.domain.models import TimetableRecord

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LocalTimetableSink(ITimetableSink):
    """Writes timetable documents as <output_dir>/<YYYY-MM-DD>/<route_id>.json.

    Documents are staged in a sibling directory and swapped into place by
    commit(); abort() removes the staging directory, so a failed run leaves
    the previous output untouched.

    Env vars:
      - TIMETABLE_OUTPUT_DIR (default: output)
    """

    output_dir: str | Path | None = None

    _staging: Path | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def _target(self) -> Path:
        value = self.output_dir or os.getenv("TIMETABLE_OUTPUT_DIR") or "output"
        return Path(value)

    def _staging_dir(self) -> Path:
        with self._lock:
            if self._staging is None:
                target = self._target()
                target.parent.mkdir(parents=True, exist_ok=True)
                self._staging = target.parent / f".{target.name}.staging-{uuid4().hex}"
                self._staging.mkdir()
            return self._staging

    def put_timetable(self, record: TimetableRecord) -> str:
        key = timetable_key(record.service_date, record.route_id)
        path = self._staging_dir() / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dumps_document(timetable_to_dict(record)), encoding="utf-8")
        return key

    def commit(self) -> None:
        staging = self._staging_dir()
        target = self._target()
        if target.exists():
            logger.info("Replacing previous output at %s", target)
            shutil.rmtree(target)
        staging.rename(target)
        self._staging = None

    def abort(self) -> None:
        with self._lock:
            staging, self._staging = self._staging, None
        if staging is not None and staging.exists():
            shutil.rmtree(staging)
