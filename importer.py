# importer.py
"""
Bulk import of historical shifts from the legacy text log.

One shift per line, fields separated by `` | ``::

    03/01/2024 | 0900 - 1700 | 8:00 | standup, coding

The third field (duration) is ignored and recomputed from the times.
Lines with an empty date are separators and are skipped. Any other
malformed line aborts the whole import; nothing is committed.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from domain import ImportFileError, ParseError, StorageError
from repository import LogRepository, ShiftRepository, Store
from settings import FIXED_TZ

logger = logging.getLogger(__name__)

FIELD_SEP = "|"
HHMM = re.compile(r"^\d{4}$")


@dataclass
class ImportRecord:
    time_in: int
    time_out: int
    tasks: List[str] = field(default_factory=list)

    @property
    def time_diff(self) -> int:
        return self.time_out - self.time_in


@dataclass
class ImportSummary:
    shifts: int = 0
    logs: int = 0


def _parse_stamp(day: str, hhmm: str, lineno: int, tz: tzinfo) -> datetime:
    if not HHMM.match(hhmm):
        raise ParseError(f"line {lineno}: invalid time {hhmm!r}, expected HHMM")
    try:
        dt = datetime.strptime(f"{day} {hhmm}", "%m/%d/%Y %H%M")
    except ValueError as e:
        raise ParseError(f"line {lineno}: invalid date/time {day!r} {hhmm!r}") from e
    return dt.replace(tzinfo=tz)


def parse_line(line: str, lineno: int = 0, tz: tzinfo = FIXED_TZ) -> ImportRecord | None:
    """Parses one legacy line. Returns None for blank or blank-date lines."""
    if not line.strip():
        return None
    fields = line.rstrip("\r\n").split(FIELD_SEP)
    if not fields[0].strip():
        return None
    if len(fields) != 4:
        raise ParseError(f"line {lineno}: expected 4 fields separated by '|', got {len(fields)}")
    day, span, _duration, tasks = (f.strip() for f in fields)

    parts = [p.strip() for p in span.split("-")]
    if len(parts) != 2:
        raise ParseError(f"line {lineno}: invalid time range {span!r}, expected 'HHMM - HHMM'")
    t_in = _parse_stamp(day, parts[0], lineno, tz)
    t_out = _parse_stamp(day, parts[1], lineno, tz)
    if t_out < t_in:
        t_out += timedelta(days=1)  # pasó la medianoche

    return ImportRecord(
        time_in=int(t_in.timestamp()),
        time_out=int(t_out.timestamp()),
        tasks=[t.strip() for t in tasks.split(",") if t.strip()],
    )


def import_file(store: Store, path: str | Path, tz: tzinfo = FIXED_TZ) -> ImportSummary:
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ImportFileError(f"cannot read {path}: {e}") from e

    summary = ImportSummary()
    try:
        with store.session() as session:
            for lineno, line in enumerate(text.splitlines(), start=1):
                rec = parse_line(line, lineno, tz)
                if rec is None:
                    logger.debug("line %s skipped", lineno)
                    continue
                shift = ShiftRepository.insert_closed(session, rec.time_in, rec.time_out)
                summary.shifts += 1
                for task in rec.tasks:
                    LogRepository.insert_log(session, shift.id, task, 0)
                    summary.logs += 1
            session.commit()
    except SQLAlchemyError as e:
        raise StorageError(f"import of {path} failed: {e}") from e

    logger.info("imported %s shifts and %s logs from %s", summary.shifts, summary.logs, path)
    return summary
