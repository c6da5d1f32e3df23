# utils.py
from __future__ import annotations

import time
from datetime import datetime, tzinfo
from typing import Callable, Iterable

import pandas as pd

from domain import Band, Delta, Log, ParseError, Shift
from settings import FIXED_TZ, NEAR_WINDOW_SECONDS

OVERRIDE_FORMAT = "%H:%M %m/%d/%Y"


def now_ts() -> int:
    return int(time.time())


def parse_override_time(value: str | None = None, now: Callable[[], int] = now_ts) -> int:
    """Returns epoch seconds for `H:MM M/D/YYYY` at -06:00, or now when absent."""
    if value is None:
        return now()
    try:
        dt = datetime.strptime(value.strip(), OVERRIDE_FORMAT)
    except ValueError as e:
        raise ParseError(f"invalid time {value!r}, expected 'H:MM M/D/YYYY'") from e
    return int(dt.replace(tzinfo=FIXED_TZ).timestamp())


def _ampm(dt: datetime) -> str:
    return dt.strftime("%I:%M") + ("am" if dt.hour < 12 else "pm")


def format_absolute(ts: int, short: bool = False, tz: tzinfo | None = None) -> str:
    """`09:05am on Friday, Mar 01 2024`, or just `09:05am` when short."""
    dt = datetime.fromtimestamp(ts, tz) if tz else datetime.fromtimestamp(ts).astimezone()
    if short:
        return _ampm(dt)
    return f"{_ampm(dt)} on {dt.strftime('%A, %b %d %Y')}"


def format_duration(seconds: int) -> str:
    seconds = int(seconds)
    if seconds < 0:
        raise ValueError("format_duration expects a non-negative duration")
    h, rem = divmod(seconds, 3600)
    return f"{h:02d}:{rem // 60:02d}"


def parse_duration(text: str) -> int:
    """Inverse of format_duration: `HH:MM` to seconds."""
    try:
        hh, mm = text.strip().split(":")
        h, m = int(hh), int(mm)
    except ValueError as e:
        raise ParseError(f"invalid duration {text!r}, expected 'HH:MM'") from e
    if h < 0 or not 0 <= m < 60:
        raise ParseError(f"invalid duration {text!r}, expected 'HH:MM'")
    return h * 3600 + m * 60


def signed_delta(actual: int, target: int) -> Delta:
    diff = int(actual) - int(target)
    if diff < 0:
        band = Band.UNDER
    elif diff < NEAR_WINDOW_SECONDS:
        band = Band.NEAR
    else:
        band = Band.OVER
    return Delta(seconds=diff, band=band)


def format_delta(delta: Delta) -> str:
    return f"{delta.sign}{format_duration(delta.magnitude)}"


# =========================
# Tablas para la consola
# =========================
def shifts_to_dataframe(shifts: Iterable[Shift], tz: tzinfo | None = None) -> pd.DataFrame:
    rows = []
    for s in shifts:
        rows.append({
            "ID": s.id,
            "Date": format_absolute(s.time_in, tz=tz).split(" on ", 1)[1],
            "In": format_absolute(s.time_in, short=True, tz=tz),
            "Out": format_absolute(s.time_out, short=True, tz=tz) if s.time_out is not None else "",
            "Worked": format_duration(s.time_diff) if s.time_diff is not None and s.time_diff >= 0 else "",
        })
    return pd.DataFrame(rows, columns=["ID", "Date", "In", "Out", "Worked"])


def logs_to_dataframe(logs: Iterable[Log]) -> pd.DataFrame:
    rows = [{"Task": l.task, "Minutes": int(l.time)} for l in logs]
    return pd.DataFrame(rows, columns=["Task", "Minutes"])
