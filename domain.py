# domain.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass
class Shift:
    """One clock-in to clock-out work session. `time_out` is None while active."""
    id: int
    time_in: int
    time_out: int | None = None
    time_diff: int | None = None

    @property
    def active(self) -> bool:
        return self.time_out is None


@dataclass
class Log:
    """A task entry attributed to a shift, with elapsed minutes."""
    id: int
    shift_id: int
    task: str
    time: int = 0
    created_at: int | None = None


class Band(str, Enum):
    UNDER = "under"
    NEAR = "near"
    OVER = "over"


@dataclass(frozen=True)
class Delta:
    """Signed difference `actual - target` in seconds, with its band."""
    seconds: int
    band: Band

    @property
    def magnitude(self) -> int:
        return abs(self.seconds)

    @property
    def sign(self) -> str:
        return "-" if self.seconds < 0 else "+"


@dataclass
class StatusReport:
    active: bool
    time_in: int | None = None
    expected_out: int | None = None
    remaining: Delta | None = None
    # Placeholder until cross-shift accumulation exists; always present.
    balance: int = 0


@dataclass
class StandupGroup:
    shift: Shift
    logs: list[Log] = field(default_factory=list)


# =========================
# Errores
# =========================
class TrackerError(Exception):
    """Base error for every expected failure of a command."""


class ConflictError(TrackerError):
    pass


class NotFoundError(TrackerError):
    pass


class ParseError(TrackerError):
    pass


class StorageError(TrackerError):
    pass


class ConsistencyError(StorageError):
    """Stored data breaks an invariant (e.g. more than one active shift)."""


class ImportFileError(TrackerError):
    pass


__all__ = [
    "Shift", "Log", "Band", "Delta", "StatusReport", "StandupGroup",
    "TrackerError", "ConflictError", "NotFoundError", "ParseError",
    "StorageError", "ConsistencyError", "ImportFileError",
]
