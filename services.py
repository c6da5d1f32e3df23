# services.py
from __future__ import annotations

from typing import Callable, List

from domain import Delta, NotFoundError, Shift, StandupGroup, StatusReport
from repository import LogRepository, ShiftRepository
from settings import TARGET_SECONDS
from utils import now_ts, signed_delta


class StatusEngine:
    """Business rules for the active shift against the daily target."""
    def __init__(self, shifts: ShiftRepository, target_seconds: int = TARGET_SECONDS,
                 clock: Callable[[], int] = now_ts):
        self.shifts = shifts
        self.target_seconds = target_seconds
        self.clock = clock

    def remaining(self, shift: Shift, now: int | None = None) -> Delta:
        """Worked time so far minus the target. Always measured against wall time."""
        now = self.clock() if now is None else now
        return signed_delta(now - shift.time_in, self.target_seconds)

    def expected_out(self, shift: Shift) -> int:
        return shift.time_in + self.target_seconds

    def balance(self) -> int:
        # TODO: accumulate surplus/deficit across closed shifts once the rule is defined.
        return 0

    def status(self, now: int | None = None) -> StatusReport:
        if not self.shifts.is_active():
            return StatusReport(active=False, balance=self.balance())
        shift = self.shifts.get_active_shift()
        return StatusReport(
            active=True,
            time_in=shift.time_in,
            expected_out=self.expected_out(shift),
            remaining=self.remaining(shift, now),
            balance=self.balance(),
        )


def build_standup(shifts: ShiftRepository, logs: LogRepository) -> List[StandupGroup]:
    """Latest completed shift and the active one (if any), logs oldest first."""
    last = shifts.latest_completed()
    groups = [StandupGroup(shift=last, logs=logs.list_logs(last.id))]
    try:
        active = shifts.get_active_shift()
    except NotFoundError:
        return groups
    groups.append(StandupGroup(shift=active, logs=logs.list_logs(active.id)))
    return groups
