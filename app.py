# -----------------------------------------------
# ⏱️ shiftlog: registro de turnos desde la consola
# -----------------------------------------------
# Requiere: sqlmodel, pandas
# Un comando por invocación; "status" si no se indica ninguno.

from __future__ import annotations

import argparse
import logging
import sys

from domain import (
    ConflictError, ImportFileError, NotFoundError, ParseError, StatusReport,
    StorageError,
)
from importer import import_file
from repository import Store
from services import StatusEngine, build_standup
from settings import DEFAULT_LIST_COUNT, LOG_FORMAT, LOG_LEVEL, database_url
from utils import (
    format_absolute, format_delta, format_duration, logs_to_dataframe,
    now_ts, parse_override_time, shifts_to_dataframe,
)

__version__ = "0.1.0"

logger = logging.getLogger("cli")

EXIT_OK = 0
EXIT_EXPECTED = 1
EXIT_INPUT = 2
EXIT_STORAGE = 3


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="shiftlog", description="Track work shifts against a 9 hour target.")
    p.add_argument("--db", default=None, help="SQLAlchemy database URL (default: per-user data directory).")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = p.add_subparsers(dest="cmd")

    ps = sub.add_parser("start", help="Activate a shift.")
    ps.add_argument("--time", default=None, help="Override clock-in time, 'H:MM M/D/YYYY' (-06:00).")

    pst = sub.add_parser("stop", help="Stop the active shift.")
    pst.add_argument("--time", default=None, help="Override clock-out time, 'H:MM M/D/YYYY' (-06:00).")

    pl = sub.add_parser("log", help="Log a task to the active shift.")
    pl.add_argument("task", help="Task description.")
    pl.add_argument("-t", "--time", type=int, default=0, help="Elapsed task time, in minutes.")

    pli = sub.add_parser("list", help="List completed shifts, most recent first.")
    pli.add_argument("n", type=int, nargs="?", default=DEFAULT_LIST_COUNT, help="Number of shifts to show.")

    sub.add_parser("stand", help="Logs of the last completed shift and the active one.")
    sub.add_parser("status", help="Show the current status (default).")

    pi = sub.add_parser("import", help="Import legacy shift records from a text file.")
    pi.add_argument("path", help="File to import.")
    return p


# =========================
# Comandos
# =========================
def _remaining_line(report: StatusReport) -> str:
    r = report.remaining
    return f"Remaining: {format_delta(r)} [{r.band.value}]"


def cmd_start(store: Store, args) -> int:
    shift = store.shifts.start_shift(parse_override_time(args.time))
    print(f"Shift started at {format_absolute(shift.time_in)}")
    return EXIT_OK


def cmd_stop(store: Store, args) -> int:
    shift = store.shifts.stop_shift(parse_override_time(args.time))
    worked = format_duration(abs(shift.time_diff))
    sign = "-" if shift.time_diff < 0 else ""
    print(f"Shift stopped at {format_absolute(shift.time_out)}, hours worked: {sign}{worked}")
    return EXIT_OK


def cmd_log(store: Store, args) -> int:
    log = store.logs.add_to_active(args.task, args.time)
    engine = StatusEngine(store.shifts)
    shift = store.shifts.get_active_shift()
    print(f"Logged '{log.task}' ({log.time} min)")
    print(f"Remaining: {format_delta(engine.remaining(shift))}")
    return EXIT_OK


def cmd_list(store: Store, args) -> int:
    shifts = store.shifts.list_completed(args.n)
    if not shifts:
        print("No completed shifts.")
        return EXIT_OK
    print(shifts_to_dataframe(shifts).to_string(index=False))
    return EXIT_OK


def cmd_stand(store: Store, args) -> int:
    for group in build_standup(store.shifts, store.logs):
        print(f"== {format_absolute(group.shift.time_in)}")
        if group.logs:
            print(logs_to_dataframe(group.logs).to_string(index=False))
        else:
            print("(no logs)")
    return EXIT_OK


def cmd_status(store: Store, args) -> int:
    report = StatusEngine(store.shifts).status(now_ts())
    if report.active:
        print(f"Shift active since {format_absolute(report.time_in)}")
        print(f"Expected out: {format_absolute(report.expected_out, short=True)}")
        print(_remaining_line(report))
    else:
        print("No active shift.")
    print(f"Balance: {format_duration(abs(report.balance))}")
    return EXIT_OK


def cmd_import(store: Store, args) -> int:
    summary = import_file(store, args.path)
    print(f"Imported {summary.shifts} shifts and {summary.logs} logs.")
    return EXIT_OK


COMMANDS = {
    "start": cmd_start,
    "stop": cmd_stop,
    "log": cmd_log,
    "list": cmd_list,
    "stand": cmd_stand,
    "status": cmd_status,
    "import": cmd_import,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else LOG_LEVEL, format=LOG_FORMAT)
    handler = COMMANDS[args.cmd or "status"]

    try:
        with Store(args.db or database_url()) as store:
            return handler(store, args)
    except (NotFoundError, ConflictError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_EXPECTED
    except (ParseError, ImportFileError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_INPUT
    except StorageError as e:
        logger.error("storage failure: %s", e, exc_info=args.verbose)
        return EXIT_STORAGE


if __name__ == "__main__":
    sys.exit(main())
