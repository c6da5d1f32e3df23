# repository.py
from __future__ import annotations

import logging
from typing import List

from sqlalchemy import event, func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import SQLModel, Field, Session, create_engine, select

from domain import (
    ConflictError, ConsistencyError, Log, NotFoundError, Shift, StorageError,
)
from utils import now_ts

logger = logging.getLogger(__name__)


class ShiftDB(SQLModel, table=True):
    __tablename__ = "shifts"

    id: int | None = Field(default=None, primary_key=True)
    time_in: int = Field(index=True)
    time_out: int | None = None
    time_diff: int | None = None


class LogDB(SQLModel, table=True):
    __tablename__ = "logs"

    id: int | None = Field(default=None, primary_key=True)
    shift_id: int = Field(foreign_key="shifts.id", index=True)
    task: str
    time: int = 0
    created_at: int | None = None


# Como mucho un turno abierto: todas las filas abiertas comparten la misma clave.
SINGLE_ACTIVE_INDEX = (
    "CREATE UNIQUE INDEX IF NOT EXISTS ux_shifts_single_active "
    "ON shifts ((time_out IS NULL)) WHERE time_out IS NULL"
)


def _enable_sqlite_fk(dbapi_conn, _record):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


def build_engine(db_url: str, echo: bool = False):
    is_sqlite = db_url.startswith("sqlite")
    kwargs = {
        "echo": echo,
        "pool_pre_ping": True,
        "connect_args": {},
    }
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    engine = create_engine(db_url, **kwargs)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_fk)
    return engine


def _to_shift(r: ShiftDB) -> Shift:
    return Shift(id=r.id, time_in=r.time_in, time_out=r.time_out, time_diff=r.time_diff)


def _to_log(r: LogDB) -> Log:
    return Log(id=r.id, shift_id=r.shift_id, task=r.task, time=r.time, created_at=r.created_at)


def _active_row(session: Session) -> ShiftDB | None:
    return session.exec(
        select(ShiftDB).where(ShiftDB.time_out.is_(None)).order_by(ShiftDB.id.desc())
    ).first()


class Store:
    """Owns the engine for one invocation. Use as a context manager."""
    def __init__(self, url: str, echo: bool = False):
        self.url = url
        try:
            self.engine = build_engine(url, echo=echo)
        except SQLAlchemyError as e:
            raise StorageError(f"invalid database url {url}: {e}") from e
        try:
            SQLModel.metadata.create_all(self.engine)
            with self.engine.begin() as conn:
                conn.exec_driver_sql(SINGLE_ACTIVE_INDEX)
        except IntegrityError as e:
            self.engine.dispose()
            raise ConsistencyError("more than one active shift is stored") from e
        except SQLAlchemyError as e:
            self.engine.dispose()
            raise StorageError(f"cannot open store {url}: {e}") from e
        logger.debug("store ready at %s", url)
        self.shifts = ShiftRepository(self)
        self.logs = LogRepository(self)

    def session(self) -> Session:
        return Session(self.engine)

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> Store:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class ShiftRepository:
    def __init__(self, store: Store):
        self.store = store

    def start_shift(self, time_in: int) -> Shift:
        try:
            with self.store.session() as session:
                row = ShiftDB(time_in=int(time_in))
                session.add(row)
                session.commit()
                session.refresh(row)
                logger.info("started shift %s at %s", row.id, row.time_in)
                return _to_shift(row)
        except IntegrityError as e:
            raise ConflictError("shift already active") from e
        except SQLAlchemyError as e:
            raise StorageError(f"cannot start shift: {e}") from e

    def stop_shift(self, time_out: int) -> Shift:
        time_out = int(time_out)
        try:
            with self.store.session() as session:
                row = _active_row(session)
                if row is None:
                    raise NotFoundError("no active shift")
                result = session.connection().execute(
                    update(ShiftDB)
                    .where(ShiftDB.id == row.id, ShiftDB.time_out.is_(None))
                    .values(time_out=time_out, time_diff=time_out - ShiftDB.time_in)
                )
                if result.rowcount != 1:
                    session.rollback()
                    raise NotFoundError("no active shift")
                session.commit()
                session.refresh(row)
                if row.time_diff < 0:
                    logger.warning("shift %s closed before it started (%ss)", row.id, row.time_diff)
                logger.info("stopped shift %s after %ss", row.id, row.time_diff)
                return _to_shift(row)
        except SQLAlchemyError as e:
            raise StorageError(f"cannot stop shift: {e}") from e

    def get_active_shift(self) -> Shift:
        try:
            with self.store.session() as session:
                row = _active_row(session)
        except SQLAlchemyError as e:
            raise StorageError(f"cannot read active shift: {e}") from e
        if row is None:
            raise NotFoundError("no active shift")
        return _to_shift(row)

    def is_active(self) -> bool:
        try:
            with self.store.session() as session:
                n = session.exec(
                    select(func.count()).select_from(ShiftDB).where(ShiftDB.time_out.is_(None))
                ).one()
        except SQLAlchemyError as e:
            raise StorageError(f"cannot count active shifts: {e}") from e
        if n > 1:
            raise ConsistencyError(f"{n} active shifts stored, expected at most one")
        return n == 1

    def list_completed(self, n: int) -> List[Shift]:
        if n <= 0:
            return []
        try:
            with self.store.session() as session:
                rows = session.exec(
                    select(ShiftDB)
                    .where(ShiftDB.time_out.is_not(None))
                    .order_by(ShiftDB.time_in.desc(), ShiftDB.id.desc())
                    .limit(n)
                ).all()
                return [_to_shift(r) for r in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"cannot list shifts: {e}") from e

    def latest_completed(self) -> Shift:
        shifts = self.list_completed(1)
        if not shifts:
            raise NotFoundError("no completed shifts")
        return shifts[0]

    @staticmethod
    def insert_closed(session: Session, time_in: int, time_out: int) -> ShiftDB:
        """Historical write path; the caller owns the transaction."""
        row = ShiftDB(time_in=time_in, time_out=time_out, time_diff=time_out - time_in)
        session.add(row)
        session.flush()
        return row


class LogRepository:
    def __init__(self, store: Store):
        self.store = store

    @staticmethod
    def insert_log(session: Session, shift_id: int, task: str, minutes: int = 0) -> LogDB:
        row = LogDB(shift_id=shift_id, task=task, time=int(minutes), created_at=now_ts())
        session.add(row)
        session.flush()
        return row

    def add_log(self, shift_id: int, task: str, minutes: int = 0) -> Log:
        try:
            with self.store.session() as session:
                row = self.insert_log(session, shift_id, task, minutes)
                session.commit()
                session.refresh(row)
                return _to_log(row)
        except SQLAlchemyError as e:
            raise StorageError(f"cannot add log: {e}") from e

    def add_to_active(self, task: str, minutes: int = 0) -> Log:
        try:
            with self.store.session() as session:
                shift = _active_row(session)
                if shift is None:
                    raise NotFoundError("no active shift")
                row = self.insert_log(session, shift.id, task, minutes)
                session.commit()
                session.refresh(row)
                logger.info("logged %r (%s min) to shift %s", task, minutes, shift.id)
                return _to_log(row)
        except SQLAlchemyError as e:
            raise StorageError(f"cannot add log: {e}") from e

    def list_logs(self, shift_id: int) -> List[Log]:
        try:
            with self.store.session() as session:
                rows = session.exec(
                    select(LogDB).where(LogDB.shift_id == shift_id).order_by(LogDB.id)
                ).all()
                return [_to_log(r) for r in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"cannot list logs: {e}") from e


__all__ = [
    "ShiftDB", "LogDB", "Store", "ShiftRepository", "LogRepository", "build_engine",
]
