from typing import Optional
import logging

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ....application.ports.unit_of_work import UnitOfWork
from .conflict_reporter import is_persistence_error, report_conflict
from .repositories.appointments_repository_sql import SqlAppointmentsRepository
from .repositories.slot_repository_sql import SqlSlotRepository

logger = logging.getLogger(__name__)


class SqlUnitOfWork(UnitOfWork):
    """One session, one transaction; rolled back unless ``commit`` succeeded."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session: Optional[Session] = None
        self._committed = False

    def __enter__(self) -> "SqlUnitOfWork":
        self.session = Session(self.engine, expire_on_commit=False)
        self._committed = False
        self.slots = SqlSlotRepository(self.session)
        self.appointments = SqlAppointmentsRepository(self.session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if not self._committed:
                self.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(f"Rollback failed: {rollback_error}")
            if exc is None:
                raise report_conflict(rollback_error) from rollback_error
        finally:
            self.session.close()
        if exc is not None and is_persistence_error(exc):
            raise report_conflict(exc) from exc

    def commit(self) -> None:
        self.session.commit()
        self._committed = True

    def rollback(self) -> None:
        self.session.rollback()


class SqlUnitOfWorkFactory:
    def __init__(self, engine: Engine):
        self.engine = engine

    def __call__(self) -> SqlUnitOfWork:
        return SqlUnitOfWork(self.engine)
