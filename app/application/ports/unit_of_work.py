from typing import Callable, Protocol

from .appointments_repo import AppointmentsRepository
from .slot_repo import SlotRepository


class StaleVersionError(Exception):
    """A version-checked write found the row changed since it was read.

    ``claiming`` marks a failed attempt to take a free slot, i.e. a lost booking race.
    """

    def __init__(self, entity: str, entity_id: int, expected_version: int, claiming: bool = False):
        self.entity = entity
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.claiming = claiming
        super().__init__(f"{entity} {entity_id} no longer at version {expected_version}")


class UnitOfWork(Protocol):
    """Scope in which slot and appointment writes commit or roll back together.

    Leaving the ``with`` block without calling ``commit`` rolls back.
    """

    slots: SlotRepository
    appointments: AppointmentsRepository

    def __enter__(self) -> "UnitOfWork":
        ...

    def __exit__(self, exc_type, exc, tb) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


UnitOfWorkFactory = Callable[[], UnitOfWork]
