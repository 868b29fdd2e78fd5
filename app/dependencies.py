# app/dependencies.py
import logging
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from .application.ports.audit_logger import AuditLogger
from .application.ports.unit_of_work import UnitOfWorkFactory
from .application.services.booking_service import BookingService
from .application.services.lifecycle_service import LifecycleService
from .application.services.slot_service import SlotService
from .config import settings
from .database import get_engine, get_session
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.persistence.sqlalchemy.repositories.directory_repository_sql import (
    SqlDirectory,
    SqlIdentityProvider,
)
from .infrastructure.persistence.sqlalchemy.unit_of_work import SqlUnitOfWorkFactory
from .utils import decode_jwt_token

logger = logging.getLogger(__name__)

oauth2_scheme = HTTPBearer(auto_error=False)


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme)) -> str:
    """Resolve the caller's user id from the bearer token's ``sub`` claim."""
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authentication required")
    payload = decode_jwt_token(credentials.credentials)
    if not payload:
        logger.warning("JWT token decode failed - invalid or expired token")
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: missing user ID")
    return str(user_id)


def get_uow_factory() -> UnitOfWorkFactory:
    return SqlUnitOfWorkFactory(get_engine())


def get_audit_logger() -> AuditLogger:
    return StdAuditLogger("audit")


def get_slot_service(
    session: Session = Depends(get_session),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    audit: AuditLogger = Depends(get_audit_logger),
) -> SlotService:
    return SlotService(uow_factory=uow_factory, directory=SqlDirectory(session), audit=audit)


def get_booking_service(
    session: Session = Depends(get_session),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    audit: AuditLogger = Depends(get_audit_logger),
) -> BookingService:
    return BookingService(
        uow_factory=uow_factory,
        directory=SqlDirectory(session),
        identity=SqlIdentityProvider(session),
        audit=audit,
    )


def get_lifecycle_service(
    session: Session = Depends(get_session),
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    audit: AuditLogger = Depends(get_audit_logger),
) -> LifecycleService:
    return LifecycleService(
        uow_factory=uow_factory,
        directory=SqlDirectory(session),
        identity=SqlIdentityProvider(session),
        audit=audit,
        admin_role=settings.ADMIN_ROLE,
    )
