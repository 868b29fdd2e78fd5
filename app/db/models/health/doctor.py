# app/db/models/health/doctor.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from ....utils import utc_now

class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", unique=True, index=True)
    clinic_id: int = Field(index=True)
    specialization: str = Field(default="", max_length=100)
    is_approved: bool = Field(default=False)
    average_rating: float = Field(default=0.0)  # maintained by the review subsystem
    schedule_version: int = Field(default=1)  # bumped by every slot batch; serializes overlap checks
    is_deleted: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
