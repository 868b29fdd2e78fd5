# app/db/models/users/patient.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime

from ....utils import utc_now

class Patient(SQLModel, table=True):
    __tablename__ = "patients"
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", unique=True, index=True)
    is_deleted: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
