# app/db/models/users/user.py
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

from ....utils import utc_now

class User(SQLModel, table=True):
    """Identity record owned by the identity provider; read-only for booking."""
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str = Field(max_length=100)
    email: Optional[str] = Field(max_length=100, default=None, index=True)
    is_verified: bool = Field(default=False)  # email confirmed
    role: str = Field(default="Patient", max_length=20)  # Patient, Doctor, Admin
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
