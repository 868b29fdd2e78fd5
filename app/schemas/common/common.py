# app/schemas/common/common.py
from pydantic import BaseModel

class MessageResponse(BaseModel):
    success: bool = True
    message: str
