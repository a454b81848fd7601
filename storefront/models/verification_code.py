from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class VerificationCode(SQLModel, table=True):
    __tablename__ = "verification_codes"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    code: str = Field(max_length=6)
    expires_at: datetime
    verified: bool = Field(default=False)
    attempts: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
