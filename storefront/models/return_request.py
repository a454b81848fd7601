from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional


class ReturnRequest(SQLModel, table=True):
    __tablename__ = "return_requests"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    order_id: str  # human readable order number

    # Request details
    reason: str  # Damaged, Wrong Item, Size Issue, Other
    message: Optional[str] = None
    status: str = Field(default="pending")  # pending, approved, rejected, completed
    admin_response: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ReturnRequestStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


RETURN_REASONS = ["Damaged", "Wrong Item", "Size Issue", "Other"]
