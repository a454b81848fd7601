from pydantic import BaseModel, Field, field_validator
from typing import Optional

from storefront.models.return_request import RETURN_REASONS, ReturnRequestStatus

RETURN_STATUSES = [
    ReturnRequestStatus.PENDING,
    ReturnRequestStatus.APPROVED,
    ReturnRequestStatus.REJECTED,
    ReturnRequestStatus.COMPLETED,
]


class ReturnRequestCreate(BaseModel):
    order_id: str
    reason: str
    message: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("reason")
    @classmethod
    def check_reason(cls, v):
        if v not in RETURN_REASONS:
            raise ValueError(f"reason must be one of {', '.join(RETURN_REASONS)}")
        return v


class ReturnRequestUpdate(BaseModel):
    status: str
    admin_response: Optional[str] = None

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        if v not in RETURN_STATUSES:
            raise ValueError(f"status must be one of {', '.join(RETURN_STATUSES)}")
        return v
