from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel


class ReviewCreate(SQLModel):
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=10, max_length=1000)


class ReviewUpdate(SQLModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = Field(default=None, min_length=10, max_length=1000)


class ReviewRead(SQLModel):
    id: int
    user_id: int
    product_id: int
    user_name: Optional[str] = None
    rating: int
    comment: str
    created_at: datetime
    updated_at: Optional[datetime] = None
