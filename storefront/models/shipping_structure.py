from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import Optional
from datetime import datetime


class ShippingStructure(SQLModel, table=True):
    __tablename__ = "shipping_structures"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True)
    description: Optional[str] = None

    # sorted by min_items:
    # [{min_items, max_items, base_cost, cost_per_additional_item, is_free}]
    rules: list = Field(default_factory=list, sa_column=Column(JSON))

    is_default: bool = Field(default=False, index=True)
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
