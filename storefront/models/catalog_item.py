from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import datetime


class CatalogItem(SQLModel, table=True):
    """Brand, category, subcategory, gender or sale entry offered to product forms and filters."""
    __tablename__ = "catalog_items"
    __table_args__ = (UniqueConstraint("type", "name", "parent_id", name="uq_catalog_items_type_name_parent"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    type: str = Field(index=True)
    name: str

    # subcategories point at their category
    parent_id: Optional[int] = Field(default=None, foreign_key="catalog_items.id")

    # sales only, percent
    discount: float = Field(default=0)

    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
