from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import Optional
from datetime import datetime


class Product(SQLModel, table=True):
    __tablename__ = "products"

    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    brand: str = Field(index=True)
    category: Optional[str] = Field(default=None, index=True)
    subcategory: Optional[str] = None
    gender: Optional[str] = None
    on_sale: bool = False
    sale_id: Optional[int] = Field(default=None, foreign_key="catalog_items.id")
    sku: Optional[str] = Field(default=None, unique=True)
    image: Optional[str] = None
    description: Optional[str] = None

    #pricing
    unit_price: float
    tax_percentage: float = 0.0

    # [{size, color, stock, sku, unit_price}]
    variants: list = Field(default_factory=list, sa_column=Column(JSON))
    # {enabled, discount_percent, variations: [{size, color, quantity}]}
    pack_config: dict = Field(
        default_factory=lambda: {"enabled": False, "discount_percent": 0, "variations": []},
        sa_column=Column(JSON),
    )

    shipping_structure_id: Optional[int] = Field(default=None, foreign_key="shipping_structures.id")
    is_active: bool = Field(default=True, index=True)

    #reviews
    average_rating: float = 0.0
    review_count: int = 0

    #timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
