from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime


class Cart(SQLModel, table=True):
    __tablename__ = "carts"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    total_amount: float = 0.0

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["CartItem"] = Relationship(
        back_populates="cart",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "CartItem.id"},
    )


class CartItem(SQLModel, table=True):
    __tablename__ = "cart_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    cart_id: int = Field(foreign_key="carts.id", index=True)

    line_id: str = Field(index=True)
    key: str

    product_id: int = Field(index=True)  # no FK: the product may be deleted while in a cart
    product_name: str
    brand: str
    image: Optional[str] = None

    # pack items
    is_pack: bool = False
    pack_multiplier: Optional[int] = None
    has_discount: Optional[bool] = None
    discount_percent: Optional[float] = None
    variations: Optional[list] = Field(default=None, sa_column=Column(JSON))
    item_count: Optional[int] = None

    # single variant items
    size: Optional[str] = None
    color: Optional[str] = None

    quantity: int = 1
    unit_price: Optional[float] = None
    total_price: float = 0.0

    cart: Optional[Cart] = Relationship(back_populates="items")
