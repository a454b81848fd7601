from sqlmodel import SQLModel, Field , Relationship
from sqlalchemy import Column, JSON
from typing import Optional , TYPE_CHECKING

if TYPE_CHECKING:
    from storefront.models.order import Order

class OrderItem(SQLModel, table=True):
    __tablename__ = "order_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: Optional[int] = Field(default=None, foreign_key="orders.id", index=True)

    # snapshot at order time, never re-read from the catalog
    product_id: int
    product_name: str
    brand: str

    is_pack: bool = False
    pack_multiplier: Optional[int] = None
    has_discount: bool = False
    discount_percent: Optional[float] = None
    variations: Optional[list] = Field(default=None, sa_column=Column(JSON))
    item_count: Optional[int] = None

    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int

    unit_price: float
    total_price: float

    order: Optional["Order"] = Relationship(back_populates="items")
