from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime

from storefront.models.order_item import OrderItem
from storefront.models.order_event import OrderStatusEvent

if TYPE_CHECKING:
    from storefront.models.user import User


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(unique=True, index=True)  # ORD-000001
    user_id: int = Field(foreign_key="users.id", index=True)

    # idempotency keys, unique when present
    stripe_payment_intent: Optional[str] = Field(default=None, unique=True)
    stripe_session_id: Optional[str] = Field(default=None, unique=True)

    subtotal: float = 0.0
    tax: float = 0.0
    shipping_cost: float = 0.0
    total_amount: float

    status: str = Field(default="pending", index=True)

    # shipping address snapshot
    shipping_full_name: Optional[str] = None
    shipping_email: Optional[str] = None
    shipping_phone: Optional[str] = None
    shipping_street: Optional[str] = None
    shipping_city: Optional[str] = None
    shipping_state: Optional[str] = None
    shipping_zip_code: Optional[str] = None
    shipping_country: Optional[str] = None

    payment_method: str = Field(default="cod")
    payment_status: str = Field(default="pending")

    customer_notes: Optional[str] = None
    admin_notes: Optional[str] = None
    tracking_number: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # relationships
    user: Optional["User"] = Relationship()
    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "OrderItem.id"},
    )
    status_history: List["OrderStatusEvent"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "OrderStatusEvent.id"},
    )
