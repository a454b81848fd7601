from pydantic import BaseModel, Field
from typing import List, Optional


class ShippingAddress(BaseModel):
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    street: str
    city: str
    state: Optional[str] = None
    zip_code: str
    country: str


class OrderItemIn(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)
    size: Optional[str] = None
    color: Optional[str] = None
    unit_price: Optional[float] = None
    total_price: Optional[float] = None
    is_pack: bool = False
    pack_multiplier: Optional[int] = None
    item_count: Optional[int] = None
    has_discount: bool = False
    discount_percent: Optional[float] = None
    variations: Optional[list] = None


class OrderCreate(BaseModel):
    items: List[OrderItemIn]
    shipping_address: ShippingAddress
    payment_method: str = "cod"
    tax: float = 0
    shipping_cost: float = 0
    customer_notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: str
    note: Optional[str] = None
    tracking_number: Optional[str] = None
    admin_notes: Optional[str] = None


class OrderCancelRequest(BaseModel):
    reason: Optional[str] = None
