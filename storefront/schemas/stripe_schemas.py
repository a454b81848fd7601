from pydantic import BaseModel, Field
from typing import List, Optional


class ConfirmPaymentRequest(BaseModel):
    payment_intent_id: str


class CheckoutAddress(BaseModel):
    full_name: Optional[str] = Field(default=None, alias="fullName")
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = Field(default=None, alias="zipCode")
    country: Optional[str] = None

    model_config = {"populate_by_name": True}


class CheckoutItem(BaseModel):
    product_id: int
    product_name: Optional[str] = None
    quantity: int = 1
    total_price: float
    is_pack: bool = False
    pack_multiplier: Optional[int] = None
    item_count: Optional[int] = None
    size: Optional[str] = None
    color: Optional[str] = None


class CreatePaymentIntentRequest(BaseModel):
    items: List[CheckoutItem]
    shipping_address: CheckoutAddress = Field(default_factory=CheckoutAddress)
    tax: float = 0
    shipping: float = 0


class CreateCheckoutSessionRequest(BaseModel):
    items: List[CheckoutItem]
    shipping_address: CheckoutAddress = Field(default_factory=CheckoutAddress)
    tax: float = 0
    shipping: float = 0
