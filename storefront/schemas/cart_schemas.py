from sqlmodel import SQLModel
from typing import List, Optional


class CartVariation(SQLModel):
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int = 0


class CartAddRequest(SQLModel):
    product_id: int
    product_name: Optional[str] = None
    brand: Optional[str] = None
    image: Optional[str] = None

    # pack
    is_pack: bool = False
    pack_multiplier: Optional[int] = None
    has_discount: Optional[bool] = None
    discount_percent: Optional[float] = None
    item_count: Optional[int] = None

    # single variant, or bulk when variations is set on a non-pack item
    size: Optional[str] = None
    color: Optional[str] = None
    variations: Optional[List[CartVariation]] = None

    quantity: int = 1
    unit_price: Optional[float] = None
    total_price: Optional[float] = None


class CartUpdateRequest(SQLModel):
    line_id: str
    quantity: int
