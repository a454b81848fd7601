from pydantic import BaseModel, Field
from typing import List, Optional


class ShippingRule(BaseModel):
    min_items: int = Field(ge=0)
    max_items: Optional[int] = None
    base_cost: float = Field(default=0, ge=0)
    cost_per_additional_item: float = Field(default=0, ge=0)
    is_free: bool = False


class ShippingStructureCreate(BaseModel):
    name: str
    description: Optional[str] = None
    rules: List[ShippingRule]
    is_default: bool = False
    is_active: bool = True


class ShippingStructureUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    rules: Optional[List[ShippingRule]] = None
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None


class ShippingCalculateRequest(BaseModel):
    total_items: int = Field(ge=0)
