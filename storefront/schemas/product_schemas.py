from pydantic import BaseModel, Field
from typing import List, Optional


class ProductVariant(BaseModel):
    size: Optional[str] = None
    color: Optional[str] = None
    stock: int = 0
    sku: Optional[str] = None
    unit_price: Optional[float] = None


class PackVariation(BaseModel):
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int = 0


class PackConfig(BaseModel):
    enabled: bool = False
    discount_percent: float = Field(default=0, ge=0, le=100)
    variations: List[PackVariation] = []


class ProductCreate(BaseModel):
    name: str
    brand: str
    category: Optional[str] = None
    subcategory: Optional[str] = None
    gender: Optional[str] = None
    on_sale: bool = False
    sale_id: Optional[int] = None
    sku: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    unit_price: float = Field(ge=0)
    tax_percentage: float = Field(default=0, ge=0)
    variants: List[ProductVariant] = []
    pack_config: PackConfig = Field(default_factory=PackConfig)
    shipping_structure_id: Optional[int] = None
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    gender: Optional[str] = None
    on_sale: Optional[bool] = None
    sale_id: Optional[int] = None
    image: Optional[str] = None
    description: Optional[str] = None
    unit_price: Optional[float] = Field(default=None, ge=0)
    tax_percentage: Optional[float] = Field(default=None, ge=0)
    variants: Optional[List[ProductVariant]] = None
    pack_config: Optional[PackConfig] = None
    shipping_structure_id: Optional[int] = None
    is_active: Optional[bool] = None
