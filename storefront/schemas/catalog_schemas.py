from pydantic import BaseModel, Field
from typing import Literal, Optional

CatalogType = Literal["brand", "category", "subcategory", "gender", "sale"]


class CatalogItemCreate(BaseModel):
    type: CatalogType
    name: str = Field(min_length=1)
    parent_id: Optional[int] = None
    discount: float = Field(default=0, ge=0, le=100)


class CatalogItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    discount: Optional[float] = Field(default=None, ge=0, le=100)
    is_active: Optional[bool] = None
