from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

ConditionType = Literal["always", "when_selected", "when_not_selected"]


class PriceMatrixItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    unit: str = Field("stuk", max_length=50)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)
    is_optional: bool = False
    sort_order: int = 0
    depends_on_item_id: Optional[int] = None
    depends_on_condition: ConditionType = "always"


class PriceMatrixItemCreate(PriceMatrixItemBase):
    pass


class PriceMatrixItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    unit_price: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    is_optional: Optional[bool] = None
    sort_order: Optional[int] = None
    depends_on_item_id: Optional[int] = None
    depends_on_condition: Optional[ConditionType] = None


class PriceMatrixItemResponse(PriceMatrixItemBase):
    id: int
    depends_on_condition: str
    created_at: datetime

    class Config:
        from_attributes = True


class VisibilityRequest(BaseModel):
    selection: List[int] = []


class VisibilityResponse(BaseModel):
    visibility: Dict[int, bool]
