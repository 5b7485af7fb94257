from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# Business rules (lengths, quantity range, positive prices) are enforced by
# `sales_api.services.validation` so every violation is reported together.
class SaleItemCreate(BaseModel):
    product_id: UUID
    product_name: str
    quantity: int
    unit_price: Decimal


class SaleCreate(BaseModel):
    sale_number: str
    sale_date: datetime | None = None
    customer_id: UUID
    customer_name: str
    branch_id: UUID
    branch_name: str
    items: list[SaleItemCreate] = Field(default_factory=list)


class SaleUpdate(SaleCreate):
    pass


class SaleItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    product_name: str
    quantity: int
    unit_price: Decimal
    discount: Decimal
    total_amount: Decimal
    is_cancelled: bool


class SaleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sale_number: str
    sale_date: datetime
    customer_id: UUID
    customer_name: str
    branch_id: UUID
    branch_name: str
    total_amount: Decimal
    is_cancelled: bool
    created_at: datetime
    updated_at: datetime | None
    items: list[SaleItemOut]


class SalePageOut(BaseModel):
    data: list[SaleOut]
    total_items: int
    current_page: int
    total_pages: int
