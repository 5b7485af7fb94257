from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sales_api.models.base import Base, UUIDPrimaryKeyMixin, utcnow
from sales_api.services.pricing import calculate_amounts
from sales_api.services.validation import ValidationResult, validate_sale


MONEY = Numeric(18, 2)


class Sale(UUIDPrimaryKeyMixin, Base):
    """
    Sale aggregate root.

    `total_amount` is derived: it is only ever written by `recalculate_total()`,
    which callers must invoke after any change to the item list.
    """

    __tablename__ = "sales"

    sale_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    sale_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # External identities (owned by other contexts), denormalized for display.
    customer_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    branch_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    branch_name: Mapped[str] = mapped_column(String(200), nullable=False)

    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list["SaleItem"]] = relationship(
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.position",
    )

    def __init__(self, **kwargs: Any) -> None:
        now = utcnow()
        kwargs.setdefault("id", uuid.uuid4())
        kwargs.setdefault("created_at", now)
        if kwargs.get("sale_date") is None:
            kwargs["sale_date"] = now
        kwargs.setdefault("is_cancelled", False)
        kwargs.setdefault("total_amount", Decimal("0"))
        kwargs.setdefault("items", [])
        super().__init__(**kwargs)

    def touch(self) -> None:
        self.updated_at = utcnow()

    def apply_header(
        self,
        *,
        sale_number: str,
        sale_date: datetime,
        customer_id: uuid.UUID,
        customer_name: str,
        branch_id: uuid.UUID,
        branch_name: str,
    ) -> None:
        self.sale_number = sale_number
        self.sale_date = sale_date
        self.customer_id = customer_id
        self.customer_name = customer_name
        self.branch_id = branch_id
        self.branch_name = branch_name
        self.touch()

    def add_item(self, item: "SaleItem") -> None:
        item.position = len(self.items)
        self.items.append(item)

    def replace_items(self, items: list["SaleItem"]) -> None:
        # Old items become orphans and are deleted on flush; identities are not carried over.
        for position, item in enumerate(items):
            item.position = position
        self.items = list(items)
        self.touch()

    def find_item(self, item_id: uuid.UUID) -> "SaleItem | None":
        return next((item for item in self.items if item.id == item_id), None)

    def recalculate_total(self) -> None:
        self.total_amount = sum((item.total_amount for item in self.items if not item.is_cancelled), Decimal("0"))

    def cancel(self) -> None:
        self.is_cancelled = True
        self.touch()
        for item in self.items:
            item.cancel()

    def validate(self) -> ValidationResult:
        return validate_sale(self)


class SaleItem(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "sale_items"

    sale_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    product_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    discount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    sale: Mapped[Sale] = relationship(back_populates="items")

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("id", uuid.uuid4())
        kwargs.setdefault("position", 0)
        kwargs.setdefault("discount", Decimal("0"))
        kwargs.setdefault("total_amount", Decimal("0"))
        kwargs.setdefault("is_cancelled", False)
        super().__init__(**kwargs)

    def calculate_amounts(self) -> None:
        self.discount, self.total_amount = calculate_amounts(quantity=self.quantity, unit_price=self.unit_price)

    def cancel(self) -> None:
        self.is_cancelled = True
