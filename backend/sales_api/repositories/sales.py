"""
Sale repository (persistence).

Only persistence and list-query shaping live here; business rules stay in
`sales_api.services.sales`. Writes flush but never commit: the caller owns the
transaction (`async with session.begin(): ...`).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sales_api.core.errors import ConflictViolation
from sales_api.models.sales import Sale


@dataclass(frozen=True, slots=True)
class OrderKey:
    field: str
    descending: bool = False


# Field tokens are matched case-insensitively with underscores ignored,
# so both `saleNumber` and `sale_number` select the sale number.
SORTABLE_COLUMNS: dict[str, Any] = {
    "salenumber": Sale.sale_number,
    "saledate": Sale.sale_date,
    "customername": Sale.customer_name,
    "totalamount": Sale.total_amount,
    "branchname": Sale.branch_name,
}

DEFAULT_ORDER: tuple[OrderKey, ...] = (OrderKey("saledate", descending=True),)


def parse_ordering(order: str | None) -> list[OrderKey]:
    """
    Parse `"<field> [asc|desc], ..."` into sort keys, primary key first.

    Unknown fields are skipped. If nothing usable remains, the default
    (sale date, newest first) applies.
    """
    if order is None or not order.strip():
        return list(DEFAULT_ORDER)

    keys: list[OrderKey] = []
    for clause in order.split(","):
        tokens = clause.split()
        if not tokens:
            continue
        field = tokens[0].lower().replace("_", "")
        if field not in SORTABLE_COLUMNS:
            continue
        descending = len(tokens) > 1 and tokens[1].lower() == "desc"
        keys.append(OrderKey(field, descending=descending))

    return keys or list(DEFAULT_ORDER)


def order_by_clauses(keys: list[OrderKey]) -> list[Any]:
    clauses = []
    for key in keys:
        column = SORTABLE_COLUMNS[key.field]
        clauses.append(column.desc() if key.descending else column.asc())
    # Final tie-breaker keeps page slices stable between requests.
    clauses.append(Sale.id.asc())
    return clauses


class SaleRepository(Protocol):
    async def create(self, sale: Sale) -> Sale: ...

    async def get_by_id(self, sale_id: uuid.UUID) -> Sale | None: ...

    async def get_by_sale_number(self, sale_number: str) -> Sale | None: ...

    async def update(self, sale: Sale) -> Sale: ...

    async def delete(self, sale_id: uuid.UUID) -> bool: ...

    async def get_page(self, *, page: int, size: int, order: str | None = None) -> tuple[list[Sale], int]: ...


class SqlAlchemySaleRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, sale: Sale) -> Sale:
        self.session.add(sale)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if "sale_number" in str(e.orig):
                raise ConflictViolation(f"Sale number already exists: {sale.sale_number}") from e
            raise
        return sale

    async def get_by_id(self, sale_id: uuid.UUID) -> Sale | None:
        result = await self.session.execute(
            select(Sale).where(Sale.id == sale_id).options(selectinload(Sale.items))
        )
        return result.scalar_one_or_none()

    async def get_by_sale_number(self, sale_number: str) -> Sale | None:
        result = await self.session.execute(
            select(Sale).where(Sale.sale_number == sale_number).options(selectinload(Sale.items))
        )
        return result.scalar_one_or_none()

    async def update(self, sale: Sale) -> Sale:
        """
        Persist the header and the item set exactly as held by `sale.items`.

        Items dropped from the collection are deleted and new ones inserted;
        nothing is merged field-by-field with the previously stored rows.
        """
        self.session.add(sale)
        await self.session.flush()
        return sale

    async def delete(self, sale_id: uuid.UUID) -> bool:
        sale = await self.get_by_id(sale_id)
        if sale is None:
            return False
        await self.session.delete(sale)
        await self.session.flush()
        return True

    async def get_page(self, *, page: int, size: int, order: str | None = None) -> tuple[list[Sale], int]:
        if page < 1:
            raise ValueError("page must be >= 1")
        if size < 1:
            raise ValueError("size must be >= 1")

        total_count = int((await self.session.scalar(select(func.count()).select_from(Sale))) or 0)

        stmt = (
            select(Sale)
            .options(selectinload(Sale.items))
            .order_by(*order_by_clauses(parse_ordering(order)))
            .offset((page - 1) * size)
            .limit(size)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return list(rows), total_count
