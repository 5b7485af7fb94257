from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sales_api.models.sales import Sale, SaleItem
from sales_api.services.pricing import CENT


@dataclass(frozen=True, slots=True)
class SaleInvariantViolation:
    sale_id: UUID
    sale_number: str
    problem: str


def _money(value: object) -> Decimal:
    # SQLite hands back SUM() of NUMERIC columns as float.
    return Decimal(str(value or 0)).quantize(CENT)


async def find_sale_invariant_violations(session: AsyncSession) -> list[SaleInvariantViolation]:
    """
    Scan stored sales for broken aggregate invariants:
    - header total differs from the sum of non-cancelled item totals
    - a cancelled sale still has active items
    """
    active = SaleItem.is_cancelled.is_(False)
    per_sale = (
        select(
            SaleItem.sale_id.label("sale_id"),
            func.sum(case((active, SaleItem.total_amount), else_=0)).label("active_total"),
            func.sum(case((active, 1), else_=0)).label("active_count"),
        )
        .group_by(SaleItem.sale_id)
        .subquery()
    )
    rows = (
        await session.execute(
            select(
                Sale.id,
                Sale.sale_number,
                Sale.total_amount,
                Sale.is_cancelled,
                per_sale.c.active_total,
                per_sale.c.active_count,
            )
            .outerjoin(per_sale, per_sale.c.sale_id == Sale.id)
            .order_by(Sale.sale_number.asc())
        )
    ).all()

    violations: list[SaleInvariantViolation] = []
    for r in rows:
        expected = _money(r.active_total)
        actual = _money(r.total_amount)
        if expected != actual:
            violations.append(
                SaleInvariantViolation(
                    sale_id=r.id,
                    sale_number=r.sale_number,
                    problem=f"total_amount={actual} but active items sum to {expected}",
                )
            )
        if r.is_cancelled and int(r.active_count or 0) > 0:
            violations.append(
                SaleInvariantViolation(
                    sale_id=r.id,
                    sale_number=r.sale_number,
                    problem=f"cancelled sale has {int(r.active_count)} active item(s)",
                )
            )
    return violations
