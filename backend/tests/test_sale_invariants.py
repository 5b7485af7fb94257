from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from sales_api.models.sales import Sale, SaleItem
from sales_api.repositories.sales import SqlAlchemySaleRepository
from sales_api.services.invariants import find_sale_invariant_violations


def _sale(number: str) -> Sale:
    sale = Sale(
        sale_number=number,
        customer_id=uuid.uuid4(),
        customer_name="Ada",
        branch_id=uuid.uuid4(),
        branch_name="Main",
    )
    for quantity in (1, 4):
        item = SaleItem(product_id=uuid.uuid4(), product_name="Widget", quantity=quantity, unit_price=Decimal("10"))
        item.calculate_amounts()
        sale.add_item(item)
    sale.recalculate_total()
    return sale


@pytest.mark.asyncio
async def test_consistent_sales_have_no_violations(db_session: AsyncSession) -> None:
    repo = SqlAlchemySaleRepository(db_session)
    async with db_session.begin():
        await repo.create(_sale("S-OK"))
        cancelled = _sale("S-CANCELLED")
        cancelled.cancel()
        cancelled.recalculate_total()
        await repo.create(cancelled)

    assert await find_sale_invariant_violations(db_session) == []


@pytest.mark.asyncio
async def test_drifted_total_and_active_items_on_cancelled_sale_are_reported(db_session: AsyncSession) -> None:
    repo = SqlAlchemySaleRepository(db_session)
    async with db_session.begin():
        drifted = await repo.create(_sale("S-DRIFT"))
        broken = await repo.create(_sale("S-BROKEN"))
    drifted_id, broken_id = drifted.id, broken.id

    async with db_session.begin():
        await db_session.execute(update(Sale).where(Sale.id == drifted_id).values(total_amount=Decimal("1.00")))
        await db_session.execute(update(Sale).where(Sale.id == broken_id).values(is_cancelled=True))

    violations = await find_sale_invariant_violations(db_session)
    problems = {(v.sale_number, v.problem) for v in violations}
    assert ("S-DRIFT", "total_amount=1.00 but active items sum to 46.00") in problems
    assert ("S-BROKEN", "cancelled sale has 2 active item(s)") in problems
    assert len(violations) == 2
