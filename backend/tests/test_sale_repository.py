from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sales_api.core.errors import ConflictViolation
from sales_api.models.sales import Sale, SaleItem
from sales_api.repositories.sales import SqlAlchemySaleRepository


BASE_DATE = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _build_sale(number: str, *, day: int = 0, prices: tuple[str, ...] = ("100",)) -> Sale:
    sale = Sale(
        sale_number=number,
        sale_date=BASE_DATE + timedelta(days=day),
        customer_id=uuid.uuid4(),
        customer_name=f"Customer {number}",
        branch_id=uuid.uuid4(),
        branch_name="Main",
    )
    for price in prices:
        item = SaleItem(product_id=uuid.uuid4(), product_name="Widget", quantity=1, unit_price=Decimal(price))
        item.calculate_amounts()
        sale.add_item(item)
    sale.recalculate_total()
    return sale


@pytest.mark.asyncio
async def test_create_and_get_round_trip(db_session: AsyncSession, session_factory: async_sessionmaker[AsyncSession]) -> None:
    repo = SqlAlchemySaleRepository(db_session)
    async with db_session.begin():
        sale = await repo.create(_build_sale("S-1", prices=("100", "250.50")))
    sale_id = sale.id

    async with session_factory() as other:
        loaded = await SqlAlchemySaleRepository(other).get_by_id(sale_id)
        assert loaded is not None
        assert loaded.sale_number == "S-1"
        assert loaded.total_amount == Decimal("350.50")
        assert [i.unit_price for i in loaded.items] == [Decimal("100.00"), Decimal("250.50")]

        by_number = await SqlAlchemySaleRepository(other).get_by_sale_number("S-1")
        assert by_number is not None
        assert by_number.id == sale_id

        assert await SqlAlchemySaleRepository(other).get_by_id(uuid.uuid4()) is None
        assert await SqlAlchemySaleRepository(other).get_by_sale_number("missing") is None


@pytest.mark.asyncio
async def test_create_duplicate_sale_number_is_conflict(db_session: AsyncSession) -> None:
    repo = SqlAlchemySaleRepository(db_session)
    async with db_session.begin():
        await repo.create(_build_sale("S-DUP"))

    with pytest.raises(ConflictViolation, match="S-DUP"):
        async with db_session.begin():
            await repo.create(_build_sale("S-DUP"))


@pytest.mark.asyncio
async def test_update_replaces_item_set(db_session: AsyncSession, session_factory: async_sessionmaker[AsyncSession]) -> None:
    repo = SqlAlchemySaleRepository(db_session)
    async with db_session.begin():
        sale = await repo.create(_build_sale("S-UPD", prices=("10", "20", "30")))
    sale_id = sale.id
    await db_session.rollback()

    async with db_session.begin():
        sale = await repo.get_by_id(sale_id)
        assert sale is not None
        item = SaleItem(product_id=uuid.uuid4(), product_name="Gadget", quantity=4, unit_price=Decimal("5"))
        item.calculate_amounts()
        sale.replace_items([item])
        sale.recalculate_total()
        await repo.update(sale)

    async with session_factory() as other:
        loaded = await SqlAlchemySaleRepository(other).get_by_id(sale_id)
        assert loaded is not None
        assert [i.product_name for i in loaded.items] == ["Gadget"]
        assert loaded.total_amount == Decimal("18.00")
        assert loaded.updated_at is not None
        item_count = await other.scalar(select(func.count()).select_from(SaleItem))
        assert item_count == 1


@pytest.mark.asyncio
async def test_delete_removes_sale_and_items(db_session: AsyncSession, session_factory: async_sessionmaker[AsyncSession]) -> None:
    repo = SqlAlchemySaleRepository(db_session)
    async with db_session.begin():
        sale = await repo.create(_build_sale("S-DEL", prices=("1", "2")))
    sale_id = sale.id
    await db_session.rollback()

    async with db_session.begin():
        assert await repo.delete(sale_id) is True
        assert await repo.delete(uuid.uuid4()) is False

    async with session_factory() as other:
        assert await other.scalar(select(func.count()).select_from(Sale)) == 0
        assert await other.scalar(select(func.count()).select_from(SaleItem)) == 0


@pytest.mark.asyncio
async def test_get_page_slices_by_default_order(db_session: AsyncSession) -> None:
    repo = SqlAlchemySaleRepository(db_session)
    async with db_session.begin():
        for n in range(25):
            await repo.create(_build_sale(f"S-{n:02d}", day=n))
    await db_session.rollback()

    sales, total = await repo.get_page(page=2, size=10)
    assert total == 25
    # Default order is newest first: page 2 holds the 11th..20th newest.
    assert [s.sale_number for s in sales] == [f"S-{n:02d}" for n in range(14, 4, -1)]

    last, _ = await repo.get_page(page=3, size=10)
    assert len(last) == 5

    beyond, total = await repo.get_page(page=4, size=10)
    assert beyond == []
    assert total == 25


@pytest.mark.asyncio
async def test_get_page_multi_key_order(db_session: AsyncSession) -> None:
    repo = SqlAlchemySaleRepository(db_session)
    async with db_session.begin():
        await repo.create(_build_sale("B", prices=("50",)))
        await repo.create(_build_sale("A", prices=("50",)))
        await repo.create(_build_sale("C", prices=("75",)))
    await db_session.rollback()

    sales, _ = await repo.get_page(page=1, size=10, order="totalamount desc, salenumber")
    assert [s.sale_number for s in sales] == ["C", "A", "B"]

    sales, _ = await repo.get_page(page=1, size=10, order="bogus desc")
    # Falls back to sale date, newest first; all share a date so the id tie-breaker decides.
    assert sorted(s.sale_number for s in sales) == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_get_page_rejects_invalid_paging(db_session: AsyncSession) -> None:
    repo = SqlAlchemySaleRepository(db_session)
    with pytest.raises(ValueError):
        await repo.get_page(page=0, size=10)
    with pytest.raises(ValueError):
        await repo.get_page(page=1, size=0)
