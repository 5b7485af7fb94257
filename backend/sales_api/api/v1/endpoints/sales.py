from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sales_api.core.config import get_settings
from sales_api.core.db import get_session
from sales_api.core.errors import NotFound, SaleError, ValidationFailure
from sales_api.core.security import require_basic_auth
from sales_api.repositories.sales import SqlAlchemySaleRepository
from sales_api.schemas.sales import SaleCreate, SaleOut, SalePageOut, SaleUpdate
from sales_api.services.events import BufferedEventSink, SaleEventSink, get_event_sink
from sales_api.services.sales import cancel_sale, cancel_sale_item, create_sale, get_sale, list_sales, update_sale


router = APIRouter()


def _http_error(e: SaleError) -> HTTPException:
    if isinstance(e, ValidationFailure):
        return HTTPException(status_code=400, detail=[err.as_dict() for err in e.errors])
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail=e.message)
    return HTTPException(status_code=409, detail=e.message)


async def _sale_out(repo: SqlAlchemySaleRepository, sale_id: uuid.UUID) -> SaleOut:
    sale = await repo.get_by_id(sale_id)
    if sale is None:
        raise HTTPException(status_code=404, detail="Not found")
    return SaleOut.model_validate(sale)


@router.post("", response_model=SaleOut, status_code=201)
async def create_sale_endpoint(
    data: SaleCreate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
    events: SaleEventSink = Depends(get_event_sink),
) -> SaleOut:
    repo = SqlAlchemySaleRepository(session)
    pending = BufferedEventSink(events)
    try:
        async with session.begin():
            sale = await create_sale(repo, actor=actor, data=data, events=pending)
    except SaleError as e:
        raise _http_error(e) from e
    pending.flush()
    return await _sale_out(repo, sale.id)


@router.get("", response_model=SalePageOut)
async def list_sales_endpoint(
    page: int = Query(default=1, alias="_page"),
    size: int | None = Query(default=None, alias="_size"),
    order: str | None = Query(default=None, alias="_order"),
    session: AsyncSession = Depends(get_session),
) -> SalePageOut:
    settings = get_settings()
    repo = SqlAlchemySaleRepository(session)
    try:
        result = await list_sales(
            repo,
            page=page,
            size=size if size is not None else settings.sales_default_page_size,
            order=order,
            max_size=settings.sales_max_page_size,
        )
    except SaleError as e:
        raise _http_error(e) from e
    return SalePageOut(
        data=[SaleOut.model_validate(s) for s in result.sales],
        total_items=result.total_items,
        current_page=result.current_page,
        total_pages=result.total_pages,
    )


@router.get("/{sale_id}", response_model=SaleOut)
async def get_sale_endpoint(sale_id: uuid.UUID, session: AsyncSession = Depends(get_session)) -> SaleOut:
    repo = SqlAlchemySaleRepository(session)
    try:
        sale = await get_sale(repo, sale_id=sale_id)
    except SaleError as e:
        raise _http_error(e) from e
    return SaleOut.model_validate(sale)


@router.put("/{sale_id}", response_model=SaleOut)
async def update_sale_endpoint(
    sale_id: uuid.UUID,
    data: SaleUpdate,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
    events: SaleEventSink = Depends(get_event_sink),
) -> SaleOut:
    repo = SqlAlchemySaleRepository(session)
    pending = BufferedEventSink(events)
    try:
        async with session.begin():
            sale = await update_sale(repo, actor=actor, sale_id=sale_id, data=data, events=pending)
    except SaleError as e:
        raise _http_error(e) from e
    pending.flush()
    return await _sale_out(repo, sale.id)


@router.delete("/{sale_id}", response_model=SaleOut)
async def cancel_sale_endpoint(
    sale_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
    events: SaleEventSink = Depends(get_event_sink),
) -> SaleOut:
    repo = SqlAlchemySaleRepository(session)
    pending = BufferedEventSink(events)
    try:
        async with session.begin():
            sale = await cancel_sale(repo, actor=actor, sale_id=sale_id, events=pending)
    except SaleError as e:
        raise _http_error(e) from e
    pending.flush()
    return await _sale_out(repo, sale.id)


@router.patch("/{sale_id}/items/{item_id}/cancel", response_model=SaleOut)
async def cancel_sale_item_endpoint(
    sale_id: uuid.UUID,
    item_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    actor: str = Depends(require_basic_auth),
    events: SaleEventSink = Depends(get_event_sink),
) -> SaleOut:
    repo = SqlAlchemySaleRepository(session)
    pending = BufferedEventSink(events)
    try:
        async with session.begin():
            sale = await cancel_sale_item(repo, actor=actor, sale_id=sale_id, item_id=item_id, events=pending)
    except SaleError as e:
        raise _http_error(e) from e
    pending.flush()
    return await _sale_out(repo, sale.id)
