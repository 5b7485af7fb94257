from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass

from sales_api.core.errors import ConflictViolation, FieldError, NotFound, ValidationFailure
from sales_api.models.sales import Sale, SaleItem
from sales_api.repositories.sales import SaleRepository
from sales_api.schemas.sales import SaleCreate, SaleItemCreate, SaleUpdate
from sales_api.services.events import SaleEventKind, SaleEventSink, notify, sale_event_payload
from sales_api.services.validation import ValidationResult, validate_sale


logger = logging.getLogger(__name__)

_NIL_UUID = uuid.UUID(int=0)


@dataclass(frozen=True, slots=True)
class SalePage:
    sales: list[Sale]
    total_items: int
    current_page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.page_size)


def _raise_if_invalid(result: ValidationResult) -> None:
    if not result.is_valid:
        raise ValidationFailure(result.errors)


def _require_ids(**ids: uuid.UUID | None) -> None:
    errors = [
        FieldError(name, f"{name.replace('_', ' ').capitalize()} is required.")
        for name, value in ids.items()
        if value is None or value == _NIL_UUID
    ]
    if errors:
        raise ValidationFailure(errors)


def _build_item(line: SaleItemCreate) -> SaleItem:
    item = SaleItem(
        product_id=line.product_id,
        product_name=line.product_name,
        quantity=line.quantity,
        unit_price=line.unit_price,
    )
    item.calculate_amounts()
    return item


async def _load_sale(repo: SaleRepository, sale_id: uuid.UUID) -> Sale:
    sale = await repo.get_by_id(sale_id)
    if sale is None:
        raise NotFound(f"Sale with ID {sale_id} not found")
    return sale


async def create_sale(repo: SaleRepository, *, actor: str, data: SaleCreate, events: SaleEventSink) -> Sale:
    # The payload is checked first: `Sale()` would silently default a missing date to "now".
    # The built aggregate is checked again before it reaches the repository.
    _raise_if_invalid(validate_sale(data))

    sale = Sale(
        sale_number=data.sale_number,
        sale_date=data.sale_date,
        customer_id=data.customer_id,
        customer_name=data.customer_name,
        branch_id=data.branch_id,
        branch_name=data.branch_name,
    )
    for line in data.items:
        sale.add_item(_build_item(line))
    sale.recalculate_total()
    _raise_if_invalid(sale.validate())

    if await repo.get_by_sale_number(data.sale_number) is not None:
        raise ConflictViolation(f"Sale number already exists: {data.sale_number}")

    sale = await repo.create(sale)
    logger.info("Sale created", extra={"sale_id": str(sale.id), "sale_number": sale.sale_number})
    notify(events, SaleEventKind.SALE_CREATED, sale_event_payload(sale, actor=actor))
    return sale


async def get_sale(repo: SaleRepository, *, sale_id: uuid.UUID) -> Sale:
    _require_ids(sale_id=sale_id)
    return await _load_sale(repo, sale_id)


async def list_sales(
    repo: SaleRepository,
    *,
    page: int = 1,
    size: int = 10,
    order: str | None = None,
    max_size: int | None = None,
) -> SalePage:
    errors: list[FieldError] = []
    if page < 1:
        errors.append(FieldError("page", "Page must be 1 or greater."))
    if size < 1:
        errors.append(FieldError("size", "Page size must be 1 or greater."))
    elif max_size is not None and size > max_size:
        errors.append(FieldError("size", f"Page size must be {max_size} or fewer."))
    if errors:
        raise ValidationFailure(errors)

    sales, total_count = await repo.get_page(page=page, size=size, order=order)
    return SalePage(sales=sales, total_items=total_count, current_page=page, page_size=size)


async def update_sale(
    repo: SaleRepository,
    *,
    actor: str,
    sale_id: uuid.UUID,
    data: SaleUpdate,
    events: SaleEventSink,
) -> Sale:
    _require_ids(sale_id=sale_id)
    _raise_if_invalid(validate_sale(data))

    sale = await _load_sale(repo, sale_id)
    if sale.is_cancelled:
        raise ConflictViolation("Cannot update a cancelled sale")

    if data.sale_number != sale.sale_number:
        other = await repo.get_by_sale_number(data.sale_number)
        if other is not None and other.id != sale.id:
            raise ConflictViolation(f"Sale number already exists: {data.sale_number}")

    before_total = sale.total_amount
    sale.apply_header(
        sale_number=data.sale_number,
        sale_date=data.sale_date,
        customer_id=data.customer_id,
        customer_name=data.customer_name,
        branch_id=data.branch_id,
        branch_name=data.branch_name,
    )
    sale.replace_items([_build_item(line) for line in data.items])
    sale.recalculate_total()
    _raise_if_invalid(sale.validate())

    sale = await repo.update(sale)
    logger.info(
        "Sale updated",
        extra={"sale_id": str(sale.id), "before_total": str(before_total), "after_total": str(sale.total_amount)},
    )
    notify(events, SaleEventKind.SALE_MODIFIED, sale_event_payload(sale, actor=actor))
    return sale


async def cancel_sale(repo: SaleRepository, *, actor: str, sale_id: uuid.UUID, events: SaleEventSink) -> Sale:
    _require_ids(sale_id=sale_id)

    sale = await _load_sale(repo, sale_id)
    if sale.is_cancelled:
        raise ConflictViolation("Sale is already cancelled")

    sale.cancel()
    sale.recalculate_total()

    sale = await repo.update(sale)
    notify(events, SaleEventKind.SALE_CANCELLED, sale_event_payload(sale, actor=actor))
    return sale


async def cancel_sale_item(
    repo: SaleRepository,
    *,
    actor: str,
    sale_id: uuid.UUID,
    item_id: uuid.UUID,
    events: SaleEventSink,
) -> Sale:
    _require_ids(sale_id=sale_id, item_id=item_id)

    sale = await _load_sale(repo, sale_id)
    if sale.is_cancelled:
        raise ConflictViolation("Cannot cancel an item from a cancelled sale")

    item = sale.find_item(item_id)
    if item is None:
        raise NotFound(f"Item with ID {item_id} not found in sale {sale_id}")
    if item.is_cancelled:
        raise ConflictViolation("Item is already cancelled")

    item.cancel()
    sale.recalculate_total()
    sale.touch()

    sale = await repo.update(sale)
    notify(events, SaleEventKind.ITEM_CANCELLED, sale_event_payload(sale, actor=actor, item=item))
    return sale
