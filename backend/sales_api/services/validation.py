"""
Sale rule set.

`validate_sale` works on anything shaped like a sale: the ORM aggregate or an
incoming `SaleCreate`/`SaleUpdate` payload. It never raises; every violated rule
becomes one `FieldError`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sales_api.core.errors import FieldError
from sales_api.services.pricing import CENT


SALE_NUMBER_MAX_LENGTH = 50
NAME_MAX_LENGTH = 200
MAX_IDENTICAL_ITEMS = 20

_NIL_UUID = uuid.UUID(int=0)


@dataclass(slots=True)
class ValidationResult:
    errors: list[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_id(errors: list[FieldError], path: str, value: Any, label: str) -> None:
    if value is None or value == _NIL_UUID:
        errors.append(FieldError(path, f"{label} is required."))


def _check_name(errors: list[FieldError], path: str, value: Any, label: str, max_length: int) -> None:
    if _is_blank(value):
        errors.append(FieldError(path, f"{label} is required."))
    elif len(value) > max_length:
        errors.append(FieldError(path, f"{label} must be {max_length} characters or fewer."))


def _validate_item(errors: list[FieldError], prefix: str, item: Any) -> None:
    _check_id(errors, f"{prefix}.product_id", getattr(item, "product_id", None), "Product ID")
    _check_name(errors, f"{prefix}.product_name", getattr(item, "product_name", None), "Product name", NAME_MAX_LENGTH)

    quantity = getattr(item, "quantity", None)
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        errors.append(FieldError(f"{prefix}.quantity", "Quantity must be a whole number."))
    elif quantity <= 0:
        errors.append(FieldError(f"{prefix}.quantity", "Quantity must be greater than zero."))
    elif quantity > MAX_IDENTICAL_ITEMS:
        errors.append(
            FieldError(f"{prefix}.quantity", f"It's not possible to sell above {MAX_IDENTICAL_ITEMS} identical items.")
        )

    unit_price = getattr(item, "unit_price", None)
    try:
        price = Decimal(unit_price) if unit_price is not None else None
    except (InvalidOperation, TypeError, ValueError):
        price = None
    if price is None or not price.is_finite() or price <= 0:
        errors.append(FieldError(f"{prefix}.unit_price", "Unit price must be greater than zero."))
    elif price != price.quantize(CENT):
        # Stored as NUMERIC(18, 2); finer prices would be rounded away on save.
        errors.append(
            FieldError(f"{prefix}.unit_price", "Unit price must have at most 2 decimal places.")
        )


def validate_sale(sale: Any) -> ValidationResult:
    errors: list[FieldError] = []

    sale_number = getattr(sale, "sale_number", None)
    if _is_blank(sale_number):
        errors.append(FieldError("sale_number", "Sale number is required."))
    elif len(sale_number) > SALE_NUMBER_MAX_LENGTH:
        errors.append(FieldError("sale_number", f"Sale number must be {SALE_NUMBER_MAX_LENGTH} characters or fewer."))

    if getattr(sale, "sale_date", None) is None:
        errors.append(FieldError("sale_date", "Sale date is required."))

    _check_id(errors, "customer_id", getattr(sale, "customer_id", None), "Customer ID")
    _check_name(errors, "customer_name", getattr(sale, "customer_name", None), "Customer name", NAME_MAX_LENGTH)
    _check_id(errors, "branch_id", getattr(sale, "branch_id", None), "Branch ID")
    _check_name(errors, "branch_name", getattr(sale, "branch_name", None), "Branch name", NAME_MAX_LENGTH)

    items = list(getattr(sale, "items", None) or [])
    if not items:
        errors.append(FieldError("items", "A sale must have at least one item."))
    for index, item in enumerate(items):
        _validate_item(errors, f"items[{index}]", item)

    return ValidationResult(errors=errors)
