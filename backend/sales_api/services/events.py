from __future__ import annotations

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum, StrEnum
from typing import Any, Protocol
from uuid import UUID

from sales_api.models.sales import Sale, SaleItem


logger = logging.getLogger(__name__)


class SaleEventKind(StrEnum):
    SALE_CREATED = "sale_created"
    SALE_MODIFIED = "sale_modified"
    SALE_CANCELLED = "sale_cancelled"
    ITEM_CANCELLED = "item_cancelled"


class SaleEventSink(Protocol):
    """Write-only notification channel. No acknowledgement, no retries."""

    def record(self, kind: SaleEventKind, payload: dict[str, Any]) -> None: ...


class LoggingEventSink:
    def record(self, kind: SaleEventKind, payload: dict[str, Any]) -> None:
        logger.info(
            "Event: %s %s",
            kind.value,
            json.dumps(payload, sort_keys=True),
            extra={"event_kind": kind.value, "event_payload": payload},
        )


def _jsonable(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    return str(value)


def sale_event_payload(sale: Sale, *, actor: str, item: SaleItem | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "actor": actor,
        "sale_id": sale.id,
        "sale_number": sale.sale_number,
        "total_amount": sale.total_amount,
        "is_cancelled": sale.is_cancelled,
    }
    if item is not None:
        payload["item_id"] = item.id
        payload["product_name"] = item.product_name
    return payload


def notify(sink: SaleEventSink, kind: SaleEventKind, payload: dict[str, Any]) -> None:
    try:
        sink.record(kind, _jsonable(payload))
    except Exception:
        # Notifications are observability only; a broken sink must not fail the use case.
        logger.exception("Failed to record %s event", kind.value, extra={"sale_id": str(payload.get("sale_id"))})


class BufferedEventSink:
    """
    Holds recorded events until `flush()` hands them to `target`.

    Endpoints flush only after their transaction has committed, so a rolled-back
    mutation never produces an event.
    """

    def __init__(self, target: SaleEventSink) -> None:
        self.target = target
        self.pending: list[tuple[SaleEventKind, dict[str, Any]]] = []

    def record(self, kind: SaleEventKind, payload: dict[str, Any]) -> None:
        self.pending.append((kind, payload))

    def flush(self) -> None:
        pending, self.pending = self.pending, []
        for kind, payload in pending:
            notify(self.target, kind, payload)


_default_sink = LoggingEventSink()


def get_event_sink() -> SaleEventSink:
    return _default_sink
