# pos_sync/modules/pos/services/order_transformer.py

"""
Turns a local order into a CloudPOS web order and submits it.

CloudPOS wants one detail line per unit sold, each carrying at most ten
``sub{i}`` modifier slots, so quantities on lines and on selected
subproducts are expanded here.
"""

import logging
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from pos_sync.core.config import settings
from ..adapters.base_adapter import BasePOSAdapter
from ..enums.pos_enums import (
    DeliveryMode,
    EntityKind,
    FulfillmentMethod,
    MAX_MODIFIER_SLOTS,
)
from ..repositories.document_repository import DocumentRepository
from ..schemas.pos_schemas import OrderPushResult
from ..utils.formatting import format_amount, format_tax, to_decimal

logger = logging.getLogger(__name__)


class ShippingProductCache:
    """Remote id of the shipping placeholder product, per POS connection"""

    def __init__(self):
        self._remote_ids: Dict[str, int] = {}

    def get(self, connection_key: str) -> Optional[int]:
        return self._remote_ids.get(connection_key)

    def set(self, connection_key: str, remote_id: int):
        self._remote_ids[connection_key] = remote_id


DELIVERY_MODES = {
    FulfillmentMethod.TAKEAWAY.value: DeliveryMode.TAKEAWAY,
    FulfillmentMethod.DELIVERY.value: DeliveryMode.DELIVERY,
    FulfillmentMethod.DINE_IN.value: DeliveryMode.DINE_IN,
}


def map_delivery_mode(fulfillment_method: Optional[str]) -> DeliveryMode:
    return DELIVERY_MODES.get(fulfillment_method or "", DeliveryMode.TAKEAWAY)


def _as_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def format_planned_datetime(fulfillment_date: Any, fulfillment_time: Optional[str]) -> Tuple[bool, str]:
    """
    ``(plannedorder, plannedorderdatetime)`` for a scheduled order.

    Both a date and a time are needed; otherwise the order is immediate.
    Times come as ``HH:MM`` or ``HH:MM:SS``.
    """
    day = _as_date(fulfillment_date)
    if day is None or not fulfillment_time:
        return False, ""
    parts = str(fulfillment_time).strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid fulfillment time: {fulfillment_time!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) > 2 else 0
    return True, f"{day.isoformat()} {hours:02d}:{minutes:02d}:{seconds:02d}"


REMARK_FIELDS = (
    ("address", "Address"),
    ("postal_code", "Postal"),
    ("city", "City"),
)


def build_remark(customer: Dict[str, Any]) -> str:
    parts = []
    for field, label in REMARK_FIELDS:
        value = str(customer.get(field) or "").strip()
        if value:
            parts.append(f"{label}: {value}")
    return re.sub(r"[,\s]+$", "", ", ".join(parts))


def is_online_paid(payments: List[Dict[str, Any]]) -> bool:
    """Paid online unless there is no payment or any of them is cash"""
    if not payments:
        return False
    marker = settings.CLOUDPOS_CASH_PROVIDER_MARKER.lower()
    return all(marker not in (p.get("provider") or "").lower() for p in payments)


class OrderTransformer:
    def __init__(
        self,
        adapter: BasePOSAdapter,
        repository: DocumentRepository,
        shipping_cache: ShippingProductCache,
        connection_key: str,
    ):
        self.adapter = adapter
        self.repository = repository
        self.shipping_cache = shipping_cache
        self.connection_key = connection_key
        self.warnings: List[str] = []

    def _warn(self, message: str):
        self.warnings.append(message)
        logger.warning(message)

    def _remote_ref(self, kind: EntityKind, local_id: Optional[int]) -> Optional[int]:
        if local_id is None:
            return None
        document = self.repository.find_by_id(kind, local_id)
        return document.get("remote_ref") if document else None

    async def resolve_customer(self, customer: Dict[str, Any]) -> int:
        email = (customer.get("email") or "").strip() or settings.CLOUDPOS_GUEST_EMAIL
        remote_id = await self.adapter.find_customer_id(email)
        if remote_id:
            return remote_id

        remote_id = await self.adapter.create_customer({
            "firstname": customer.get("first_name") or settings.CLOUDPOS_GUEST_FIRST_NAME,
            "name": customer.get("last_name") or "",
            "email": email,
            "phone": customer.get("phone") or "",
        })
        logger.info(f"Created POS customer {remote_id} for {email}")
        return remote_id

    def _modifier_slots(self, line: Dict[str, Any], line_label: str) -> Dict[str, Any]:
        entries = []
        for selection in line.get("subproducts", []):
            quantity = int(selection.get("quantity") or 0)
            if quantity <= 0:
                continue
            remote_ref = self._remote_ref(EntityKind.SUBPRODUCT, selection.get("subproduct_id"))
            if remote_ref is None:
                self._warn(
                    f"Subproduct {selection.get('subproduct_id')} on {line_label} "
                    f"is not synced to the POS, left out"
                )
                continue
            entry = (
                remote_ref,
                format_amount(selection.get("price")),
                format_tax(selection.get("tax_rate")),
            )
            entries.extend([entry] * quantity)

        if len(entries) > MAX_MODIFIER_SLOTS:
            self._warn(
                f"{line_label} has {len(entries)} modifier selections, only the "
                f"first {MAX_MODIFIER_SLOTS} are sent to the POS"
            )
            entries = entries[:MAX_MODIFIER_SLOTS]

        slots = {}
        for index, (remote_ref, price, tax) in enumerate(entries, start=1):
            slots[f"sub{index} id"] = remote_ref
            slots[f"sub{index} price"] = price
            slots[f"sub{index} tax"] = tax
        return slots

    def build_lines(self, lines: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], int]:
        """Expand order lines into unit lines; returns them with the skipped line count"""
        detail = []
        skipped = 0
        for line in lines:
            line_label = f"order line {line.get('id')}"
            product_ref = self._remote_ref(EntityKind.PRODUCT, line.get("product_id"))
            if product_ref is None:
                skipped += 1
                self._warn(
                    f"Product {line.get('product_id')} on {line_label} is not synced "
                    f"to the POS, line skipped"
                )
                continue

            unit_line = {
                "quantity": 1,
                "productid": product_ref,
                "productprice": format_amount(line.get("price")),
                "producttax": format_tax(line.get("tax_rate")),
                **self._modifier_slots(line, line_label),
            }
            quantity = int(line.get("quantity") or 0)
            detail.extend(dict(unit_line) for _ in range(quantity))
        return detail, skipped

    async def resolve_shipping_product(self) -> int:
        remote_id = self.shipping_cache.get(self.connection_key)
        if remote_id:
            return remote_id

        name = settings.CLOUDPOS_SHIPPING_PRODUCT_NAME
        remote_products = await self.adapter.list_entities(EntityKind.PRODUCT)
        existing = next((p for p in remote_products if p.name == name), None)
        if existing is not None:
            remote_id = existing.id
        else:
            fields = {
                "name": name,
                "price": "0.00",
                "tax": settings.CLOUDPOS_DEFAULT_TAX_RATE,
            }
            if settings.CLOUDPOS_SHIPPING_CATEGORY_ID:
                fields["category_id"] = settings.CLOUDPOS_SHIPPING_CATEGORY_ID
            remote_id = await self.adapter.create_entity(EntityKind.PRODUCT, fields)
            logger.info(f"Created remote-only '{name}' product {remote_id}")

        self.shipping_cache.set(self.connection_key, remote_id)
        return remote_id

    async def build_payload(self, order: Dict[str, Any]) -> Tuple[Dict[str, Any], int, int]:
        customer = order.get("customer") or {}
        customer_id = await self.resolve_customer(customer)
        delivery = map_delivery_mode(order.get("fulfillment_method"))
        planned, planned_datetime = format_planned_datetime(
            order.get("fulfillment_date"), order.get("fulfillment_time")
        )

        detail, skipped = self.build_lines(order.get("lines", []))
        product_lines = len(detail)

        shipping_cost = to_decimal(order.get("shipping_cost"))
        if shipping_cost > Decimal("0"):
            detail.append({
                "quantity": 1,
                "productid": await self.resolve_shipping_product(),
                "productprice": format_amount(shipping_cost),
                "producttax": settings.CLOUDPOS_DEFAULT_TAX_RATE,
            })

        payload = {
            "plannedorder": planned,
            "plannedorderdatetime": planned_datetime,
            "autoconfirmation": False,
            "customerid": customer_id,
            "delivery": delivery.value,
            "onlinepaid": is_online_paid(order.get("payments", [])),
            "discountamount": format_amount(order.get("discount_total")),
            "remark": build_remark(customer),
            "weborderdetail": detail,
        }
        return payload, product_lines, skipped

    async def push(self, order: Dict[str, Any]) -> OrderPushResult:
        payload, lines_pushed, skipped = await self.build_payload(order)
        remote_order_ref = await self.adapter.create_web_order(payload)
        self.repository.update(
            EntityKind.ORDER, order["id"], {"remote_order_ref": remote_order_ref}
        )
        logger.info(
            f"Pushed order {order['id']} to the POS as web order {remote_order_ref}"
        )
        return OrderPushResult(
            order_id=order["id"],
            remote_order_ref=remote_order_ref,
            lines_pushed=lines_pushed,
            skipped_lines=skipped,
            warnings=list(self.warnings),
            payload=payload,
        )
