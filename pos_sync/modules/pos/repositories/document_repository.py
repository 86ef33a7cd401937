"""
Document-style access to the local store.

The sync engine only sees plain dict documents; this keeps the reconciler
independent of the ORM and lets every read and write be scoped to a
single shop.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from pos_sync.modules.menu.models.menu_models import (
    Category,
    ModifierGroup,
    Product,
    Subproduct,
)
from pos_sync.modules.orders.models.order_models import Order
from ..enums.pos_enums import EntityKind
from ..exceptions import EntityNotFoundError

logger = logging.getLogger(__name__)


class DocumentRepository(ABC):
    """create/find/update by kind + filter, scoped to one shop"""

    @abstractmethod
    def find(
        self, kind: EntityKind, filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def find_by_id(self, kind: EntityKind, entity_id: int) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def create(self, kind: EntityKind, fields: Dict[str, Any]) -> int:
        pass

    @abstractmethod
    def update(self, kind: EntityKind, entity_id: int, fields: Dict[str, Any]) -> None:
        pass


def _category_document(category: Category) -> Dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "display_order": category.display_order,
        "modtime": category.modtime or 0,
        "remote_ref": category.remote_ref,
    }


def _modifier_group_document(group: ModifierGroup) -> Dict[str, Any]:
    return {
        "id": group.id,
        "title": group.title,
        "multiselect": bool(group.multiselect),
        "min_options": group.min_options or 0,
        "max_options": group.max_options or 0,
        "required_on_web": bool(group.required_on_web),
        "required_on_register": bool(group.required_on_register),
        "default_checked_subproduct_id": group.default_checked_subproduct_id,
        "subproduct_ids": [subproduct.id for subproduct in group.subproducts],
    }


def _product_document(product: Product) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": product.price or 0.0,
        "tax_rate": product.tax_rate,
        "stock_quantity": product.stock_quantity,
        "modtime": product.modtime or 0,
        "remote_ref": product.remote_ref,
        "categories": [
            {"id": c.id, "name": c.name, "remote_ref": c.remote_ref}
            for c in product.categories
        ],
        "modifier_groups": [
            {
                "slot": assignment.slot,
                "group": (
                    _modifier_group_document(assignment.modifier_group)
                    if assignment.modifier_group is not None
                    else None
                ),
            }
            for assignment in product.modifier_group_assignments
        ],
    }


def _subproduct_document(subproduct: Subproduct) -> Dict[str, Any]:
    return {
        "id": subproduct.id,
        "name": subproduct.name,
        "price": subproduct.price or 0.0,
        "tax_rate": subproduct.tax_rate,
        "stock_quantity": subproduct.stock_quantity,
        "modtime": subproduct.modtime or 0,
        "remote_ref": subproduct.remote_ref,
    }


def _order_document(order: Order) -> Dict[str, Any]:
    return {
        "id": order.id,
        "status": order.status,
        "fulfillment_method": order.fulfillment_method,
        "fulfillment_date": order.fulfillment_date,
        "fulfillment_time": order.fulfillment_time,
        "shipping_cost": order.shipping_cost,
        "discount_total": order.discount_total,
        "remote_order_ref": order.remote_order_ref,
        "customer": {
            "email": order.customer_email,
            "first_name": order.customer_first_name,
            "last_name": order.customer_last_name,
            "phone": order.customer_phone,
            "address": order.customer_address,
            "postal_code": order.customer_postal_code,
            "city": order.customer_city,
        },
        "lines": [
            {
                "id": line.id,
                "product_id": line.product_id,
                "quantity": line.quantity,
                "price": line.price,
                "tax_rate": line.tax_rate,
                "subproducts": [
                    {
                        "subproduct_id": selection.subproduct_id,
                        "quantity": selection.quantity,
                        "price": selection.price,
                        "tax_rate": selection.tax_rate,
                    }
                    for selection in line.subproducts
                ],
            }
            for line in order.lines
        ],
        "payments": [
            {"provider": payment.provider, "amount": payment.amount}
            for payment in order.payments
        ],
    }


class SQLAlchemyDocumentRepository(DocumentRepository):
    models = {
        EntityKind.CATEGORY: Category,
        EntityKind.PRODUCT: Product,
        EntityKind.SUBPRODUCT: Subproduct,
        EntityKind.ORDER: Order,
    }

    serializers = {
        EntityKind.CATEGORY: _category_document,
        EntityKind.PRODUCT: _product_document,
        EntityKind.SUBPRODUCT: _subproduct_document,
        EntityKind.ORDER: _order_document,
    }

    def __init__(self, db: Session, shop_id: int, tenant_id: Optional[int] = None):
        self.db = db
        self.shop_id = shop_id
        self.tenant_id = tenant_id

    def _query(self, kind: EntityKind):
        model = self.models[kind]
        return self.db.query(model).filter(model.shop_id == self.shop_id)

    def _get(self, kind: EntityKind, entity_id: int):
        model = self.models[kind]
        return self._query(kind).filter(model.id == entity_id).first()

    def _load_categories(self, category_ids: List[int]) -> List[Category]:
        if not category_ids:
            return []
        return (
            self._query(EntityKind.CATEGORY)
            .filter(Category.id.in_(category_ids))
            .all()
        )

    def _apply_fields(self, kind: EntityKind, obj, fields: Dict[str, Any]):
        model = self.models[kind]
        for field, value in fields.items():
            if field == "category_ids" and kind == EntityKind.PRODUCT:
                obj.categories = self._load_categories(value)
            elif field in ("id", "shop_id", "tenant_id") or not hasattr(model, field):
                raise ValueError(f"Field {field!r} cannot be written on {kind.value}")
            else:
                setattr(obj, field, value)

    def find(
        self, kind: EntityKind, filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        model = self.models[kind]
        query = self._query(kind)
        for field, value in (filters or {}).items():
            column = getattr(model, field, None)
            if column is None:
                raise ValueError(f"Unknown {kind.value} field: {field}")
            query = query.filter(column == value)
        serialize = self.serializers[kind]
        return [serialize(obj) for obj in query.order_by(model.id).all()]

    def find_by_id(self, kind: EntityKind, entity_id: int) -> Optional[Dict[str, Any]]:
        obj = self._get(kind, entity_id)
        return self.serializers[kind](obj) if obj is not None else None

    def create(self, kind: EntityKind, fields: Dict[str, Any]) -> int:
        model = self.models[kind]
        obj = model(shop_id=self.shop_id, tenant_id=self.tenant_id)
        self._apply_fields(kind, obj, fields)
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        logger.debug(f"Created local {kind.value} {obj.id} for shop {self.shop_id}")
        return obj.id

    def update(self, kind: EntityKind, entity_id: int, fields: Dict[str, Any]) -> None:
        obj = self._get(kind, entity_id)
        if obj is None:
            raise EntityNotFoundError(kind.value, entity_id)
        self._apply_fields(kind, obj, fields)
        self.db.commit()
