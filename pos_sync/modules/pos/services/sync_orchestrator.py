# pos_sync/modules/pos/services/sync_orchestrator.py

"""
Entry points of the sync engine.

``run_catalog_sync`` reconciles categories, then products (with their
modifier groups), then subproducts. ``push_order`` submits one order at most
once. Both run under the shop's lock so they never race on the same shop.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..enums.pos_enums import EntityKind, OrderSyncMode, SyncDirection
from ..exceptions import (
    EntityNotFoundError,
    POSIntegrationNotFoundError,
    POSSemanticError,
    POSTransientError,
)
from ..models.pos_integration import POSIntegration
from ..repositories.document_repository import SQLAlchemyDocumentRepository
from ..schemas.pos_schemas import EntitySyncResult, OrderPushResult, SyncSummary
from .entity_handlers import build_catalog_handlers
from .modifier_projector import ModifierGroupProjector
from .order_transformer import OrderTransformer
from .reconciler import EntityReconciler
from .sync_runtime import SyncRuntime

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    def __init__(self, db: Session, runtime: SyncRuntime):
        self.db = db
        self.runtime = runtime

    def get_active_integration(self, shop_id: int) -> POSIntegration:
        integration = (
            self.db.query(POSIntegration)
            .filter(
                POSIntegration.shop_id == shop_id,
                POSIntegration.active.is_(True),
            )
            .order_by(POSIntegration.id.desc())
            .first()
        )
        if not integration:
            raise POSIntegrationNotFoundError(shop_id)
        return integration

    async def run_catalog_sync(
        self, shop_id: int, direction: Optional[SyncDirection] = None
    ) -> SyncSummary:
        integration = self.get_active_integration(shop_id)
        summary = SyncSummary(shop_id=shop_id, started_at=datetime.utcnow())

        async with self.runtime.shop_locks.lock_for(shop_id):
            repository = SQLAlchemyDocumentRepository(
                self.db, shop_id, integration.tenant_id
            )
            adapter = self.runtime.adapter_for(integration)
            projector = ModifierGroupProjector(adapter, repository)

            for handler in build_catalog_handlers(adapter, repository, projector):
                kind_direction = direction if direction is not None else SyncDirection(
                    getattr(integration, handler.config_field)
                )
                result = EntitySyncResult(
                    kind=handler.kind.value, direction=kind_direction
                )
                summary.results[handler.kind.value] = result
                try:
                    await EntityReconciler(handler, repository).reconcile(
                        kind_direction, result
                    )
                except POSTransientError as e:
                    summary.error = e.message
                    summary.retryable = True
                    logger.error(
                        f"Catalog sync for shop {shop_id} aborted during "
                        f"{handler.kind.value}: {e.message}"
                    )
                    break
                except POSSemanticError as e:
                    # The remote list itself was refused (e.g. bad credentials)
                    summary.error = e.message
                    logger.error(
                        f"Catalog sync for shop {shop_id} aborted during "
                        f"{handler.kind.value}: {e.message}"
                    )
                    break

        summary.completed_at = datetime.utcnow()
        logger.info(f"Catalog sync for shop {shop_id} finished: {summary.totals()}")
        return summary

    async def push_order(self, shop_id: int, order_id: int) -> OrderPushResult:
        repository = SQLAlchemyDocumentRepository(self.db, shop_id)
        order = repository.find_by_id(EntityKind.ORDER, order_id)
        if order is None:
            raise EntityNotFoundError("Order", order_id)
        if order["remote_order_ref"]:
            logger.info(
                f"Order {order_id} already pushed as web order "
                f"{order['remote_order_ref']}, skipping"
            )
            return OrderPushResult(
                order_id=order_id,
                remote_order_ref=order["remote_order_ref"],
                already_pushed=True,
            )

        integration = self.get_active_integration(shop_id)
        if integration.sync_orders != OrderSyncMode.PUSH.value:
            message = f"Order push is off for shop {shop_id}, order {order_id} not sent"
            logger.info(message)
            return OrderPushResult(
                order_id=order_id, push_disabled=True, warnings=[message]
            )

        async with self.runtime.shop_locks.lock_for(shop_id):
            # Another push of the same order may have finished while we waited
            self.db.expire_all()
            order = repository.find_by_id(EntityKind.ORDER, order_id)
            if order["remote_order_ref"]:
                return OrderPushResult(
                    order_id=order_id,
                    remote_order_ref=order["remote_order_ref"],
                    already_pushed=True,
                )

            transformer = OrderTransformer(
                self.runtime.adapter_for(integration),
                repository,
                self.runtime.shipping_cache,
                connection_key=f"{integration.vendor}:{integration.license_name}",
            )
            return await transformer.push(order)
