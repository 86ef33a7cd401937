from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
import logging
from pos_sync.core.database import get_db
from pos_sync.core.exceptions import NotFoundError
from ..models.pos_integration import POSIntegration
from ..services.sync_orchestrator import SyncOrchestrator
from ..services.sync_runtime import SyncRuntime
from ..schemas.pos_schemas import (
    POSIntegrationCreate,
    POSIntegrationOut,
    SyncResponse,
    OrderPushResult,
)
from ..enums.pos_enums import SyncDirection

router = APIRouter(prefix="/pos", tags=["POS Integration"])

logger = logging.getLogger(__name__)


def get_sync_runtime(request: Request) -> SyncRuntime:
    return request.app.state.sync_runtime


def get_orchestrator(
    db: Session = Depends(get_db),
    runtime: SyncRuntime = Depends(get_sync_runtime),
) -> SyncOrchestrator:
    return SyncOrchestrator(db, runtime)


def _get_integration(db: Session, integration_id: int) -> POSIntegration:
    integration = (
        db.query(POSIntegration).filter(POSIntegration.id == integration_id).first()
    )
    if not integration:
        raise NotFoundError(detail="Integration not found")
    return integration


@router.post("/integrations", response_model=POSIntegrationOut)
async def create_pos_integration(
    integration_data: POSIntegrationCreate, db: Session = Depends(get_db)
):
    """Create a shop's POS connection"""
    integration = POSIntegration(
        shop_id=integration_data.shop_id,
        tenant_id=integration_data.tenant_id,
        vendor=integration_data.vendor.value,
        license_name=integration_data.license_name,
        token=integration_data.token,
        connected_on=datetime.utcnow(),
        active=True,
        sync_categories=integration_data.sync_categories.value,
        sync_products=integration_data.sync_products.value,
        sync_subproducts=integration_data.sync_subproducts.value,
        sync_orders=integration_data.sync_orders.value,
    )
    db.add(integration)
    db.commit()
    db.refresh(integration)
    logger.info(f"Created POS integration {integration.id} for shop {integration.shop_id}")
    return integration


@router.get("/integrations", response_model=List[POSIntegrationOut])
async def list_pos_integrations(
    shop_id: Optional[int] = None, db: Session = Depends(get_db)
):
    """List POS integrations, optionally for one shop"""
    query = db.query(POSIntegration)
    if shop_id is not None:
        query = query.filter(POSIntegration.shop_id == shop_id)
    return query.order_by(POSIntegration.id).all()


@router.get("/integrations/{integration_id}", response_model=POSIntegrationOut)
async def get_pos_integration(integration_id: int, db: Session = Depends(get_db)):
    """Get a specific POS integration"""
    return _get_integration(db, integration_id)


@router.get("/integrations/{integration_id}/test")
async def test_pos_integration(
    integration_id: int,
    db: Session = Depends(get_db),
    runtime: SyncRuntime = Depends(get_sync_runtime),
):
    """Test POS integration connection"""
    integration = _get_integration(db, integration_id)
    is_connected = await runtime.adapter_for(integration).test_connection()
    return {"connected": is_connected}


@router.post("/shops/{shop_id}/sync", response_model=SyncResponse)
async def run_catalog_sync(
    shop_id: int,
    direction: Optional[SyncDirection] = None,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
):
    """Reconcile the shop's catalog with its POS"""
    summary = await orchestrator.run_catalog_sync(shop_id, direction)
    if summary.success:
        message = "Catalog sync completed"
    elif summary.retryable:
        message = f"Catalog sync interrupted, safe to retry: {summary.error}"
    else:
        message = f"Catalog sync failed: {summary.error}"
    return SyncResponse(
        success=summary.success,
        message=message,
        summary=summary,
        totals=summary.totals(),
    )


@router.post("/shops/{shop_id}/orders/{order_id}/push", response_model=OrderPushResult)
async def push_order(
    shop_id: int,
    order_id: int,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
):
    """Submit an order to the shop's POS; already pushed orders are left alone"""
    return await orchestrator.push_order(shop_id, order_id)
