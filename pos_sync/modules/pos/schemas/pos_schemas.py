from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List
from datetime import datetime
from ..enums.pos_enums import OrderSyncMode, POSVendor, SyncDirection


class POSIntegrationCreate(BaseModel):
    shop_id: int
    tenant_id: Optional[int] = None
    vendor: POSVendor = POSVendor.CLOUDPOS
    license_name: str
    token: str
    sync_categories: SyncDirection = SyncDirection.OFF
    sync_products: SyncDirection = SyncDirection.OFF
    sync_subproducts: SyncDirection = SyncDirection.OFF
    sync_orders: OrderSyncMode = OrderSyncMode.OFF


class POSIntegrationOut(BaseModel):
    id: int
    shop_id: int
    tenant_id: Optional[int] = None
    vendor: str
    active: bool
    connected_on: datetime
    sync_categories: SyncDirection
    sync_products: SyncDirection
    sync_subproducts: SyncDirection
    sync_orders: OrderSyncMode
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# Remote (CloudPOS) entities as returned by the <kind>.select endpoints


class RemoteCatalogEntity(BaseModel):
    id: int
    name: str = ""
    modtime: int = 0

    @field_validator("modtime", mode="before")
    @classmethod
    def default_modtime(cls, v):
        return v or 0

    @field_validator("name", mode="before")
    @classmethod
    def default_name(cls, v):
        return v or ""


class RemoteCategory(RemoteCatalogEntity):
    pass


class PricedRemoteEntity(RemoteCatalogEntity):
    price: float = 0.0
    tax: float = 0.0

    @field_validator("price", "tax", mode="before")
    @classmethod
    def parse_number(cls, v):
        # CloudPOS sends prices as "12.50"
        return float(v) if v not in (None, "") else 0.0


class RemoteSubproduct(PricedRemoteEntity):
    product_ids: List[int] = Field(default_factory=list)

    @field_validator("product_ids", mode="before")
    @classmethod
    def default_product_ids(cls, v):
        return v or []


class RemoteProduct(PricedRemoteEntity):
    category_id: Optional[int] = None

    @field_validator("category_id", mode="before")
    @classmethod
    def empty_category(cls, v):
        return v or None


# Sync results


class EntitySyncResult(BaseModel):
    kind: str
    direction: SyncDirection
    created_remote: int = 0
    linked: int = 0
    recreated: int = 0
    updated_remote: int = 0
    created_local: int = 0
    updated_local: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    modifier_slots_written: int = 0
    warnings: List[str] = Field(default_factory=list)

    @property
    def writes(self) -> int:
        return (
            self.created_remote + self.linked + self.recreated + self.updated_remote
            + self.created_local + self.updated_local
        )


class SyncSummary(BaseModel):
    shop_id: int
    started_at: datetime
    completed_at: Optional[datetime] = None
    results: Dict[str, EntitySyncResult] = Field(default_factory=dict)
    error: Optional[str] = None
    retryable: bool = False

    @property
    def success(self) -> bool:
        return self.error is None

    def totals(self) -> Dict[str, int]:
        counters = (
            "created_remote", "linked", "recreated", "updated_remote",
            "created_local", "updated_local", "unchanged", "skipped", "failed",
            "modifier_slots_written",
        )
        return {
            name: sum(getattr(result, name) for result in self.results.values())
            for name in counters
        }


class OrderPushResult(BaseModel):
    order_id: int
    remote_order_ref: Optional[int] = None
    already_pushed: bool = False
    push_disabled: bool = False
    lines_pushed: int = 0
    skipped_lines: int = 0
    warnings: List[str] = Field(default_factory=list)
    payload: Optional[Dict[str, Any]] = None


class SyncResponse(BaseModel):
    success: bool
    message: str
    summary: Optional[SyncSummary] = None
    totals: Optional[Dict[str, int]] = None
