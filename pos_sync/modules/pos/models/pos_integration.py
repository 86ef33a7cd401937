from sqlalchemy import Column, Integer, String, DateTime, Boolean
from pos_sync.core.database import Base
from pos_sync.core.mixins import TimestampMixin, ShopScopedMixin
from ..enums.pos_enums import OrderSyncMode, POSVendor, SyncDirection


class POSIntegration(Base, TimestampMixin, ShopScopedMixin):
    """Connection to a shop's POS plus the per-kind sync directions"""
    __tablename__ = "pos_integrations"

    id = Column(Integer, primary_key=True, index=True)
    vendor = Column(String, nullable=False, default=POSVendor.CLOUDPOS.value,
                    index=True)
    license_name = Column(String, nullable=False)
    token = Column(String, nullable=False)
    active = Column(Boolean, nullable=False, default=True, index=True)
    connected_on = Column(DateTime, nullable=False)

    sync_categories = Column(String, nullable=False, default=SyncDirection.OFF.value)
    sync_products = Column(String, nullable=False, default=SyncDirection.OFF.value)
    sync_subproducts = Column(String, nullable=False, default=SyncDirection.OFF.value)
    sync_orders = Column(String, nullable=False, default=OrderSyncMode.OFF.value)

    @property
    def credentials(self):
        return {"license_name": self.license_name, "token": self.token}

    def __repr__(self):
        return f"<POSIntegration(id={self.id}, shop_id={self.shop_id}, vendor='{self.vendor}')>"
