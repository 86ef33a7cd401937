from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.sql import func


class TimestampMixin:
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(),
                        onupdate=func.now(), nullable=False)


class ShopScopedMixin:
    """Mixin for rows owned by one shop of one tenant"""
    tenant_id = Column(Integer, nullable=True, index=True)
    shop_id = Column(Integer, nullable=False, index=True)


class CatalogSyncMixin:
    """Linkage fields shared by catalog entities mirrored in the POS"""
    modtime = Column(Integer, nullable=False, default=0)
    remote_ref = Column(Integer, nullable=True, index=True)
