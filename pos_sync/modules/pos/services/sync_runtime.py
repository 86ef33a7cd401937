import asyncio
from typing import Callable, Dict, Optional

from ..adapters.adapter_factory import AdapterFactory
from ..adapters.base_adapter import BasePOSAdapter
from ..enums.pos_enums import POSVendor
from ..models.pos_integration import POSIntegration
from .order_transformer import ShippingProductCache

AdapterBuilder = Callable[[POSIntegration], BasePOSAdapter]


def default_adapter_builder(integration: POSIntegration) -> BasePOSAdapter:
    return AdapterFactory.create_adapter(
        POSVendor(integration.vendor), integration.credentials
    )


class ShopLockRegistry:
    """One asyncio.Lock per shop: catalog syncs and order pushes of a shop never overlap"""

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}

    def lock_for(self, shop_id: int) -> asyncio.Lock:
        lock = self._locks.get(shop_id)
        if lock is None:
            lock = self._locks[shop_id] = asyncio.Lock()
        return lock


class SyncRuntime:
    """Process-lifetime state shared by every sync invocation"""

    def __init__(self, adapter_builder: Optional[AdapterBuilder] = None):
        self.shop_locks = ShopLockRegistry()
        self.shipping_cache = ShippingProductCache()
        self.adapter_builder = adapter_builder or default_adapter_builder

    def adapter_for(self, integration: POSIntegration) -> BasePOSAdapter:
        return self.adapter_builder(integration)
