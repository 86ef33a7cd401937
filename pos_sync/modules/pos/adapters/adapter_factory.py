from typing import Dict, Any
from .base_adapter import BasePOSAdapter
from .cloudpos_adapter import CloudPOSAdapter
from ..enums.pos_enums import POSVendor


class AdapterFactory:
    @staticmethod
    def create_adapter(
        vendor: POSVendor, credentials: Dict[str, Any]
    ) -> BasePOSAdapter:
        adapters = {
            POSVendor.CLOUDPOS: CloudPOSAdapter,
        }

        adapter_class = adapters.get(vendor)
        if not adapter_class:
            raise ValueError(f"Unsupported POS vendor: {vendor}")

        return adapter_class(credentials)
