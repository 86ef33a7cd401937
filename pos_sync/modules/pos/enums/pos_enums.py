from enum import Enum


class POSVendor(str, Enum):
    CLOUDPOS = "cloudpos"


class SyncDirection(str, Enum):
    """Which half of the reconciliation runs for an entity kind"""
    OFF = "off"
    PUSH = "push"    # local -> POS
    PULL = "pull"    # POS -> local
    BOTH = "both"

    @property
    def pushes(self) -> bool:
        return self in (SyncDirection.PUSH, SyncDirection.BOTH)

    @property
    def pulls(self) -> bool:
        return self in (SyncDirection.PULL, SyncDirection.BOTH)


class OrderSyncMode(str, Enum):
    OFF = "off"
    PUSH = "push"


class EntityKind(str, Enum):
    """Document kinds; catalog values double as CloudPOS endpoint prefixes"""
    CATEGORY = "category"
    PRODUCT = "product"
    SUBPRODUCT = "subproduct"
    ORDER = "order"


CATALOG_KINDS = (EntityKind.CATEGORY, EntityKind.PRODUCT, EntityKind.SUBPRODUCT)


class FulfillmentMethod(str, Enum):
    DINE_IN = "dine_in"
    TAKEAWAY = "takeaway"
    DELIVERY = "delivery"


class DeliveryMode(int, Enum):
    """CloudPOS ``delivery`` field of a web order"""
    TAKEAWAY = 0
    DELIVERY = 1
    DINE_IN = 2


# CloudPOS exposes ten popup columns per product and ten sub-slots per order line
MAX_MODIFIER_SLOTS = 10
