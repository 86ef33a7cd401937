from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List
from ..enums.pos_enums import EntityKind
from ..schemas.pos_schemas import RemoteCatalogEntity


class BasePOSAdapter(ABC):
    """Network boundary to a POS system; no caching and no business logic"""

    def __init__(self, credentials: Dict[str, Any]):
        self.credentials = credentials

    @abstractmethod
    async def test_connection(self) -> bool:
        """Test if credentials are valid and connection works"""
        pass

    # Catalog

    @abstractmethod
    async def list_entities(self, kind: EntityKind) -> List[RemoteCatalogEntity]:
        """Fetch every remote entity of a catalog kind"""
        pass

    @abstractmethod
    async def create_entity(self, kind: EntityKind, fields: Dict[str, Any]) -> int:
        """Create a remote entity and return its remote id"""
        pass

    @abstractmethod
    async def update_entity(
        self, kind: EntityKind, remote_id: int, fields: Dict[str, Any]
    ) -> None:
        """Overwrite the fields of an existing remote entity"""
        pass

    # Modifier groups

    @abstractmethod
    async def select_modifier_slots(self, product_remote_id: int) -> List[Dict[str, Any]]:
        """Read the modifier slots currently attached to a remote product"""
        pass

    @abstractmethod
    async def update_modifier_slot(
        self, product_remote_id: int, slot_fields: Dict[str, Any]
    ) -> None:
        """Replace one numbered modifier slot of a remote product"""
        pass

    # Customers and orders

    @abstractmethod
    async def find_customer_id(self, email: str) -> Optional[int]:
        """Return the remote id of the customer with this email, if any"""
        pass

    @abstractmethod
    async def create_customer(self, fields: Dict[str, Any]) -> int:
        """Create a remote customer and return its id"""
        pass

    @abstractmethod
    async def update_customer(self, remote_id: int, fields: Dict[str, Any]) -> None:
        """Update a remote customer"""
        pass

    @abstractmethod
    async def create_web_order(self, order_fields: Dict[str, Any]) -> int:
        """Submit an order and return the remote order id"""
        pass
