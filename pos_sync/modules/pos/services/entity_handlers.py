# pos_sync/modules/pos/services/entity_handlers.py

"""
Per-kind behaviour plugged into the generic reconciler.

Each handler knows how to fetch its kind from the POS, how to map a local
document to CloudPOS fields and back, and which preconditions apply.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pos_sync.core.config import settings
from ..adapters.base_adapter import BasePOSAdapter
from ..enums.pos_enums import EntityKind
from ..exceptions import PreconditionNotMetError
from ..repositories.document_repository import DocumentRepository
from ..schemas.pos_schemas import EntitySyncResult, RemoteCatalogEntity
from ..utils.formatting import format_amount, format_tax

logger = logging.getLogger(__name__)


class EntityHandler(ABC):
    kind: EntityKind
    # POSIntegration column holding the configured direction for this kind
    config_field: str

    def __init__(self, adapter: BasePOSAdapter, repository: DocumentRepository):
        self.adapter = adapter
        self.repository = repository

    async def fetch_remote(self) -> List[RemoteCatalogEntity]:
        return await self.adapter.list_entities(self.kind)

    def prepare_push(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Context needed to push ``document``; raise PreconditionNotMetError to skip it"""
        return {}

    @abstractmethod
    def to_remote_fields(
        self, document: Dict[str, Any], context: Dict[str, Any]
    ) -> Dict[str, Any]:
        pass

    @abstractmethod
    def from_remote_fields(self, remote: RemoteCatalogEntity) -> Dict[str, Any]:
        pass

    def new_local_fields(self, remote: RemoteCatalogEntity) -> Dict[str, Any]:
        return {**self.from_remote_fields(remote), "remote_ref": remote.id}

    def should_pull(self, remote: RemoteCatalogEntity) -> bool:
        return True

    async def after_push(
        self, document: Dict[str, Any], remote_id: int, result: EntitySyncResult
    ) -> None:
        pass


class CategoryHandler(EntityHandler):
    kind = EntityKind.CATEGORY
    config_field = "sync_categories"

    def to_remote_fields(self, document, context):
        return {"name": document["name"], "modtime": document.get("modtime") or 0}

    def from_remote_fields(self, remote):
        return {"name": remote.name, "modtime": remote.modtime}


class SubproductHandler(EntityHandler):
    kind = EntityKind.SUBPRODUCT
    config_field = "sync_subproducts"

    def to_remote_fields(self, document, context):
        return {
            "name": document["name"],
            "price": format_amount(document.get("price")),
            "tax": format_tax(document.get("tax_rate")),
            "modtime": document.get("modtime") or 0,
        }

    def from_remote_fields(self, remote):
        return {
            "name": remote.name,
            "price": remote.price,
            "tax_rate": remote.tax,
            "modtime": remote.modtime,
        }


class ProductHandler(SubproductHandler):
    kind = EntityKind.PRODUCT
    config_field = "sync_products"

    def __init__(self, adapter, repository, projector=None):
        super().__init__(adapter, repository)
        self.projector = projector

    def prepare_push(self, document):
        linked = next(
            (c for c in document.get("categories", []) if c.get("remote_ref")), None
        )
        if linked is None:
            raise PreconditionNotMetError(
                f"Product '{document['name']}' (local ID {document['id']}) has no "
                f"category linked to the POS yet"
            )
        return {"category_id": linked["remote_ref"]}

    def to_remote_fields(self, document, context):
        return {
            **super().to_remote_fields(document, context),
            "category_id": context["category_id"],
        }

    def new_local_fields(self, remote):
        if not remote.category_id:
            raise PreconditionNotMetError(
                f"Remote product {remote.id} has no category_id"
            )
        matches = self.repository.find(
            EntityKind.CATEGORY, {"remote_ref": remote.category_id}
        )
        if not matches:
            raise PreconditionNotMetError(
                f"Remote product {remote.id} has category_id={remote.category_id} "
                f"which matches no local category"
            )
        return {
            **super().new_local_fields(remote),
            "description": "",
            "category_ids": [matches[0]["id"]],
        }

    def should_pull(self, remote):
        # The order push keeps a remote-only placeholder product for shipping
        return remote.name != settings.CLOUDPOS_SHIPPING_PRODUCT_NAME

    async def after_push(self, document, remote_id, result):
        if self.projector is None:
            return
        report = await self.projector.project(document, remote_id)
        result.modifier_slots_written += report.slots_written
        result.warnings.extend(report.warnings)


def build_catalog_handlers(
    adapter: BasePOSAdapter, repository: DocumentRepository, projector=None
) -> List[EntityHandler]:
    """Handlers in sync order: categories before products, then subproducts"""
    return [
        CategoryHandler(adapter, repository),
        ProductHandler(adapter, repository, projector),
        SubproductHandler(adapter, repository),
    ]


def find_by_name(
    name: Optional[str], candidates, claimed=frozenset()
):
    """Case-insensitive exact name match among unclaimed candidates"""
    if not name:
        return None
    wanted = name.casefold()
    for candidate in candidates:
        candidate_name = candidate["name"] if isinstance(candidate, dict) else candidate.name
        candidate_id = candidate["id"] if isinstance(candidate, dict) else candidate.id
        if candidate_id in claimed:
            continue
        if (candidate_name or "").casefold() == wanted:
            return candidate
    return None
