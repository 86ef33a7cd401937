import logging
import httpx
from typing import Dict, Any, Optional, List
from pos_sync.core.config import settings
from .base_adapter import BasePOSAdapter
from ..enums.pos_enums import EntityKind, CATALOG_KINDS
from ..exceptions import POSSemanticError, POSTransientError
from ..schemas.pos_schemas import (
    RemoteCatalogEntity,
    RemoteCategory,
    RemoteProduct,
    RemoteSubproduct,
)

logger = logging.getLogger(__name__)

# Statuses worth retrying even though they are below 500
TRANSIENT_STATUS_CODES = {408, 425, 429}


class CloudPOSAdapter(BasePOSAdapter):
    """
    CloudPOS v2 API client.

    Every endpoint is a JSON POST to ``<base_url><entity>.<action>``
    authenticated by the ``Licensename`` and ``Token`` headers.
    """

    remote_models = {
        EntityKind.CATEGORY: RemoteCategory,
        EntityKind.PRODUCT: RemoteProduct,
        EntityKind.SUBPRODUCT: RemoteSubproduct,
    }

    def __init__(
        self,
        credentials: Dict[str, Any],
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(credentials)
        self.base_url = credentials.get("base_url") or settings.CLOUDPOS_BASE_URL
        if not self.base_url.endswith("/"):
            self.base_url += "/"
        self.timeout = settings.CLOUDPOS_HTTP_TIMEOUT_SECONDS
        self.headers = {
            "Content-Type": "application/json",
            "Licensename": credentials.get("license_name", ""),
            "Token": credentials.get("token", ""),
        }
        self._transport = transport

    async def _request(self, endpoint: str, body: Optional[Dict[str, Any]] = None) -> Any:
        async with httpx.AsyncClient(
            transport=self._transport, timeout=self.timeout
        ) as client:
            try:
                response = await client.post(
                    f"{self.base_url}{endpoint}",
                    json=body or {},
                    headers=self.headers,
                )
            except httpx.TimeoutException as e:
                raise POSTransientError(
                    f"CloudPOS {endpoint} timed out: {e}", endpoint=endpoint
                ) from e
            except httpx.HTTPError as e:
                raise POSTransientError(
                    f"CloudPOS {endpoint} request failed: {e}", endpoint=endpoint
                ) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        error_code = data.get("error_code") if isinstance(data, dict) else None
        message = data.get("message") if isinstance(data, dict) else None

        if response.status_code >= 500 or response.status_code in TRANSIENT_STATUS_CODES:
            raise POSTransientError(
                f"CloudPOS {endpoint} returned HTTP {response.status_code}: "
                f"{message or response.text[:200]}",
                endpoint=endpoint,
                remote_status=response.status_code,
            )
        if response.is_error or error_code:
            raise POSSemanticError(
                f"CloudPOS request failed: {message or f'Error code {error_code} calling {endpoint}'}",
                endpoint=endpoint,
                remote_status=response.status_code,
                error_code=error_code,
            )
        return data

    @staticmethod
    def _require_id(data: Any, key: str, endpoint: str) -> int:
        remote_id = data.get(key) if isinstance(data, dict) else None
        if not remote_id:
            raise POSSemanticError(
                f"Missing {key} in the CloudPOS {endpoint} response: {data!r}",
                endpoint=endpoint,
            )
        return int(remote_id)

    @staticmethod
    def _as_list(data: Any) -> List[Dict[str, Any]]:
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("data"), list):
            return data["data"]
        return []

    @staticmethod
    def _check_catalog_kind(kind: EntityKind):
        if kind not in CATALOG_KINDS:
            raise ValueError(f"{kind.value} is not a CloudPOS catalog kind")

    async def test_connection(self) -> bool:
        try:
            await self._request("category.select")
            return True
        except (POSTransientError, POSSemanticError) as e:
            logger.warning(f"CloudPOS connection test failed: {e.message}")
            return False

    async def list_entities(self, kind: EntityKind) -> List[RemoteCatalogEntity]:
        self._check_catalog_kind(kind)
        logger.info(f"[CloudPOS] Fetching {kind.value} list...")
        data = await self._request(f"{kind.value}.select")
        model = self.remote_models[kind]
        return [model.model_validate(row) for row in self._as_list(data)]

    async def create_entity(self, kind: EntityKind, fields: Dict[str, Any]) -> int:
        self._check_catalog_kind(kind)
        endpoint = f"{kind.value}.insert"
        data = await self._request(endpoint, fields)
        return self._require_id(data, "id", endpoint)

    async def update_entity(
        self, kind: EntityKind, remote_id: int, fields: Dict[str, Any]
    ) -> None:
        self._check_catalog_kind(kind)
        await self._request(f"{kind.value}.update", {"id": remote_id, **fields})

    async def select_modifier_slots(self, product_remote_id: int) -> List[Dict[str, Any]]:
        data = await self._request("productpopup.select", {"id": product_remote_id})
        if isinstance(data, dict) and "data" not in data:
            return [data] if data else []
        return self._as_list(data)

    async def update_modifier_slot(
        self, product_remote_id: int, slot_fields: Dict[str, Any]
    ) -> None:
        await self._request(
            "productpopup.update", {**slot_fields, "id": product_remote_id}
        )

    async def find_customer_id(self, email: str) -> Optional[int]:
        data = await self._request("customer.select", {"email": email})
        # customer.select answers with a single object or an array of matches
        customers = data if isinstance(data, list) else [data]
        wanted = email.strip().lower()
        for customer in customers:
            if not isinstance(customer, dict) or not customer.get("id"):
                continue
            # select endpoints are not guaranteed to apply the filter
            found = (customer.get("email") or "").strip().lower()
            if found and found != wanted:
                continue
            return int(customer["id"])
        return None

    async def create_customer(self, fields: Dict[str, Any]) -> int:
        data = await self._request("customer.insert", fields)
        return self._require_id(data, "id", "customer.insert")

    async def update_customer(self, remote_id: int, fields: Dict[str, Any]) -> None:
        await self._request("customer.update", {"id": remote_id, **fields})

    async def create_web_order(self, order_fields: Dict[str, Any]) -> int:
        data = await self._request("weborder.insert", order_fields)
        return self._require_id(data, "weborderid", "weborder.insert")
