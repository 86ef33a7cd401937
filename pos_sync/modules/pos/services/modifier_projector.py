import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..adapters.base_adapter import BasePOSAdapter
from ..enums.pos_enums import EntityKind, MAX_MODIFIER_SLOTS
from ..exceptions import POSSemanticError
from ..repositories.document_repository import DocumentRepository

logger = logging.getLogger(__name__)


@dataclass
class ProjectionReport:
    slots_written: int = 0
    warnings: List[str] = field(default_factory=list)

    def warn(self, message: str):
        self.warnings.append(message)
        logger.warning(message)


class ModifierGroupProjector:
    """
    Writes a product's modifier groups into the POS's fixed popup slots.

    CloudPOS has ten popup columns per product. Groups are taken in slot
    order and numbered 1..10 compactly; each write fully replaces the slot.
    """

    def __init__(self, adapter: BasePOSAdapter, repository: DocumentRepository):
        self.adapter = adapter
        self.repository = repository
        self._subproduct_refs: Dict[int, Optional[int]] = {}

    def _subproduct_ref(self, subproduct_id: int) -> Optional[int]:
        if subproduct_id not in self._subproduct_refs:
            document = self.repository.find_by_id(EntityKind.SUBPRODUCT, subproduct_id)
            self._subproduct_refs[subproduct_id] = (
                document.get("remote_ref") if document else None
            )
        return self._subproduct_refs[subproduct_id]

    def build_slot(
        self,
        popup_id: int,
        group: Dict[str, Any],
        product_name: str,
        report: ProjectionReport,
    ) -> Dict[str, Any]:
        subproduct_ids = []
        for subproduct_id in group.get("subproduct_ids", []):
            remote_ref = self._subproduct_ref(subproduct_id)
            if remote_ref is None:
                report.warn(
                    f"Subproduct {subproduct_id} of modifier group '{group['title']}' "
                    f"on product '{product_name}' is not synced to the POS, left out"
                )
                continue
            subproduct_ids.append(remote_ref)

        default_checked = 0
        if group.get("default_checked_subproduct_id"):
            default_checked = (
                self._subproduct_ref(group["default_checked_subproduct_id"]) or 0
            )

        return {
            "popupid": popup_id,
            "popup_titel": group["title"],
            "multiselect": bool(group.get("multiselect")),
            "required_option_cashregister": bool(group.get("required_on_register")),
            "required_option_webshop": bool(group.get("required_on_web")),
            "minimum_option": group.get("min_options") or 0,
            "maximum_option": group.get("max_options") or 0,
            "default_checked_subproduct_id": default_checked,
            "subproduct_ids": subproduct_ids,
        }

    async def project(
        self, product: Dict[str, Any], product_remote_id: int
    ) -> ProjectionReport:
        report = ProjectionReport()
        assignments = sorted(
            product.get("modifier_groups", []), key=lambda a: a.get("slot") or 0
        )
        if not assignments:
            return report

        if len(assignments) > MAX_MODIFIER_SLOTS:
            report.warn(
                f"Product '{product['name']}' has {len(assignments)} modifier groups, "
                f"only the first {MAX_MODIFIER_SLOTS} are sent to the POS"
            )
            assignments = assignments[:MAX_MODIFIER_SLOTS]

        for popup_id, assignment in enumerate(assignments, start=1):
            group = assignment.get("group")
            if group is None:
                report.warn(
                    f"Modifier slot {assignment.get('slot')} on product "
                    f"'{product['name']}' has no group, skipped"
                )
                continue

            slot_fields = self.build_slot(popup_id, group, product["name"], report)
            try:
                await self.adapter.update_modifier_slot(product_remote_id, slot_fields)
            except POSSemanticError as e:
                report.warn(
                    f"POS rejected popup {popup_id} of product '{product['name']}': "
                    f"{e.message}"
                )
                continue
            report.slots_written += 1
            logger.info(
                f"Wrote popup {popup_id} '{group['title']}' for product "
                f"'{product['name']}' (remote ID {product_remote_id})"
            )

        return report
