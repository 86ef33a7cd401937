# pos_sync/modules/pos/services/reconciler.py

"""
Two-way reconciliation of one entity kind between the local store and the POS.

Last-writer-wins on ``modtime``: the side with the strictly newer value
overwrites the other, equal values mean no action. Pushed fields carry the
local ``modtime`` so both copies share the same clock afterwards and a
second run with no edits writes nothing.
"""

import logging
from typing import Any, Dict, List, Optional, Set

from ..enums.pos_enums import SyncDirection
from ..exceptions import POSSemanticError, PreconditionNotMetError
from ..repositories.document_repository import DocumentRepository
from ..schemas.pos_schemas import EntitySyncResult, RemoteCatalogEntity
from .entity_handlers import EntityHandler, find_by_name

logger = logging.getLogger(__name__)


class EntityReconciler:
    def __init__(self, handler: EntityHandler, repository: DocumentRepository):
        self.handler = handler
        self.repository = repository
        self.kind = handler.kind

    async def reconcile(
        self,
        direction: SyncDirection,
        result: Optional[EntitySyncResult] = None,
    ) -> EntitySyncResult:
        """
        Run the push and/or pull half for this kind.

        ``result`` may be passed in so that counts recorded before a
        transient error are still visible to the caller.
        """
        if result is None:
            result = EntitySyncResult(kind=self.kind.value, direction=direction)

        if direction == SyncDirection.OFF:
            logger.info(f"Sync of {self.kind.value} is off, nothing to do")
            return result

        local_documents = self.repository.find(self.kind)
        remote_entities = await self.handler.fetch_remote()
        logger.info(
            f"Reconciling {len(local_documents)} local and "
            f"{len(remote_entities)} remote {self.kind.value} entities ({direction.value})"
        )

        if direction.pushes:
            await self._push_half(local_documents, remote_entities, direction, result)
        if direction.pulls:
            self._pull_half(local_documents, remote_entities, direction, result)

        return result

    async def _push_half(
        self,
        local_documents: List[Dict[str, Any]],
        remote_entities: List[RemoteCatalogEntity],
        direction: SyncDirection,
        result: EntitySyncResult,
    ):
        remote_by_id = {remote.id: remote for remote in remote_entities}
        claimed: Set[int] = {
            doc["remote_ref"] for doc in local_documents
            if doc.get("remote_ref") in remote_by_id
        }

        for document in local_documents:
            try:
                await self._push_entity(
                    document, remote_entities, remote_by_id, claimed, direction, result
                )
            except PreconditionNotMetError as e:
                result.skipped += 1
                result.warnings.append(e.message)
                logger.warning(f"Skipped {self.kind.value} {document['id']}: {e.message}")
            except POSSemanticError as e:
                result.failed += 1
                result.warnings.append(
                    f"{self.kind.value} '{document.get('name')}' (local ID "
                    f"{document['id']}) failed: {e.message}"
                )
                logger.error(
                    f"Failed to push {self.kind.value} {document['id']}: {e.message}"
                )

    async def _push_entity(
        self,
        document: Dict[str, Any],
        remote_entities: List[RemoteCatalogEntity],
        remote_by_id: Dict[int, RemoteCatalogEntity],
        claimed: Set[int],
        direction: SyncDirection,
        result: EntitySyncResult,
    ):
        context = self.handler.prepare_push(document)
        remote_ref = document.get("remote_ref")

        if remote_ref is None:
            match = find_by_name(document.get("name"), remote_entities, claimed)
            if match is None:
                remote_id = await self._create_remote(document, context)
                claimed.add(remote_id)
                result.created_remote += 1
                logger.info(
                    f"Created {self.kind.value} '{document['name']}' in POS "
                    f"(local ID {document['id']} -> remote ID {remote_id})"
                )
                await self.handler.after_push(document, remote_id, result)
                return

            # An entity with this name already exists remotely: adopt it
            self._store_remote_ref(document, match.id)
            claimed.add(match.id)
            result.linked += 1
            logger.info(
                f"Linked {self.kind.value} '{document['name']}' to existing remote "
                f"ID {match.id}"
            )
            remote = match
            linked = True
        elif remote_ref not in remote_by_id:
            remote_id = await self._create_remote(document, context)
            claimed.add(remote_id)
            result.recreated += 1
            logger.info(
                f"Remote {self.kind.value} {remote_ref} vanished, recreated "
                f"'{document['name']}' as {remote_id}"
            )
            await self.handler.after_push(document, remote_id, result)
            return
        else:
            remote = remote_by_id[remote_ref]
            linked = False

        local_modtime = document.get("modtime") or 0
        if local_modtime > remote.modtime:
            await self.handler.adapter.update_entity(
                self.kind, remote.id, self.handler.to_remote_fields(document, context)
            )
            result.updated_remote += 1
            logger.info(
                f"Updated {self.kind.value} '{document['name']}' in POS "
                f"(remote ID {remote.id})"
            )
        elif not linked and (local_modtime == remote.modtime or not direction.pulls):
            result.unchanged += 1

        await self.handler.after_push(document, remote.id, result)

    async def _create_remote(self, document: Dict[str, Any], context: Dict[str, Any]) -> int:
        remote_id = await self.handler.adapter.create_entity(
            self.kind, self.handler.to_remote_fields(document, context)
        )
        self._store_remote_ref(document, remote_id)
        return remote_id

    def _store_remote_ref(self, document: Dict[str, Any], remote_id: int):
        self.repository.update(self.kind, document["id"], {"remote_ref": remote_id})
        document["remote_ref"] = remote_id

    def _pull_half(
        self,
        local_documents: List[Dict[str, Any]],
        remote_entities: List[RemoteCatalogEntity],
        direction: SyncDirection,
        result: EntitySyncResult,
    ):
        local_by_ref = {
            doc["remote_ref"]: doc for doc in local_documents
            if doc.get("remote_ref") is not None
        }

        for remote in remote_entities:
            if not self.handler.should_pull(remote):
                continue

            local = local_by_ref.get(remote.id)
            if local is None:
                try:
                    fields = self.handler.new_local_fields(remote)
                except PreconditionNotMetError as e:
                    result.skipped += 1
                    result.warnings.append(e.message)
                    logger.warning(f"Skipped pulling {self.kind.value}: {e.message}")
                    continue
                local_id = self.repository.create(self.kind, fields)
                local_by_ref[remote.id] = {"id": local_id, **fields}
                result.created_local += 1
                logger.info(
                    f"Created local {self.kind.value} '{remote.name}' "
                    f"(remote ID {remote.id} -> local ID {local_id})"
                )
                continue

            if remote.modtime > (local.get("modtime") or 0):
                fields = self.handler.from_remote_fields(remote)
                self.repository.update(self.kind, local["id"], fields)
                local.update(fields)
                result.updated_local += 1
                logger.info(
                    f"Updated local {self.kind.value} {local['id']} from remote ID {remote.id}"
                )
            elif not direction.pushes:
                result.unchanged += 1
