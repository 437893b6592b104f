import logging
import concurrent.futures
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from planipeda.core.composition import CompositionList
from planipeda.core.config import settings
from planipeda.core.errors import DanglingReferenceError, DocumentValidationError, NotFoundError
from planipeda.core.registry import MASTER_SPECS, ChannelSpec, ChildKind, DocumentType
from planipeda.db.backend import RelationalBackend
from planipeda.schemas.composition import CompositionItem

# Configure logger for this module
logger = logging.getLogger(__name__)

# Placeholders shown instead of an empty list, for consumers that expect at
# least one entry.
NO_OBJECTIVE = "no objective"
NO_KNOWLEDGE = "no knowledge"
NO_CAPABILITY = "no capability"
UNTITLED_EVALUATION = "Untitled evaluation"


@dataclass
class HydrationResult:
    """
    A parent's composition as loaded from storage. `errors` maps each kind
    whose fetch failed to its error message; `dangling` lists, per kind, the
    master ids whose association rows were dropped.
    """
    items: CompositionList
    errors: Dict[ChildKind, str] = field(default_factory=dict)
    dangling: Dict[ChildKind, List[int]] = field(default_factory=dict)


class HydrationService:
    """
    Turns association rows plus batch-fetched master records into a single
    order-sorted CompositionList.

    Every child kind of the document type is fetched on its own worker: the
    association rows first, then one batch query for the referenced master
    records with their objectives/knowledge/capabilities expanded. A kind
    that fails is reported in the result without affecting the others.
    """

    def __init__(
        self,
        backend: RelationalBackend,
        max_workers: int = settings.SYNC_MAX_WORKERS,
        dangling_policy: str = settings.DANGLING_REFERENCE_POLICY,
        empty_sentinels: bool = settings.EMPTY_LIST_SENTINELS,
    ):
        self.backend = backend
        self.max_workers = max(1, max_workers)
        self.dangling_policy = dangling_policy
        self.empty_sentinels = empty_sentinels

    def hydrate(self, document_type: DocumentType, parent_id: int) -> HydrationResult:
        """
        Loads the composition of `parent_id`.

        Args:
            document_type: Which parent table and channels to read.
            parent_id: The parent document id.

        Returns:
            HydrationResult: items from all kinds merged and sorted by their
            stored order, plus per-kind errors and dropped dangling ids.
        """
        logger.debug(f"HydrationService: Hydrating {document_type.kind.value} {parent_id}.")
        result = HydrationResult(items=CompositionList())
        collected: List[CompositionItem] = []

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                (channel, executor.submit(self._hydrate_channel, channel, parent_id))
                for channel in document_type.channels
            ]
            for channel, future in futures:
                try:
                    items, dangling = future.result()
                except Exception as e:
                    logger.error(f"HydrationService: Loading {channel.kind.value} items of {document_type.kind.value} {parent_id} failed: {e}")
                    result.errors[channel.kind] = str(e)
                    if isinstance(e, DanglingReferenceError):
                        result.dangling[channel.kind] = e.child_ids
                    continue
                collected.extend(items)
                if dangling:
                    result.dangling[channel.kind] = dangling

        # sort() is stable: equal orders keep the document type's kind order.
        collected.sort(key=lambda item: item.order)
        for item in collected:
            if not result.items.append(item, renumber=False):
                logger.warning(f"HydrationService: Skipping duplicate link '{item.local_key}' on {document_type.kind.value} {parent_id}.")

        logger.debug(
            f"HydrationService: {document_type.kind.value} {parent_id} hydrated with {len(result.items)} items, "
            f"{len(result.errors)} failed kinds, {sum(len(ids) for ids in result.dangling.values())} dangling rows."
        )
        return result

    def _hydrate_channel(self, channel: ChannelSpec, parent_id: int) -> Tuple[List[CompositionItem], List[int]]:
        rows = self.backend.select_where(channel.table, {channel.parent_column: parent_id}, order_by="order")
        if not rows:
            return [], []

        master_spec = MASTER_SPECS[channel.kind]
        child_ids = [row[channel.child_column] for row in rows]
        masters = self.backend.select_by_ids_with_joins(master_spec.table, child_ids, master_spec.joins)
        masters_by_id = {master["id"]: master for master in masters}

        items: List[CompositionItem] = []
        dangling: List[int] = []
        for row in rows:
            child_id = row[channel.child_column]
            master = masters_by_id.get(child_id)
            if master is None:
                dangling.append(child_id)
                continue
            items.append(self.to_item(channel.kind, master, order=row["order"], link_id=row.get("id")))

        if dangling:
            logger.warning(
                f"HydrationService: {channel.table} rows of parent {parent_id} reference missing "
                f"{channel.kind.value} records {dangling}; dropping them."
            )
            if self.dangling_policy == "strict":
                raise DanglingReferenceError(channel.kind.value, dangling)
        return items, dangling

    def build_item(self, document_type: DocumentType, kind: ChildKind, child_id: int) -> CompositionItem:
        """
        Hydrates a single master record into an item ready to be appended to
        a composition of `document_type`.

        Raises:
            DocumentValidationError: the document type does not compose `kind`.
            NotFoundError: no master record with that id.
        """
        kind = ChildKind(kind)
        if kind not in document_type.child_kinds:
            raise DocumentValidationError(f"{document_type.kind.value} documents cannot contain {kind.value} items")
        master_spec = MASTER_SPECS[kind]
        masters = self.backend.select_by_ids_with_joins(master_spec.table, [child_id], master_spec.joins)
        if not masters:
            raise NotFoundError(kind.value, child_id)
        return self.to_item(kind, masters[0])

    def to_item(self, kind: ChildKind, master: Dict[str, Any], order: int = 0, link_id: Optional[int] = None) -> CompositionItem:
        """Projects a master row (with expanded sub-relations) onto a display item."""
        data: Dict[str, Any] = {
            "child_kind": kind,
            "child_id": master["id"],
            "order": order,
            "persisted_link_id": link_id,
            "title": master.get("title") or "",
            "description": master.get("description"),
        }
        if kind == ChildKind.ACTIVITY:
            data["objectives"] = self._flatten(master.get("objectives"), "description", NO_OBJECTIVE)
        elif kind == ChildKind.EVALUATION:
            data["title"] = master.get("title") or UNTITLED_EVALUATION
            data["description"] = master.get("introduction") or master.get("specific_instructions")
            data["evaluation_type"] = master.get("evaluation_type")
            data["objectives"] = self._flatten(master.get("objectives"), "description", NO_OBJECTIVE)
            data["knowledge"] = self._flatten(master.get("knowledge"), "title", NO_KNOWLEDGE)
            data["capabilities"] = self._flatten(master.get("capabilities"), "title", NO_CAPABILITY)
        return CompositionItem(**data)

    def _flatten(self, related: Optional[List[Dict[str, Any]]], field_name: str, sentinel: str) -> List[str]:
        values = [row[field_name] for row in related or [] if row.get(field_name)]
        if not values and self.empty_sentinels:
            return [sentinel]
        return values

