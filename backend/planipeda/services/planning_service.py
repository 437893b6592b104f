import logging
from typing import Any, Dict, Iterable, List, Optional, Type, Union

from fastapi import Depends
from pydantic import BaseModel

from planipeda.core.composition import CompositionList
from planipeda.core.deps import get_backend
from planipeda.core.errors import BackendError, DocumentValidationError, NotFoundError, ParentSaveError
from planipeda.core.registry import ChildKind, DocumentKind, DocumentType, get_document_type
from planipeda.db.backend import RelationalBackend
from planipeda.schemas.composition import CompositionItem, DeleteReport, SaveReport
from planipeda.schemas.document import (
    ChapterContext,
    ChapterPlanDocument,
    ChapterPlanStatus,
    LoadedChapterPlan,
    LoadedSequence,
    SequenceDocument,
    SequenceStatus,
)
from planipeda.services.hydration_service import HydrationService, HydrationResult
from planipeda.services.sync_service import SynchronizationService

# Configure logger for this module
logger = logging.getLogger(__name__)

PlanningDocument = Union[SequenceDocument, ChapterPlanDocument]
LoadedDocument = Union[LoadedSequence, LoadedChapterPlan]

DOCUMENT_MODELS: Dict[DocumentKind, Type[BaseModel]] = {
    DocumentKind.SEQUENCE: SequenceDocument,
    DocumentKind.CHAPTER_PLAN: ChapterPlanDocument,
}

STATUS_ENUMS = {
    DocumentKind.SEQUENCE: SequenceStatus,
    DocumentKind.CHAPTER_PLAN: ChapterPlanStatus,
}


class PlanningDocumentService:
    """
    A service class for the lifecycle of planning documents (sequences and
    chapter plans) together with their ordered compositions.

    It owns the parent row's CRUD and delegates the children to the
    hydration service on load and to the synchronization service on save
    and delete.
    """

    def __init__(self, backend: RelationalBackend, hydration: HydrationService, sync: SynchronizationService):
        self.backend = backend
        self.hydration = hydration
        self.sync = sync

    def load(self, document_kind: DocumentKind, parent_id: int) -> LoadedDocument:
        """
        Loads a parent document and its composition.

        Args:
            document_kind: Sequence or chapter plan.
            parent_id: The id of the parent document.

        Returns:
            LoadedSequence or LoadedChapterPlan. A parent without children
            loads with an empty item list; per-kind fetch errors and dropped
            dangling references are reported alongside the items.

        Raises:
            NotFoundError: If the parent row does not exist.
        """
        document_type = get_document_type(document_kind)
        logger.debug(f"PlanningDocumentService: Loading {document_type.kind.value} {parent_id}.")
        row = self.backend.get_by_id(document_type.table, parent_id)
        if row is None:
            logger.warning(f"PlanningDocumentService: {document_type.kind.value} {parent_id} not found.")
            raise NotFoundError(document_type.kind.value, parent_id)

        document = self._to_document(document_type, row)
        hydrated = self.hydration.hydrate(document_type, parent_id)
        payload = self._loaded_payload(hydrated)

        if document_type.kind == DocumentKind.CHAPTER_PLAN:
            return LoadedChapterPlan(document=document, context=self._resolve_chapter_context(document.chapter_id), **payload)
        return LoadedSequence(document=document, **payload)

    def save(self, document_kind: DocumentKind, document: PlanningDocument, items: Iterable[CompositionItem]) -> SaveReport:
        """
        Saves the parent's own fields, then replaces its association rows.

        Validation happens before any I/O. The parent upsert is the single
        fatal step: if it fails nothing else is attempted. Association
        channel failures do not raise; they are returned in the report.

        Raises:
            DocumentValidationError: Missing chapter/title, duplicate children,
                or children of a kind the document type cannot contain.
            NotFoundError: The document carries an id that no longer exists.
            ParentSaveError: The parent row could not be written.
        """
        document_type = get_document_type(document_kind)
        document = DOCUMENT_MODELS[document_type.kind].model_validate(document)
        items = list(items)
        self.validate(document_type, document, items)
        composition = CompositionList(items)

        if document.id is not None and self.backend.get_by_id(document_type.table, document.id) is None:
            logger.warning(f"PlanningDocumentService: Cannot update missing {document_type.kind.value} {document.id}.")
            raise NotFoundError(document_type.kind.value, document.id)

        payload = self._to_row(document)
        try:
            saved = self.backend.upsert(document_type.table, payload)
        except BackendError as e:
            logger.error(f"PlanningDocumentService: Saving {document_type.kind.value} row failed: {e}", exc_info=True)
            raise ParentSaveError(f"Saving the {document_type.kind.value} failed: {e}") from e

        parent_id = saved["id"]
        logger.debug(f"PlanningDocumentService: {document_type.kind.value} row {parent_id} saved, synchronizing {len(composition)} items.")
        report = self.sync.synchronize(document_type, parent_id, composition)
        return SaveReport(parent_id=parent_id, status=report.status, channel_results=report.channel_results)

    def delete(self, document_kind: DocumentKind, parent_id: int) -> DeleteReport:
        """
        Deletes a parent document and every association row it owns.

        Channel deletes run first and are best effort: their failures are
        reported but the parent row is deleted regardless.

        Raises:
            NotFoundError: If the parent row does not exist.
        """
        document_type = get_document_type(document_kind)
        logger.debug(f"[DELETE] PlanningDocumentService: Starting deletion for {document_type.kind.value} {parent_id}")
        if self.backend.get_by_id(document_type.table, parent_id) is None:
            logger.warning(f"[DELETE FAILURE] PlanningDocumentService: {document_type.kind.value} {parent_id} not found")
            raise NotFoundError(document_type.kind.value, parent_id)

        report = self.sync.delete_all(document_type, parent_id)
        self.backend.delete_where(document_type.table, {"id": parent_id})
        logger.info(
            f"[DELETE SUCCESS] PlanningDocumentService: Deleted {document_type.kind.value} {parent_id} "
            f"(link cleanup: {report.status.value})"
        )
        return DeleteReport(parent_id=parent_id, status=report.status, channel_results=report.channel_results)

    def build_item(self, document_kind: DocumentKind, kind: ChildKind, child_id: int) -> CompositionItem:
        """
        Hydrates one master record into an item the editor can append.
        """
        return self.hydration.build_item(get_document_type(document_kind), kind, child_id)

    def validate(self, document_type: DocumentType, document: PlanningDocument, items: List[CompositionItem]) -> None:
        """
        Checks a document and its items before anything is written.

        Raises:
            DocumentValidationError: Listing every problem found.
        """
        problems: List[str] = []
        if not document.chapter_id:
            problems.append("A reference chapter must be selected before saving.")
        if isinstance(document, SequenceDocument) and not document.title.strip():
            problems.append("The sequence title is required.")

        seen = set()
        for item in items:
            if item.child_kind not in document_type.child_kinds:
                problems.append(f"{document_type.kind.value} documents cannot contain {item.child_kind.value} items ('{item.local_key}').")
            if item.local_key in seen:
                problems.append(f"'{item.local_key}' appears more than once.")
            seen.add(item.local_key)

        if problems:
            logger.debug(f"PlanningDocumentService: Validation failed for {document_type.kind.value}: {problems}")
            raise DocumentValidationError(problems[0], problems)

    def _to_document(self, document_type: DocumentType, row: Dict[str, Any]) -> PlanningDocument:
        # Rows written by older clients may carry a status outside the enum.
        statuses = STATUS_ENUMS[document_type.kind]
        row = dict(row)
        if row.get("status") not in {status.value for status in statuses}:
            row["status"] = statuses.DRAFT
        return DOCUMENT_MODELS[document_type.kind].model_validate(row)

    def _to_row(self, document: PlanningDocument) -> Dict[str, Any]:
        row = document.model_dump(mode="json", exclude={"created_at", "updated_at"})
        if row.get("id") is None:
            row.pop("id", None)
        if isinstance(document, SequenceDocument):
            row["title"] = document.title.strip()
        return row

    def _loaded_payload(self, hydrated: HydrationResult) -> Dict[str, Any]:
        return {
            "items": list(hydrated.items),
            "errors": {kind.value: message for kind, message in hydrated.errors.items()},
            "dangling": {kind.value: ids for kind, ids in hydrated.dangling.items()},
        }

    def _resolve_chapter_context(self, chapter_id: Optional[int]) -> Optional[ChapterContext]:
        """
        Walks chapter > unit > option > level for a chapter plan and joins the
        chapter's objectives into its general-objectives text. Returns None if
        the chapter is unknown or the lookup fails; the plan still loads.
        """
        if not chapter_id:
            return None
        try:
            chapter = self.backend.get_by_id("chapters", chapter_id)
            if chapter is None:
                logger.warning(f"PlanningDocumentService: Reference chapter {chapter_id} not found.")
                return None
            unit = self.backend.get_by_id("units", chapter["unit_id"])
            option = self.backend.get_by_id("options", unit["option_id"]) if unit else None
            objectives = self.backend.select_where("objectives", {"chapter_id": chapter_id}, order_by="id")
        except BackendError as e:
            logger.error(f"PlanningDocumentService: Resolving chapter {chapter_id} context failed: {e}")
            return None

        return ChapterContext(
            chapter_id=chapter_id,
            chapter_title=chapter.get("title") or "",
            unit_id=unit["id"] if unit else None,
            option_id=option["id"] if option else None,
            level_id=option["level_id"] if option else None,
            objective_ids=[objective["id"] for objective in objectives],
            general_objectives="\n\n".join(f"{objective['id']}. {objective['description']}" for objective in objectives),
        )


def get_planning_service(backend: RelationalBackend = Depends(get_backend)) -> PlanningDocumentService:
    """
    Dependency function to provide the planning document service, wired to
    its hydration and synchronization collaborators over the same backend.
    """
    return PlanningDocumentService(
        backend=backend,
        hydration=HydrationService(backend),
        sync=SynchronizationService(backend),
    )
