import logging
import concurrent.futures
from typing import Iterable, List, Tuple

from planipeda.core.composition import CompositionList
from planipeda.core.config import settings
from planipeda.core.registry import ChannelSpec, DocumentType
from planipeda.db.backend import RelationalBackend
from planipeda.schemas.composition import ChannelResult, ChannelStatus, CompositionItem, SyncReport

# Configure logger for this module
logger = logging.getLogger(__name__)


class SynchronizationService:
    """
    Makes the persisted association rows of a parent match a CompositionList
    exactly, using replace-all: every channel (one association table per
    child kind) deletes the parent's rows and re-inserts the current ones.

    Channels touch disjoint tables and run concurrently on a thread pool.
    Inside a channel the delete always completes before the insert starts.
    A failing channel never stops its siblings and nothing is rolled back;
    failures come back as data in the SyncReport so the caller can retry.
    """

    def __init__(self, backend: RelationalBackend, max_workers: int = settings.SYNC_MAX_WORKERS):
        self.backend = backend
        self.max_workers = max(1, max_workers)

    def synchronize(self, document_type: DocumentType, parent_id: int, items: Iterable[CompositionItem]) -> SyncReport:
        """
        Replaces all association rows of `parent_id` with rows derived from `items`.

        Every channel of the document type runs, including kinds with no
        items, so children removed from the list are unlinked. Each row's
        `order` is the item's 1-based position in the whole list.

        Args:
            document_type: The parent document type.
            parent_id: The id of the (already saved) parent row.
            items: The edited composition, in canonical order.

        Returns:
            SyncReport: `success` if every channel is ok, otherwise
            `partial-failure` with the failing channels named.
        """
        composition = items if isinstance(items, CompositionList) else CompositionList(items)
        partitions = composition.partition()
        logger.debug(
            f"SynchronizationService: Synchronizing {len(composition)} items on {document_type.kind.value} {parent_id} "
            f"across {len(document_type.channels)} channels."
        )

        tasks = []
        for channel in document_type.channels:
            rows = [
                {channel.parent_column: parent_id, channel.child_column: item.child_id, "order": position}
                for position, item in partitions.get(channel.kind, [])
            ]
            tasks.append((channel, rows))

        results = self._run_channels(parent_id, tasks)
        report = SyncReport.from_results(results)
        self._log_report("Synchronize", document_type, parent_id, report)
        return report

    def delete_all(self, document_type: DocumentType, parent_id: int) -> SyncReport:
        """
        Runs only the delete half of every channel: unlinks all children of
        `parent_id`. Used when the parent document itself is deleted.
        """
        tasks = [(channel, []) for channel in document_type.channels]
        results = self._run_channels(parent_id, tasks)
        report = SyncReport.from_results(results)
        self._log_report("Delete", document_type, parent_id, report)
        return report

    def _run_channels(self, parent_id: int, tasks: List[Tuple[ChannelSpec, List[dict]]]) -> List[ChannelResult]:
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            # Submit everything first, then collect results in submission order.
            futures = [executor.submit(self._replace_channel, channel, parent_id, rows) for channel, rows in tasks]
            return [future.result() for future in futures]

    def _replace_channel(self, channel: ChannelSpec, parent_id: int, rows: List[dict]) -> ChannelResult:
        filters = {channel.parent_column: parent_id}
        try:
            deleted = self.backend.delete_where(channel.table, filters)
        except Exception as e:
            logger.error(f"SynchronizationService: Deleting {channel.table} rows of parent {parent_id} failed: {e}")
            return ChannelResult(kind=channel.kind, status=ChannelStatus.DELETE_FAILED, error=str(e))

        if not rows:
            return ChannelResult(kind=channel.kind, status=ChannelStatus.OK, rows_deleted=deleted)

        try:
            inserted = self.backend.insert_many(channel.table, rows)
        except Exception as e:
            logger.error(f"SynchronizationService: Inserting {len(rows)} {channel.table} rows of parent {parent_id} failed: {e}")
            return ChannelResult(kind=channel.kind, status=ChannelStatus.INSERT_FAILED, rows_deleted=deleted, error=str(e))

        return ChannelResult(kind=channel.kind, status=ChannelStatus.OK, rows_deleted=deleted, rows_inserted=len(inserted))

    def _log_report(self, action: str, document_type: DocumentType, parent_id: int, report: SyncReport) -> None:
        if report.failed_kinds:
            logger.warning(
                f"SynchronizationService: {action} on {document_type.kind.value} {parent_id} partially failed; "
                f"failed channels: {[kind.value for kind in report.failed_kinds]}"
            )
        else:
            logger.info(f"SynchronizationService: {action} on {document_type.kind.value} {parent_id} succeeded.")

