from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, computed_field, model_validator

from planipeda.core.registry import ChildKind


def make_local_key(kind, child_id) -> str:
    """Client-side identity of an item: "<kind>-<child_id>"."""
    return f"{ChildKind(kind).value}-{child_id}"


class CompositionItem(BaseModel):
    """
    One hydrated child reference inside a parent document's composition.
    `local_key` is derived from the kind and master id and is independent of
    the storage-assigned link id.
    """
    local_key: str = Field("", description="Stable client identity, '<kind>-<child_id>'.")
    child_kind: ChildKind = Field(..., description="The kind of master record referenced.")
    child_id: int = Field(..., gt=0, description="The id of the referenced master record.")
    order: int = Field(0, ge=0, description="1-based position; authoritative only after a save.")
    title: str = Field("", description="Display title copied from the master record.")
    description: Optional[str] = Field(None, description="Display description copied from the master record.")
    objectives: List[str] = Field([], description="Flattened objective descriptions (activities, evaluations).")
    knowledge: List[str] = Field([], description="Flattened knowledge titles (evaluations).")
    capabilities: List[str] = Field([], description="Flattened capability titles (evaluations).")
    evaluation_type: Optional[str] = Field(None, description="Evaluation type tag (evaluations).")
    persisted_link_id: Optional[int] = Field(None, description="Id of the association row this item was loaded from.")

    @model_validator(mode="before")
    @classmethod
    def derive_local_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("child_kind") is not None and data.get("child_id") is not None:
            data = dict(data)
            data["local_key"] = make_local_key(data["child_kind"], data["child_id"])
        return data


class ChannelStatus(str, Enum):
    OK = "ok"
    DELETE_FAILED = "delete-failed"
    INSERT_FAILED = "insert-failed"


class SyncStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial-failure"


class ChannelResult(BaseModel):
    """Outcome of one kind's delete(+insert) unit of work."""
    kind: ChildKind
    status: ChannelStatus
    rows_deleted: Optional[int] = Field(None, description="Rows removed, when the delete succeeded.")
    rows_inserted: int = Field(0, description="Rows written by the insert half.")
    error: Optional[str] = Field(None, description="Backend error message for a failed channel.")


class SyncReport(BaseModel):
    status: SyncStatus
    channel_results: List[ChannelResult] = []

    @computed_field
    @property
    def failed_kinds(self) -> List[ChildKind]:
        return [result.kind for result in self.channel_results if result.status != ChannelStatus.OK]

    @classmethod
    def from_results(cls, results: List[ChannelResult]) -> "SyncReport":
        failed = any(result.status != ChannelStatus.OK for result in results)
        return cls(
            status=SyncStatus.PARTIAL_FAILURE if failed else SyncStatus.SUCCESS,
            channel_results=results,
        )


class SaveReport(SyncReport):
    parent_id: int = Field(..., description="Id of the saved parent document (new id on creation).")


class DeleteReport(SyncReport):
    parent_id: int = Field(..., description="Id of the deleted parent document.")


class MutationOp(str, Enum):
    APPEND = "append"
    REMOVE = "remove"
    MOVE_UP = "moveUp"
    MOVE_DOWN = "moveDown"
    REORDER = "reorder"


class MutationRequest(BaseModel):
    items: List[CompositionItem] = []
    op: MutationOp
    item: Optional[CompositionItem] = Field(None, description="Item to append.")
    local_key: Optional[str] = Field(None, description="Target of remove/moveUp/moveDown.")
    from_index: Optional[int] = Field(None, ge=0)
    to_index: Optional[int] = Field(None, ge=0)


class MutationResult(BaseModel):
    items: List[CompositionItem]
    changed: bool = Field(..., description="False when the operation was a no-op.")
    duplicate: bool = Field(False, description="True when an append was rejected as a duplicate.")


class ItemRequest(BaseModel):
    child_kind: ChildKind
    child_id: int = Field(..., gt=0)
