"""
Static description of what the composition engine works on: which parent
document types exist, which child kinds each one composes, where the
association rows for each (parent, kind) pair live, and how each kind's
master records are fetched.

Child kinds are a small closed set; every per-kind behaviour in the services
is driven from these tables rather than from subclasses.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple

from planipeda.db.backend import JoinSpec


class ChildKind(str, Enum):
    SEQUENCE = "sequence"
    ACTIVITY = "activity"
    EVALUATION = "evaluation"


class DocumentKind(str, Enum):
    SEQUENCE = "sequence"
    CHAPTER_PLAN = "chapter_plan"


@dataclass(frozen=True)
class MasterSpec:
    kind: ChildKind
    table: str
    joins: Tuple[JoinSpec, ...] = ()


@dataclass(frozen=True)
class ChannelSpec:
    """One association table: the unit of work for a kind during sync."""
    kind: ChildKind
    table: str
    parent_column: str
    child_column: str


@dataclass(frozen=True)
class DocumentType:
    kind: DocumentKind
    table: str
    channels: Tuple[ChannelSpec, ...]

    @property
    def child_kinds(self) -> Tuple[ChildKind, ...]:
        return tuple(channel.kind for channel in self.channels)

    def channel_for(self, kind: ChildKind) -> ChannelSpec:
        for channel in self.channels:
            if channel.kind == kind:
                return channel
        raise KeyError(f"{self.kind.value} documents do not compose {kind.value} items")


OBJECTIVES_OF_ACTIVITY = JoinSpec(
    name="objectives",
    link_table="activity_objectives",
    link_column="activity_id",
    target_table="objectives",
    target_column="objective_id",
)

OBJECTIVES_OF_EVALUATION = JoinSpec(
    name="objectives",
    link_table="evaluation_objectives",
    link_column="evaluation_id",
    target_table="objectives",
    target_column="objective_id",
)

KNOWLEDGE_OF_EVALUATION = JoinSpec(
    name="knowledge",
    link_table="evaluation_knowledge",
    link_column="evaluation_id",
    target_table="knowledge_items",
    target_column="knowledge_id",
)

CAPABILITIES_OF_EVALUATION = JoinSpec(
    name="capabilities",
    link_table="evaluation_capabilities",
    link_column="evaluation_id",
    target_table="capabilities",
    target_column="capability_id",
)

MASTER_SPECS: Dict[ChildKind, MasterSpec] = {
    ChildKind.SEQUENCE: MasterSpec(kind=ChildKind.SEQUENCE, table="sequences"),
    ChildKind.ACTIVITY: MasterSpec(
        kind=ChildKind.ACTIVITY,
        table="activities",
        joins=(OBJECTIVES_OF_ACTIVITY,),
    ),
    ChildKind.EVALUATION: MasterSpec(
        kind=ChildKind.EVALUATION,
        table="evaluations",
        joins=(OBJECTIVES_OF_EVALUATION, KNOWLEDGE_OF_EVALUATION, CAPABILITIES_OF_EVALUATION),
    ),
}

SEQUENCE_DOCUMENT = DocumentType(
    kind=DocumentKind.SEQUENCE,
    table="sequences",
    channels=(
        ChannelSpec(ChildKind.ACTIVITY, "sequence_activities", "sequence_id", "activity_id"),
        ChannelSpec(ChildKind.EVALUATION, "sequence_evaluations", "sequence_id", "evaluation_id"),
    ),
)

CHAPTER_PLAN_DOCUMENT = DocumentType(
    kind=DocumentKind.CHAPTER_PLAN,
    table="chapter_plans",
    channels=(
        ChannelSpec(ChildKind.SEQUENCE, "chapter_plan_sequences", "chapter_plan_id", "sequence_id"),
        ChannelSpec(ChildKind.ACTIVITY, "chapter_plan_activities", "chapter_plan_id", "activity_id"),
        ChannelSpec(ChildKind.EVALUATION, "chapter_plan_evaluations", "chapter_plan_id", "evaluation_id"),
    ),
)

DOCUMENT_TYPES: Dict[DocumentKind, DocumentType] = {
    DocumentKind.SEQUENCE: SEQUENCE_DOCUMENT,
    DocumentKind.CHAPTER_PLAN: CHAPTER_PLAN_DOCUMENT,
}


def get_document_type(kind: DocumentKind) -> DocumentType:
    return DOCUMENT_TYPES[DocumentKind(kind)]
