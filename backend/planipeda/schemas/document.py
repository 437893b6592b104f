from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from planipeda.schemas.composition import CompositionItem


class SequenceStatus(str, Enum):
    DRAFT = "draft"
    VALIDATED = "validated"
    ARCHIVED = "archived"


class ChapterPlanStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class SequenceDocument(BaseModel):
    """
    The scalar fields of a sequence, as edited alongside its composition.
    `id` is None for a sequence that has never been saved.
    """
    id: Optional[int] = Field(None, description="The sequence id, None when creating.")
    chapter_id: Optional[int] = Field(None, description="The reference chapter; required to save.")
    title: str = Field("", description="The sequence title; required to save.")
    description: Optional[str] = None
    specific_objectives: Optional[str] = None
    estimated_duration: Optional[int] = Field(None, ge=0)
    prerequisites: Optional[str] = None
    status: SequenceStatus = SequenceStatus.DRAFT
    position: Optional[int] = Field(None, description="Position of the sequence inside its chapter.")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ChapterPlanDocument(BaseModel):
    """
    The scalar fields of a chapter planning sheet.
    """
    id: Optional[int] = Field(None, description="The chapter plan id, None when creating.")
    chapter_id: Optional[int] = Field(None, description="The reference chapter; required to save.")
    name: Optional[str] = Field(None, description="The planning sheet's own name.")
    status: ChapterPlanStatus = ChapterPlanStatus.DRAFT
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ChapterContext(BaseModel):
    """
    Where a chapter sits in the level > option > unit > chapter hierarchy,
    with its general objectives, resolved when a chapter plan is loaded.
    """
    chapter_id: int
    chapter_title: str = ""
    unit_id: Optional[int] = None
    option_id: Optional[int] = None
    level_id: Optional[int] = None
    objective_ids: List[int] = []
    general_objectives: str = Field("", description="'<id>. <description>' lines joined by blank lines.")


class LoadedSequence(BaseModel):
    document: SequenceDocument
    items: List[CompositionItem] = []
    errors: Dict[str, str] = Field({}, description="Per-kind hydration errors; other kinds are still populated.")
    dangling: Dict[str, List[int]] = Field({}, description="Per-kind master ids dropped as dangling references.")


class LoadedChapterPlan(BaseModel):
    document: ChapterPlanDocument
    items: List[CompositionItem] = []
    errors: Dict[str, str] = {}
    dangling: Dict[str, List[int]] = {}
    context: Optional[ChapterContext] = None


class SaveSequenceRequest(BaseModel):
    document: SequenceDocument
    items: List[CompositionItem] = []


class SaveChapterPlanRequest(BaseModel):
    document: ChapterPlanDocument
    items: List[CompositionItem] = []
