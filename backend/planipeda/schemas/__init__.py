# Re-exports the request/response schemas used by the API routers.

from .composition import (
    ChannelResult,
    ChannelStatus,
    CompositionItem,
    DeleteReport,
    ItemRequest,
    MutationOp,
    MutationRequest,
    MutationResult,
    SaveReport,
    SyncReport,
    SyncStatus,
)
from .document import (
    ChapterContext,
    ChapterPlanDocument,
    ChapterPlanStatus,
    LoadedChapterPlan,
    LoadedSequence,
    SaveChapterPlanRequest,
    SaveSequenceRequest,
    SequenceDocument,
    SequenceStatus,
)
