# This file imports all of the SQLAlchemy models.
# By importing them here, we make them available to SQLAlchemy's metadata
# so that `Base.metadata.create_all` and the table-name lookups done by the
# relational backend can see every table.

from .reference import Level, Option, Unit, Chapter, Objective
from .activity import Activity, ActivityObjective
from .evaluation import (
    Evaluation,
    Knowledge,
    Capability,
    EvaluationObjective,
    EvaluationKnowledge,
    EvaluationCapability,
)
from .sequence import Sequence
from .chapter_plan import ChapterPlan
from .association import (
    SequenceActivity,
    SequenceEvaluation,
    ChapterPlanSequence,
    ChapterPlanActivity,
    ChapterPlanEvaluation,
)
