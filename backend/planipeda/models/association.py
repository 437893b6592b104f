from sqlalchemy import Column, Integer, UniqueConstraint

from planipeda.db.session import Base

# Association tables carry no foreign keys: removing the rows of a
# deleted parent is done by the planning service, and a master record deleted
# upstream leaves a dangling row that hydration has to tolerate.

class SequenceActivity(Base):
    """
    Ordered link between a sequence and one of its activities.
    """
    __tablename__ = "sequence_activities"
    __table_args__ = (UniqueConstraint("sequence_id", "activity_id", name="uq_sequence_activity"),)

    id = Column(Integer, primary_key=True, index=True)
    sequence_id = Column(Integer, nullable=False, index=True)
    activity_id = Column(Integer, nullable=False, index=True)
    order = Column(Integer, nullable=False)


class SequenceEvaluation(Base):
    """
    Ordered link between a sequence and one of its evaluations.
    """
    __tablename__ = "sequence_evaluations"
    __table_args__ = (UniqueConstraint("sequence_id", "evaluation_id", name="uq_sequence_evaluation"),)

    id = Column(Integer, primary_key=True, index=True)
    sequence_id = Column(Integer, nullable=False, index=True)
    evaluation_id = Column(Integer, nullable=False, index=True)
    order = Column(Integer, nullable=False)


class ChapterPlanSequence(Base):
    __tablename__ = "chapter_plan_sequences"
    __table_args__ = (UniqueConstraint("chapter_plan_id", "sequence_id", name="uq_chapter_plan_sequence"),)

    id = Column(Integer, primary_key=True, index=True)
    chapter_plan_id = Column(Integer, nullable=False, index=True)
    sequence_id = Column(Integer, nullable=False, index=True)
    order = Column(Integer, nullable=False)


class ChapterPlanActivity(Base):
    __tablename__ = "chapter_plan_activities"
    __table_args__ = (UniqueConstraint("chapter_plan_id", "activity_id", name="uq_chapter_plan_activity"),)

    id = Column(Integer, primary_key=True, index=True)
    chapter_plan_id = Column(Integer, nullable=False, index=True)
    activity_id = Column(Integer, nullable=False, index=True)
    order = Column(Integer, nullable=False)


class ChapterPlanEvaluation(Base):
    __tablename__ = "chapter_plan_evaluations"
    __table_args__ = (UniqueConstraint("chapter_plan_id", "evaluation_id", name="uq_chapter_plan_evaluation"),)

    id = Column(Integer, primary_key=True, index=True)
    chapter_plan_id = Column(Integer, nullable=False, index=True)
    evaluation_id = Column(Integer, nullable=False, index=True)
    order = Column(Integer, nullable=False)
