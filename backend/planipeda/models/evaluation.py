from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, func

from planipeda.db.session import Base

class Evaluation(Base):
    """
    SQLAlchemy model for the 'evaluations' table (master record).
    """
    __tablename__ = "evaluations"

    id = Column(Integer, primary_key=True, index=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String, nullable=True)

    # Free-form tag, e.g. "Diagnostic", "Formative", "Summative".
    evaluation_type = Column(String, nullable=True)

    # HTML body; used as the display description when present.
    introduction = Column(Text, nullable=True)
    specific_instructions = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Knowledge(Base):
    __tablename__ = "knowledge_items"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)


class Capability(Base):
    __tablename__ = "capabilities"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)


class EvaluationObjective(Base):
    __tablename__ = "evaluation_objectives"

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    objective_id = Column(Integer, ForeignKey("objectives.id", ondelete="CASCADE"), nullable=False, index=True)


class EvaluationKnowledge(Base):
    __tablename__ = "evaluation_knowledge"

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    knowledge_id = Column(Integer, ForeignKey("knowledge_items.id", ondelete="CASCADE"), nullable=False, index=True)


class EvaluationCapability(Base):
    __tablename__ = "evaluation_capabilities"

    id = Column(Integer, primary_key=True, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    capability_id = Column(Integer, ForeignKey("capabilities.id", ondelete="CASCADE"), nullable=False, index=True)
