from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, func

from planipeda.db.session import Base

class Sequence(Base):
    """
    SQLAlchemy model for the 'sequences' table.

    A sequence plays two roles: it is a parent document that composes an
    ordered list of activities and evaluations, and it is a master record
    that chapter plans reference.
    """
    __tablename__ = "sequences"

    id = Column(Integer, primary_key=True, index=True)

    # The reference chapter the sequence is written for.
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    specific_objectives = Column(Text, nullable=True)
    estimated_duration = Column(Integer, nullable=True)
    prerequisites = Column(Text, nullable=True)

    # One of "draft", "validated", "archived".
    status = Column(String, default="draft", nullable=False)

    # Position of the sequence inside its chapter, when set by the author.
    position = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
