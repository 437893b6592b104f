from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, func

from planipeda.db.session import Base

class ChapterPlan(Base):
    """
    SQLAlchemy model for the 'chapter_plans' table.

    A chapter plan is the teacher's planning sheet for one reference chapter;
    its progression (sequences, activities, evaluations) lives in the three
    chapter_plan_* association tables.
    """
    __tablename__ = "chapter_plans"

    id = Column(Integer, primary_key=True, index=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=True)

    # One of "draft", "published", "archived".
    status = Column(String, default="draft", nullable=False)

    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
