from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, func

from planipeda.db.session import Base

class Activity(Base):
    """
    SQLAlchemy model for the 'activities' table.

    Activities are master records: they are authored on their own and only
    referenced (never copied) by sequences and chapter plans.
    """
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    teacher_role = Column(Text, nullable=True)
    materials = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    delivery_mode = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ActivityObjective(Base):
    """
    Link table between activities and their objectives. The row id keeps the
    insertion order used when objectives are listed for display.
    """
    __tablename__ = "activity_objectives"

    id = Column(Integer, primary_key=True, index=True)
    activity_id = Column(Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    objective_id = Column(Integer, ForeignKey("objectives.id", ondelete="CASCADE"), nullable=False, index=True)
