from sqlalchemy import Column, Integer, String, Text, ForeignKey

from planipeda.db.session import Base

class Level(Base):
    """
    SQLAlchemy model for the 'levels' table (the school level, top of the
    teaching hierarchy).
    """
    __tablename__ = "levels"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)


class Option(Base):
    """
    SQLAlchemy model for the 'options' table. An option belongs to a level.
    """
    __tablename__ = "options"

    id = Column(Integer, primary_key=True, index=True)
    level_id = Column(Integer, ForeignKey("levels.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)


class Unit(Base):
    """
    SQLAlchemy model for the 'units' table. A unit belongs to an option.
    """
    __tablename__ = "units"

    id = Column(Integer, primary_key=True, index=True)
    option_id = Column(Integer, ForeignKey("options.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)


class Chapter(Base):
    """
    SQLAlchemy model for the 'chapters' table.

    A reference chapter is what sequences and chapter plans are attached to.
    """
    __tablename__ = "chapters"

    id = Column(Integer, primary_key=True, index=True)
    unit_id = Column(Integer, ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)


class Objective(Base):
    """
    SQLAlchemy model for the 'objectives' table.

    Objectives are attached to a chapter and linked to activities and
    evaluations through their own link tables.
    """
    __tablename__ = "objectives"

    id = Column(Integer, primary_key=True, index=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="SET NULL"), nullable=True, index=True)
    description = Column(Text, nullable=False)
