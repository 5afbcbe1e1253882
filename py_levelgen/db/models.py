"""Database models for generated levels and generation jobs."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class Level(Base):
    """A generated level."""

    __tablename__ = "levels"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    seed = Column(String(50), nullable=False)
    grid_shape = Column(Integer, nullable=False)  # GridShape value
    rotate_hexagon = Column(Boolean, nullable=False, default=False)
    x_cells = Column(Integer, nullable=False)
    y_cells = Column(Integer, nullable=False)
    num_shapes = Column(Integer, nullable=False)

    # Shape size bounds actually used, after any relaxation
    min_shape_size = Column(Integer, nullable=False)
    max_shape_size = Column(Integer, nullable=False)

    level_data = Column(Text, nullable=False)  # Level file line
    created_at = Column(DateTime, default=datetime.utcnow)
    generation_time_seconds = Column(Float)

    jobs = relationship("GenerationJob", back_populates="level")


class GenerationJob(Base):
    """Background generation job tracking."""

    __tablename__ = "generation_jobs"

    id = Column(String(36), primary_key=True, default=_new_id)
    status = Column(String(20), nullable=False, default="pending")  # pending, running, completed, failed, cancelled
    seed = Column(String(50), nullable=False)
    parameters_json = Column(Text, nullable=False)  # JSON of the generation request
    progress_percent = Column(Integer, default=0)
    error_message = Column(Text)
    failure_reason = Column(String(50))

    created_at = Column(DateTime, default=datetime.utcnow)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)

    level_id = Column(String(36), ForeignKey("levels.id"), nullable=True)
    level = relationship("Level", back_populates="jobs")
