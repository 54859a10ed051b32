from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from db.database import Base

class Attempt(Base):
    __tablename__ = "attempts"

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    switch_count = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime, default=datetime.utcnow)
    # nothing sets this yet; there is no rule for when an attempt is finished
    finished_at = Column(DateTime, nullable=True)
