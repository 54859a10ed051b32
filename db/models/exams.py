from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from db.database import Base

class Exam(Base):
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False, index=True)
    title = Column(String(255))
    # join code, never regenerated once the exam exists
    code = Column(String(16), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
