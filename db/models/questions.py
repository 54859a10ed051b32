from sqlalchemy import Column, ForeignKey, Integer, String, Text
from db.database import Base

class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False, index=True)
    text = Column(Text)
    image = Column(String(255), nullable=True)
    correct = Column(String(50))
