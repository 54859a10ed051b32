from sqlalchemy import Column, Integer, String
from db.database import Base

class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150))
    email = Column(String(255), unique=True, index=True, nullable=False)
    class_name = Column("class", String(50))
