# python -m db.init_db

from db.database import Base, engine
from db.models.teachers import Teacher
from db.models.exams import Exam
from db.models.questions import Question
from db.models.students import Student
from db.models.attempts import Attempt
from db.models.answers import Answer


def init_db():
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    print("Creating tables...")
    init_db()
    print("Done")
