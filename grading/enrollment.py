import logging
import secrets
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models.exams import Exam
from db.models.students import Student
from grading.config import JOIN_CODE_ALPHABET, JOIN_CODE_LENGTH
from grading.errors import ExamNotFound

logger = logging.getLogger(__name__)

MAX_CODE_TRIES = 10


def generate_code(length: int = JOIN_CODE_LENGTH) -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def create_exam(db: Session, teacher_id: int, title: str) -> Exam:
    for _ in range(MAX_CODE_TRIES):
        code = generate_code()
        if db.query(Exam.id).filter(Exam.code == code).first():
            continue

        exam = Exam(teacher_id=teacher_id, title=title, code=code)
        db.add(exam)
        try:
            db.commit()
        except IntegrityError:
            # another exam took the same code in between
            db.rollback()
            continue

        db.refresh(exam)
        logger.info("EXAM_CREATED exam_id=%s teacher_id=%s code=%s", exam.id, teacher_id, code)
        return exam

    raise RuntimeError("Could not allocate a unique exam code")


def list_exams(db: Session, teacher_id: int) -> List[Exam]:
    return db.query(Exam).filter(Exam.teacher_id == teacher_id).order_by(Exam.id).all()


def get_owned_exam(db: Session, exam_id: int, teacher_id: int) -> Exam:
    exam = (
        db.query(Exam)
        .filter(Exam.id == exam_id, Exam.teacher_id == teacher_id)
        .first()
    )
    if exam is None:
        raise ExamNotFound(exam_id)
    return exam


def find_exam_by_code(db: Session, code: str) -> Optional[Exam]:
    return db.query(Exam).filter(Exam.code == code.strip().upper()).first()


def get_or_create_student(
    db: Session,
    name: Optional[str],
    email: str,
    class_name: Optional[str] = None,
) -> Student:
    """
    Students are global and keyed by email. A returning email reuses the
    stored record as-is, the submitted name and class are not applied.
    """
    student = db.query(Student).filter(Student.email == email).first()
    if student:
        return student

    student = Student(name=name, email=email, class_name=class_name)
    db.add(student)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return db.query(Student).filter(Student.email == email).one()

    db.refresh(student)
    return student
