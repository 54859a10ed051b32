import logging
from typing import List

from sqlalchemy.orm import Session

from db.models.attempts import Attempt
from db.models.students import Student
from grading.answer_key import load_answer_key
from grading.attempt_ledger import list_answers
from grading.enrollment import get_owned_exam
from grading.schemas import ResultRow
from grading.scoring import score

logger = logging.getLogger(__name__)


def build_results(db: Session, exam_id: int, teacher_id: int) -> List[ResultRow]:
    """
    Score every attempt of an exam, in ascending attempt id order.

    Raises ``ExamNotFound`` before touching attempts when the exam does
    not exist or belongs to another teacher. Nothing is cached: totals
    follow the current question set and answers their latest values.
    """
    get_owned_exam(db, exam_id, teacher_id)

    key = load_answer_key(db, exam_id)

    attempts = (
        db.query(Attempt.id, Student.name, Student.email, Student.class_name)
        .join(Student, Attempt.student_id == Student.id)
        .filter(Attempt.exam_id == exam_id)
        .order_by(Attempt.id)
        .all()
    )

    rows = []
    for attempt_id, name, email, class_name in attempts:
        result = score(list_answers(db, attempt_id), key.correct, key.total)
        rows.append(
            ResultRow(
                name=name,
                email=email,
                class_name=class_name,
                correct=result.correct,
                total=result.total,
                percent=result.percent,
            )
        )

    logger.debug("RESULTS_BUILT exam_id=%s rows=%d total=%d", exam_id, len(rows), key.total)
    return rows
