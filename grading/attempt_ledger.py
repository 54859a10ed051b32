import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models.answers import Answer
from db.models.attempts import Attempt
from db.models.exams import Exam
from grading.errors import AttemptNotFound, ExamNotFound

logger = logging.getLogger(__name__)


def create_attempt(db: Session, exam_id: int, student_id: int) -> int:
    """
    Open a new attempt for a student. Every join creates a fresh row,
    earlier attempts of the same student are left as they are.
    """
    if db.get(Exam, exam_id) is None:
        raise ExamNotFound(exam_id)

    attempt = Attempt(exam_id=exam_id, student_id=student_id)
    db.add(attempt)
    db.commit()
    db.refresh(attempt)

    logger.info(
        "ATTEMPT_CREATED attempt_id=%s exam_id=%s student_id=%s",
        attempt.id,
        exam_id,
        student_id,
    )
    return attempt.id


def _find_answer(db: Session, attempt_id: int, question_id: int) -> Optional[Answer]:
    return (
        db.query(Answer)
        .filter(Answer.attempt_id == attempt_id, Answer.question_id == question_id)
        .first()
    )


def record_answer(db: Session, attempt_id: int, question_id: int, chosen: Optional[str]) -> Answer:
    """
    Upsert the answer slot (attempt_id, question_id).

    An existing row keeps its id and gets the new label. If a concurrent
    request inserted the slot first, the unique constraint rejects our
    insert and we overwrite that row instead, so the last commit wins.
    The question is not checked against the attempt's exam.
    """
    if db.get(Attempt, attempt_id) is None:
        raise AttemptNotFound(attempt_id)

    answer = _find_answer(db, attempt_id, question_id)
    if answer is not None:
        answer.chosen = chosen
        db.commit()
        logger.debug("ANSWER_UPDATED attempt_id=%s question_id=%s", attempt_id, question_id)
        return answer

    answer = Answer(attempt_id=attempt_id, question_id=question_id, chosen=chosen)
    db.add(answer)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        answer = _find_answer(db, attempt_id, question_id)
        if answer is None:
            raise
        answer.chosen = chosen
        db.commit()
        logger.info(
            "ANSWER_INSERT_RACE resolved as update attempt_id=%s question_id=%s",
            attempt_id,
            question_id,
        )
        return answer

    logger.debug("ANSWER_INSERTED attempt_id=%s question_id=%s", attempt_id, question_id)
    return answer


def list_answers(db: Session, attempt_id: int) -> List[Dict[str, Any]]:
    rows = (
        db.query(Answer.question_id, Answer.chosen)
        .filter(Answer.attempt_id == attempt_id)
        .order_by(Answer.id)
        .all()
    )
    return [{"question_id": qid, "chosen": chosen} for qid, chosen in rows]


def record_switch(db: Session, attempt_id: int) -> int:
    """Bump the tab-switch counter in one UPDATE and return the new value."""
    updated = (
        db.query(Attempt)
        .filter(Attempt.id == attempt_id)
        .update(
            {Attempt.switch_count: Attempt.switch_count + 1},
            synchronize_session=False,
        )
    )
    if not updated:
        db.rollback()
        raise AttemptNotFound(attempt_id)
    db.commit()

    return db.query(Attempt.switch_count).filter(Attempt.id == attempt_id).scalar()
