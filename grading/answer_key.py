import logging
from typing import Dict, List, NamedTuple, Optional

from sqlalchemy.orm import Session

from db.models.questions import Question

logger = logging.getLogger(__name__)


class AnswerKey(NamedTuple):
    question_ids: List[int]
    correct: Dict[int, str]

    @property
    def total(self) -> int:
        return len(self.question_ids)


def add_question(
    db: Session,
    exam_id: int,
    text: str,
    correct: str,
    image: Optional[str] = None,
) -> Question:
    question = Question(exam_id=exam_id, text=text, correct=correct, image=image)
    db.add(question)
    db.commit()
    db.refresh(question)
    logger.info("QUESTION_ADDED exam_id=%s question_id=%s", exam_id, question.id)
    return question


def list_questions(db: Session, exam_id: int) -> List[Question]:
    return (
        db.query(Question)
        .filter(Question.exam_id == exam_id)
        .order_by(Question.id)
        .all()
    )


def load_answer_key(db: Session, exam_id: int) -> AnswerKey:
    # always the live question set: adding a question changes every total
    rows = (
        db.query(Question.id, Question.correct)
        .filter(Question.exam_id == exam_id)
        .order_by(Question.id)
        .all()
    )
    return AnswerKey(
        question_ids=[qid for qid, _ in rows],
        correct={qid: correct for qid, correct in rows},
    )
