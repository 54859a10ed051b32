from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# Exams / questions

class ExamCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)


class ExamPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: Optional[str] = None
    code: str
    created_at: Optional[datetime] = None


class QuestionPublic(BaseModel):
    """What a student sees: the correct label is never included."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    exam_id: int
    text: Optional[str] = None
    image: Optional[str] = None


class QuestionDetail(QuestionPublic):
    correct: str


# Student side

class JoinRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    class_name: Optional[str] = Field(default=None, alias="class")
    code: str = Field(min_length=1)


class JoinResponse(BaseModel):
    """Keys match what /api/answer accepts: attemptId, examId."""

    model_config = ConfigDict(populate_by_name=True)

    attempt_id: int = Field(alias="attemptId")
    exam_id: int = Field(alias="examId")


class AnswerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    attempt_id: int = Field(alias="attemptId")
    question_id: int = Field(alias="qid")
    chosen: Optional[str] = Field(default=None, alias="ans")


class AnswerEntry(BaseModel):
    question_id: int
    chosen: Optional[str] = None


class SwitchResponse(BaseModel):
    attempt_id: int
    switch_count: int


# Results

class ResultRow(BaseModel):
    """One scored attempt; the shared input of every results surface."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: Optional[str] = None
    email: str
    class_name: Optional[str] = Field(default=None, alias="class")
    correct: int
    total: int
    percent: int

    def as_export_dict(self) -> dict:
        # keys in export column order: name, email, class, correct, total, percent
        return self.model_dump(by_alias=True)


class ResultPublic(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: str
    class_name: Optional[str] = Field(default=None, alias="class")
    score: int
    total: int
    percent: int

    @classmethod
    def from_row(cls, row: ResultRow) -> "ResultPublic":
        return cls(
            name=row.name,
            email=row.email,
            class_name=row.class_name,
            score=row.correct,
            total=row.total,
            percent=row.percent,
        )


