import io
import logging
import os
import shutil
import uuid
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends, status, UploadFile, File, Form
from fastapi.responses import StreamingResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.dependencies import get_current_teacher
from auth.schemas import RegisterSchema, LoginSchema, TokenResponse
from auth.security import hash_password, verify_password, create_teacher_token

from db.database import get_db
from db.init_db import init_db
from db.models.teachers import Teacher

from grading.config import LOG_LEVEL, UPLOAD_DIR, UPLOAD_URL_PREFIX
from grading.errors import AttemptNotFound, ExamNotFound
from grading.answer_key import add_question, list_questions
from grading.attempt_ledger import create_attempt, record_answer, list_answers, record_switch
from grading.enrollment import (
    create_exam,
    list_exams,
    get_owned_exam,
    find_exam_by_code,
    get_or_create_student,
)
from grading.results import build_results
from grading.exporters import (
    render_csv,
    render_xlsx,
    render_pdf,
    CSV_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    PDF_MEDIA_TYPE,
)
from grading.schemas import (
    ExamCreate,
    ExamPublic,
    QuestionPublic,
    QuestionDetail,
    JoinRequest,
    JoinResponse,
    AnswerRequest,
    AnswerEntry,
    SwitchResponse,
    ResultRow,
    ResultPublic,
)

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

os.makedirs(UPLOAD_DIR, exist_ok=True)

app = FastAPI(
    title="Exam Join & Results API",
    version="1.0.0",
    description=(
        "Teachers author multiple-choice exams and share a join code; "
        "students answer once per join; results are exported as JSON, CSV, XLSX or PDF."
    ),
)

app.mount(UPLOAD_URL_PREFIX, StaticFiles(directory=UPLOAD_DIR), name="uploads")


@app.on_event("startup")
def create_tables():
    init_db()


# ============ Teacher accounts ============

@app.post("/api/teacher/register", status_code=status.HTTP_201_CREATED)
def register(data: RegisterSchema, db: Session = Depends(get_db)):
    teacher_exists = db.query(Teacher).filter(Teacher.username == data.username).first()
    if teacher_exists:
        raise HTTPException(status_code=400, detail="Username already exists")

    teacher = Teacher(
        username=data.username,
        password_hash=hash_password(data.password),
    )
    db.add(teacher)
    try:
        db.commit()
    except IntegrityError:
        # same username committed by a concurrent request
        db.rollback()
        raise HTTPException(status_code=400, detail="Username already exists")
    db.refresh(teacher)

    logger.info("TEACHER_REGISTERED teacher_id=%s", teacher.id)
    return {"message": "Teacher registered", "teacher_id": teacher.id}


@app.post("/api/teacher/login", response_model=TokenResponse)
def login(data: LoginSchema, db: Session = Depends(get_db)):
    teacher = db.query(Teacher).filter(Teacher.username == data.username).first()
    if not teacher or not verify_password(data.password, teacher.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    access_token = create_teacher_token(teacher.id, teacher.username)
    return TokenResponse(access_token=access_token)


# ============ Exams & questions (teacher) ============

@app.post("/api/exams", response_model=ExamPublic, status_code=status.HTTP_201_CREATED)
def create_exam_route(
    req: ExamCreate,
    teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
):
    return create_exam(db, teacher.id, req.title.strip())


@app.get("/api/exams", response_model=List[ExamPublic])
def list_exams_route(
    teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
):
    return list_exams(db, teacher.id)


def _save_upload(image: UploadFile) -> str:
    _, ext = os.path.splitext(image.filename or "")
    filename = uuid.uuid4().hex + ext.lower()
    with open(os.path.join(UPLOAD_DIR, filename), "wb") as f:
        shutil.copyfileobj(image.file, f)
    return f"{UPLOAD_URL_PREFIX}/{filename}"


@app.post(
    "/api/exams/{exam_id}/questions",
    response_model=QuestionDetail,
    status_code=status.HTTP_201_CREATED,
)
def add_question_route(
    exam_id: int,
    text: str = Form(...),
    correct: str = Form(...),
    image: Optional[UploadFile] = File(None),
    teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
):
    try:
        get_owned_exam(db, exam_id, teacher.id)
    except ExamNotFound:
        raise HTTPException(status_code=404, detail="Exam not found")

    image_path = _save_upload(image) if image is not None and image.filename else None
    return add_question(db, exam_id, text=text, correct=correct, image=image_path)


# ============ Student side ============

@app.get("/api/exams/{exam_id}/questions", response_model=List[QuestionPublic])
def get_questions(exam_id: int, db: Session = Depends(get_db)):
    return list_questions(db, exam_id)


@app.post("/api/join", response_model=JoinResponse)
def join_exam(req: JoinRequest, db: Session = Depends(get_db)):
    exam = find_exam_by_code(db, req.code)
    if not exam:
        raise HTTPException(status_code=404, detail="Exam code not found")

    student = get_or_create_student(db, req.name, req.email.strip(), req.class_name)
    attempt_id = create_attempt(db, exam.id, student.id)

    return JoinResponse(attempt_id=attempt_id, exam_id=exam.id)


@app.post("/api/answer", response_model=AnswerEntry)
def submit_answer(req: AnswerRequest, db: Session = Depends(get_db)):
    try:
        answer = record_answer(db, req.attempt_id, req.question_id, req.chosen)
    except AttemptNotFound:
        raise HTTPException(status_code=404, detail="Attempt not found")
    return AnswerEntry(question_id=answer.question_id, chosen=answer.chosen)


@app.get("/api/attempts/{attempt_id}/answers", response_model=List[AnswerEntry])
def get_attempt_answers(attempt_id: int, db: Session = Depends(get_db)):
    return list_answers(db, attempt_id)


@app.post("/api/attempts/{attempt_id}/switch", response_model=SwitchResponse)
def record_tab_switch(attempt_id: int, db: Session = Depends(get_db)):
    try:
        count = record_switch(db, attempt_id)
    except AttemptNotFound:
        raise HTTPException(status_code=404, detail="Attempt not found")
    return SwitchResponse(attempt_id=attempt_id, switch_count=count)


# ============ Results & exports (teacher) ============

def _owned_results(db: Session, exam_id: int, teacher: Teacher) -> List[ResultRow]:
    try:
        return build_results(db, exam_id, teacher.id)
    except ExamNotFound:
        raise HTTPException(status_code=404, detail="Exam not found")


def _attachment(content: bytes, media_type: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@app.get("/api/exams/{exam_id}/results", response_model=List[ResultPublic])
def get_results(
    exam_id: int,
    teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
):
    rows = _owned_results(db, exam_id, teacher)
    return [ResultPublic.from_row(row) for row in rows]


@app.get("/api/exams/{exam_id}/export/csv")
def export_csv(
    exam_id: int,
    teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
):
    rows = _owned_results(db, exam_id, teacher)
    logger.info("EXPORT format=csv exam_id=%s rows=%d", exam_id, len(rows))
    return _attachment(render_csv(rows).encode("utf-8"), CSV_MEDIA_TYPE, "results.csv")


@app.get("/api/exams/{exam_id}/export/xlsx")
def export_xlsx(
    exam_id: int,
    teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
):
    rows = _owned_results(db, exam_id, teacher)
    logger.info("EXPORT format=xlsx exam_id=%s rows=%d", exam_id, len(rows))
    return _attachment(render_xlsx(rows), XLSX_MEDIA_TYPE, "results.xlsx")


@app.get("/api/exams/{exam_id}/export/pdf")
def export_pdf(
    exam_id: int,
    teacher: Teacher = Depends(get_current_teacher),
    db: Session = Depends(get_db),
):
    rows = _owned_results(db, exam_id, teacher)
    logger.info("EXPORT format=pdf exam_id=%s rows=%d", exam_id, len(rows))
    return _attachment(render_pdf(rows), PDF_MEDIA_TYPE, "results.pdf")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
