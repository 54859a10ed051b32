import csv
import io
import os

from openpyxl import load_workbook

from grading.config import UPLOAD_DIR
from conftest import register_and_login


def _create_exam(client, headers, title="Quiz 1"):
    resp = client.post("/api/exams", json={"title": title}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _add_question(client, headers, exam_id, text, correct):
    resp = client.post(
        f"/api/exams/{exam_id}/questions",
        data={"text": text, "correct": correct},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _join(client, code, name, email, class_name="7A"):
    resp = client.post(
        "/api/join",
        json={"name": name, "email": email, "class": class_name, "code": code},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["attemptId"]


def _answer(client, attempt_id, question_id, chosen):
    resp = client.post("/api/answer", json={"attemptId": attempt_id, "qid": question_id, "ans": chosen})
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_register_twice_is_rejected(client):
    register_and_login(client, "bu_sari")
    resp = client.post("/api/teacher/register", json={"username": "bu_sari", "password": "other"})
    assert resp.status_code == 400


def test_login_with_wrong_password(client):
    register_and_login(client, "pak_budi", "right")
    resp = client.post("/api/teacher/login", json={"username": "pak_budi", "password": "wrong"})
    assert resp.status_code == 400


def test_teacher_routes_require_token(client):
    assert client.get("/api/exams").status_code == 401
    resp = client.get("/api/exams", headers={"Authorization": "Bearer garbage"})
    assert resp.status_code == 401


def test_exam_listing_is_per_teacher(client):
    alice = register_and_login(client, "alice")
    bob = register_and_login(client, "bob")
    exam = _create_exam(client, alice, "Algebra")

    assert [e["id"] for e in client.get("/api/exams", headers=alice).json()] == [exam["id"]]
    assert client.get("/api/exams", headers=bob).json() == []


def test_student_questions_hide_answer_key(client):
    headers = register_and_login(client)
    exam = _create_exam(client, headers)
    _add_question(client, headers, exam["id"], "1 + 1?", "B")

    questions = client.get(f"/api/exams/{exam['id']}/questions").json()
    assert len(questions) == 1
    assert questions[0]["text"] == "1 + 1?"
    assert "correct" not in questions[0]


def test_question_with_image_upload(client):
    headers = register_and_login(client)
    exam = _create_exam(client, headers)

    resp = client.post(
        f"/api/exams/{exam['id']}/questions",
        data={"text": "Which shape?", "correct": "C"},
        files={"image": ("shape.PNG", b"\x89PNG fake", "image/png")},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    image = resp.json()["image"]
    assert image.startswith("/uploads/") and image.endswith(".png")
    assert os.path.exists(os.path.join(UPLOAD_DIR, os.path.basename(image)))


def test_cannot_add_question_to_foreign_exam(client):
    owner = register_and_login(client, "owner")
    other = register_and_login(client, "other")
    exam = _create_exam(client, owner)

    resp = client.post(
        f"/api/exams/{exam['id']}/questions",
        data={"text": "sneaky", "correct": "A"},
        headers=other,
    )
    assert resp.status_code == 404


def test_join_with_unknown_code(client):
    resp = client.post(
        "/api/join",
        json={"name": "Ada", "email": "ada@example.org", "class": "7A", "code": "??????"},
    )
    assert resp.status_code == 404


def test_answer_for_unknown_attempt(client):
    resp = client.post("/api/answer", json={"attempt_id": 77, "question_id": 1, "chosen": "A"})
    assert resp.status_code == 404


def test_answers_and_switch_counter(client):
    headers = register_and_login(client)
    exam = _create_exam(client, headers)
    q = _add_question(client, headers, exam["id"], "Q", "A")
    attempt = _join(client, exam["code"], "Ada", "ada@example.org")

    _answer(client, attempt, q["id"], "B")
    _answer(client, attempt, q["id"], "A")

    answers = client.get(f"/api/attempts/{attempt}/answers").json()
    assert answers == [{"question_id": q["id"], "chosen": "A"}]

    assert client.post(f"/api/attempts/{attempt}/switch").json()["switch_count"] == 1
    assert client.post(f"/api/attempts/{attempt}/switch").json()["switch_count"] == 2
    assert client.post("/api/attempts/999/switch").status_code == 404


def test_results_are_owner_only(client):
    owner = register_and_login(client, "owner")
    other = register_and_login(client, "other")
    exam = _create_exam(client, owner)

    for path in ("results", "export/csv", "export/xlsx", "export/pdf"):
        resp = client.get(f"/api/exams/{exam['id']}/{path}", headers=other)
        assert resp.status_code == 404, path


def test_results_agree_across_formats(client):
    headers = register_and_login(client)
    exam = _create_exam(client, headers)
    q1 = _add_question(client, headers, exam["id"], "Q1", "A")
    q2 = _add_question(client, headers, exam["id"], "Q2", "B")
    q3 = _add_question(client, headers, exam["id"], "Q3", "C")

    ada = _join(client, exam["code"], "Ada", "ada@example.org", "7A")
    _answer(client, ada, q1["id"], "A")
    _answer(client, ada, q2["id"], "C")
    _answer(client, ada, q2["id"], "B")

    bo = _join(client, exam["code"].lower(), "Bo", "bo@example.org", "7B")
    _answer(client, bo, q3["id"], "C")
    _answer(client, bo, q1["id"], "a")

    results = client.get(f"/api/exams/{exam['id']}/results", headers=headers)
    assert results.status_code == 200
    assert results.json() == [
        {"name": "Ada", "email": "ada@example.org", "class": "7A", "score": 2, "total": 3, "percent": 67},
        {"name": "Bo", "email": "bo@example.org", "class": "7B", "score": 1, "total": 3, "percent": 33},
    ]
    expected = [(r["score"], r["total"], r["percent"]) for r in results.json()]

    resp = client.get(f"/api/exams/{exam['id']}/export/csv", headers=headers)
    assert resp.headers["content-type"].startswith("text/csv")
    assert "results.csv" in resp.headers["content-disposition"]
    csv_rows = list(csv.DictReader(io.StringIO(resp.text)))
    assert [(int(r["correct"]), int(r["total"]), int(r["percent"])) for r in csv_rows] == expected

    resp = client.get(f"/api/exams/{exam['id']}/export/xlsx", headers=headers)
    assert resp.status_code == 200
    ws = load_workbook(io.BytesIO(resp.content))["Results"]
    xlsx_rows = list(ws.iter_rows(min_row=2, values_only=True))
    assert [tuple(r[3:6]) for r in xlsx_rows] == expected

    resp = client.get(f"/api/exams/{exam['id']}/export/pdf", headers=headers)
    assert resp.headers["content-type"] == "application/pdf"
    for correct, total, percent in expected:
        assert f"score: {correct}/{total} ".encode() in resp.content
        assert f"{percent}%".encode() in resp.content


def test_results_twice_are_identical(client):
    headers = register_and_login(client)
    exam = _create_exam(client, headers)
    q = _add_question(client, headers, exam["id"], "Q", "A")
    attempt = _join(client, exam["code"], "Ada", "ada@example.org")
    _answer(client, attempt, q["id"], "A")

    first = client.get(f"/api/exams/{exam['id']}/results", headers=headers)
    second = client.get(f"/api/exams/{exam['id']}/results", headers=headers)
    assert first.content == second.content


def test_join_response_feeds_answer_request(client):
    headers = register_and_login(client)
    exam = _create_exam(client, headers)
    q = _add_question(client, headers, exam["id"], "Q", "A")

    resp = client.post(
        "/api/join",
        json={"name": "Ada", "email": "ada@example.org", "class": "7A", "code": exam["code"]},
    )
    joined = resp.json()
    assert set(joined) == {"attemptId", "examId"}
    assert joined["examId"] == exam["id"]

    resp = client.post("/api/answer", json={"attemptId": joined["attemptId"], "qid": q["id"], "ans": "A"})
    assert resp.status_code == 200
