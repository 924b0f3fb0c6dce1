# tests/test_admin_api.py
# Administration endpoints: role checks, catalogue editing rules, media uploads, abandon,
# certificate management and fun facts.

import os

from app.config import settings


def create_category(client, headers, name="Science"):
    resp = client.post("/api/admin/categories", json={"name": name}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_quiz(client, headers, category_id, **fields):
    payload = {"category_id": category_id, "title": "Chemistry basics", "passing_score": 50}
    payload.update(fields)
    resp = client.post("/api/admin/quizzes", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def question_payload(quiz_id, question_type="multiple_choice", correct=(True, False), **fields):
    payload = {
        "quiz_id": quiz_id,
        "question_type": question_type,
        "question_text": "Which are noble gases?",
        "options": [
            {"option_text": f"Option {i}", "is_correct": flag, "display_order": i}
            for i, flag in enumerate(correct)
        ],
    }
    payload.update(fields)
    return payload


def test_admin_requires_admin_role(client, auth_headers, make_user, headers_for):
    assert client.get("/api/admin/categories").status_code == 401
    assert client.get("/api/admin/categories", headers=auth_headers).status_code == 403

    super_admin = make_user(role="super_admin")
    assert client.get("/api/admin/categories", headers=headers_for(super_admin)).status_code == 200


def test_category_rules(client, admin_headers):
    category = create_category(client, admin_headers)

    resp = client.post("/api/admin/categories", json={"name": "Science"}, headers=admin_headers)
    assert resp.status_code == 400

    resp = client.put(
        f"/api/admin/categories/{category['id']}", json={"description": "Labs"}, headers=admin_headers
    )
    assert resp.json()["description"] == "Labs"

    create_quiz(client, admin_headers, category["id"])
    resp = client.delete(f"/api/admin/categories/{category['id']}", headers=admin_headers)
    assert resp.status_code == 400

    empty = create_category(client, admin_headers, name="History")
    resp = client.delete(f"/api/admin/categories/{empty['id']}", headers=admin_headers)
    assert resp.status_code == 204
    assert client.get(f"/api/admin/categories/{empty['id']}", headers=admin_headers).status_code == 404


def test_quiz_requires_existing_category(client, admin_headers):
    resp = client.post("/api/admin/quizzes", json={
        "category_id": "00000000-0000-0000-0000-000000000000",
        "title": "Orphan",
    }, headers=admin_headers)
    assert resp.status_code == 404


def test_publishing_controls_catalogue(client, admin_headers):
    category = create_category(client, admin_headers)
    quiz = create_quiz(client, admin_headers, category["id"])

    assert quiz["is_published"] is False
    assert client.get("/api/quizzes/").json() == []

    resp = client.put(f"/api/admin/quizzes/{quiz['id']}", json={"is_published": True}, headers=admin_headers)
    assert resp.status_code == 200
    assert [q["id"] for q in client.get("/api/quizzes/").json()] == [quiz["id"]]


def test_updates_reject_null_for_required_fields(client, admin_headers):
    category = create_category(client, admin_headers)
    quiz = create_quiz(client, admin_headers, category["id"], description="Atoms")
    question = client.post(
        "/api/admin/questions", json=question_payload(quiz["id"]), headers=admin_headers
    ).json()

    for body in ({"title": None}, {"category_id": None}, {"passing_score": None}):
        resp = client.put(f"/api/admin/quizzes/{quiz['id']}", json=body, headers=admin_headers)
        assert resp.status_code == 422, body
        assert resp.json()["error"] == "validation_error"

    resp = client.put(f"/api/admin/categories/{category['id']}", json={"name": None}, headers=admin_headers)
    assert resp.status_code == 422

    for body in ({"question_text": None}, {"options": None}):
        resp = client.put(f"/api/admin/questions/{question['id']}", json=body, headers=admin_headers)
        assert resp.status_code == 422, body

    # nullable columns can still be cleared
    resp = client.put(f"/api/admin/quizzes/{quiz['id']}", json={"description": None}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["description"] is None
    assert client.get(f"/api/admin/quizzes/{quiz['id']}", headers=admin_headers).json()["title"] == quiz["title"]


def test_question_option_validation(client, admin_headers):
    category = create_category(client, admin_headers)
    quiz = create_quiz(client, admin_headers, category["id"])

    # single choice with two correct options
    resp = client.post(
        "/api/admin/questions", json=question_payload(quiz["id"], correct=(True, True)), headers=admin_headers
    )
    assert resp.status_code == 400

    # single choice with none correct
    resp = client.post(
        "/api/admin/questions", json=question_payload(quiz["id"], correct=(False, False)), headers=admin_headers
    )
    assert resp.status_code == 400

    # fewer than two options
    resp = client.post(
        "/api/admin/questions", json=question_payload(quiz["id"], correct=(True,)), headers=admin_headers
    )
    assert resp.status_code == 422

    resp = client.post(
        "/api/admin/questions",
        json=question_payload(quiz["id"], question_type="essay"),
        headers=admin_headers,
    )
    assert resp.status_code == 422

    resp = client.post(
        "/api/admin/questions",
        json=question_payload(quiz["id"], question_type="checkbox", correct=(True, False, True)),
        headers=admin_headers,
    )
    assert resp.status_code == 201


def test_question_crud(client, admin_headers):
    category = create_category(client, admin_headers)
    quiz = create_quiz(client, admin_headers, category["id"])

    resp = client.post(
        "/api/admin/questions",
        json=question_payload(quiz["id"], points=3, metadata={"hint": "Group 18"}),
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    question = resp.json()
    assert question["points"] == 3
    assert question["metadata"] == {"hint": "Group 18"}
    assert [o["is_correct"] for o in question["options"]] == [True, False]

    resp = client.put(f"/api/admin/questions/{question['id']}", json={
        "options": [
            {"option_text": "Neon", "is_correct": False, "display_order": 0},
            {"option_text": "Argon", "is_correct": False, "display_order": 1},
            {"option_text": "Helium", "is_correct": True, "display_order": 2},
        ],
    }, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert [o["option_text"] for o in resp.json()["options"]] == ["Neon", "Argon", "Helium"]

    # switching to yes_no keeps the single correct option valid
    resp = client.put(
        f"/api/admin/questions/{question['id']}", json={"question_type": "yes_no"}, headers=admin_headers
    )
    assert resp.status_code == 200

    listed = client.get(f"/api/admin/quizzes/{quiz['id']}/questions", headers=admin_headers).json()
    assert [q["id"] for q in listed] == [question["id"]]

    resp = client.delete(f"/api/admin/questions/{question['id']}", headers=admin_headers)
    assert resp.status_code == 204
    assert client.get(f"/api/admin/questions/{question['id']}", headers=admin_headers).status_code == 404


def test_answered_content_is_protected(client, admin_headers, auth_headers, build_quiz, answers_for):
    quiz, questions = build_quiz(1)
    client.post(f"/api/quizzes/{quiz.id}/start", headers=auth_headers)
    resp = client.post(
        f"/api/quizzes/{quiz.id}/submit",
        json={"answers": answers_for(questions, 1, as_json=True)},
        headers=auth_headers,
    )
    assert resp.status_code == 200, resp.text
    question_id = str(questions[0].id)

    resp = client.put(f"/api/admin/questions/{question_id}", json={
        "options": [
            {"option_text": "yes", "is_correct": True},
            {"option_text": "no", "is_correct": False},
        ],
    }, headers=admin_headers)
    assert resp.status_code == 400

    assert client.delete(f"/api/admin/questions/{question_id}", headers=admin_headers).status_code == 400
    assert client.delete(f"/api/admin/quizzes/{quiz.id}", headers=admin_headers).status_code == 400

    # wording edits are still allowed
    resp = client.put(
        f"/api/admin/questions/{question_id}", json={"question_text": "Reworded"}, headers=admin_headers
    )
    assert resp.status_code == 200


def test_delete_quiz_without_attempts(client, admin_headers, build_quiz):
    quiz, _ = build_quiz(2)

    assert client.delete(f"/api/admin/quizzes/{quiz.id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/admin/quizzes/{quiz.id}", headers=admin_headers).status_code == 404


def test_abandon_attempt(client, admin_headers, auth_headers, build_quiz):
    quiz, _ = build_quiz(1)
    attempt_id = client.post(f"/api/quizzes/{quiz.id}/start", headers=auth_headers).json()["attempt_id"]

    resp = client.post(f"/api/admin/attempts/{attempt_id}/abandon", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "abandoned"

    resp = client.post(f"/api/admin/attempts/{attempt_id}/abandon", headers=admin_headers)
    assert resp.status_code == 400

    resp = client.post(f"/api/quizzes/{quiz.id}/submit", json={"answers": []}, headers=auth_headers)
    assert resp.status_code == 400


def test_thumbnail_upload(client, admin_headers, build_quiz, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    quiz, _ = build_quiz(1)

    resp = client.post(
        f"/api/admin/quizzes/{quiz.id}/thumbnail",
        files={"file": ("cover.png", b"\x89PNG\r\n\x1a\nfake", "image/png")},
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    url = resp.json()["thumbnail_url"]
    assert url.startswith(settings.MEDIA_BASE_URL.rstrip("/") + "/quizzes/")
    assert os.path.exists(os.path.join(str(tmp_path), "quizzes", url.rsplit("/", 1)[1]))

    resp = client.post(
        f"/api/admin/quizzes/{quiz.id}/thumbnail",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers,
    )
    assert resp.status_code == 400

    resp = client.post(
        f"/api/admin/quizzes/{quiz.id}/thumbnail",
        files={"file": ("empty.png", b"", "image/png")},
        headers=admin_headers,
    )
    assert resp.status_code == 400


def test_list_users(client, admin, user, admin_headers):
    resp = client.get("/api/admin/users", headers=admin_headers)
    assert resp.status_code == 200
    assert {u["email"] for u in resp.json()} == {admin.email, user.email}

    resp = client.get(f"/api/admin/users/{user.id}", headers=admin_headers)
    assert resp.json()["id"] == str(user.id)


def take_quiz(client, headers, quiz, questions, answers_for, n_correct):
    assert client.post(f"/api/quizzes/{quiz.id}/start", headers=headers).status_code == 200
    resp = client.post(
        f"/api/quizzes/{quiz.id}/submit",
        json={"answers": answers_for(questions, n_correct, as_json=True)},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_certificate_issue_requires_passing_attempt(
    client, user, admin_headers, auth_headers, build_quiz, answers_for
):
    quiz, questions = build_quiz(4, passing_score=50)
    payload = {"user_id": str(user.id), "quiz_id": str(quiz.id)}

    # no attempt at all
    resp = client.post("/api/admin/certificates", json=payload, headers=admin_headers)
    assert resp.status_code == 400

    # a failing attempt is not enough
    assert take_quiz(client, auth_headers, quiz, questions, answers_for, 1)["passed"] is False
    resp = client.post("/api/admin/certificates", json=payload, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_state"

    # passing issues one automatically, so a manual issue is a duplicate
    assert take_quiz(client, auth_headers, quiz, questions, answers_for, 3)["score"] == 75
    resp = client.post("/api/admin/certificates", json=payload, headers=admin_headers)
    assert resp.status_code == 400

    resp = client.post("/api/admin/certificates", json={
        "user_id": "00000000-0000-0000-0000-000000000000",
        "quiz_id": str(quiz.id),
    }, headers=admin_headers)
    assert resp.status_code == 404


def test_certificate_management(client, user, admin_headers, auth_headers, build_quiz, answers_for):
    quiz, questions = build_quiz(4, passing_score=50)
    take_quiz(client, auth_headers, quiz, questions, answers_for, 3)

    listed = client.get("/api/admin/certificates", headers=admin_headers).json()
    assert len(listed) == 1
    certificate = listed[0]
    assert certificate["user"]["email"] == user.email
    assert certificate["quiz"]["title"] == quiz.title
    assert certificate["score_achieved"] == 75

    assert client.get(f"/api/admin/certificates?quiz_id={quiz.id}", headers=admin_headers).json() != []
    assert client.get(
        "/api/admin/certificates?user_id=00000000-0000-0000-0000-000000000000", headers=admin_headers
    ).json() == []

    url = f"/api/admin/certificates/{certificate['id']}"
    assert client.get(url, headers=admin_headers).json()["id"] == certificate["id"]

    # amended score must still pass
    assert client.put(url, json={"score_achieved": 40}, headers=admin_headers).status_code == 400
    assert client.put(url, json={"certificate_url": None}, headers=admin_headers).status_code == 422
    resp = client.put(url, json={"certificate_url": "https://example.com/c/1"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["certificate_url"] == "https://example.com/c/1"

    assert client.delete(url, headers=admin_headers).status_code == 204
    assert client.get(url, headers=admin_headers).status_code == 404
    assert client.get("/api/users/me/certificates", headers=auth_headers).json() == []

    # re-issue after revocation; the score may not exceed the best attempt
    payload = {"user_id": str(user.id), "quiz_id": str(quiz.id)}
    resp = client.post("/api/admin/certificates", json=dict(payload, score_achieved=90), headers=admin_headers)
    assert resp.status_code == 400

    resp = client.post("/api/admin/certificates", json=payload, headers=admin_headers)
    assert resp.status_code == 201, resp.text
    assert resp.json()["score_achieved"] == 75
    assert resp.json()["certificate_url"]
    assert len(client.get("/api/users/me/certificates", headers=auth_headers).json()) == 1


def test_certificates_require_admin(client, auth_headers):
    assert client.get("/api/admin/certificates", headers=auth_headers).status_code == 403


def test_fun_fact_crud(client, admin_headers, build_quiz, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    quiz, questions = build_quiz(1)
    question_id = str(questions[0].id)

    resp = client.post("/api/admin/funfacts", json={
        "question_id": "00000000-0000-0000-0000-000000000000",
        "title": "Orphan",
        "content": "No question",
    }, headers=admin_headers)
    assert resp.status_code == 404

    resp = client.post("/api/admin/funfacts", json={
        "question_id": question_id,
        "title": "Did you know?",
        "content": "Paris was once called Lutetia.",
    }, headers=admin_headers)
    assert resp.status_code == 201, resp.text
    fun_fact = resp.json()
    assert fun_fact["question"]["question_text"] == "Question 0"
    assert fun_fact["image_url"] is None

    url = f"/api/admin/funfacts/{fun_fact['id']}"
    resp = client.put(url, json={"content": "Lutetia Parisiorum."}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["content"] == "Lutetia Parisiorum."
    assert resp.json()["title"] == "Did you know?"
    assert client.put(url, json={"title": None}, headers=admin_headers).status_code == 422

    resp = client.post(
        f"{url}/image",
        files={"file": ("seine.png", b"\x89PNG\r\n\x1a\nfake", "image/png")},
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    assert "/funfacts/" in resp.json()["image_url"]

    listed = client.get(f"/api/admin/funfacts?question_id={question_id}", headers=admin_headers).json()
    assert [f["id"] for f in listed] == [fun_fact["id"]]

    assert client.delete(url, headers=admin_headers).status_code == 204
    assert client.get(url, headers=admin_headers).status_code == 404
    assert client.get("/api/admin/funfacts", headers=admin_headers).json() == []


def test_deleting_question_removes_its_fun_facts(client, admin_headers, build_quiz):
    quiz, questions = build_quiz(1)
    question_id = str(questions[0].id)
    client.post("/api/admin/funfacts", json={
        "question_id": question_id, "title": "Fact", "content": "Text",
    }, headers=admin_headers)

    assert client.delete(f"/api/admin/questions/{question_id}", headers=admin_headers).status_code == 204
    assert client.get("/api/admin/funfacts", headers=admin_headers).json() == []
