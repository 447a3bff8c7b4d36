from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import candidates_router, router


app = FastAPI()
app.include_router(router)
app.include_router(candidates_router)
client = TestClient(app)


def test_full_interview(fake_models):
    create_resp = client.post(
        "/api/interview-sessions",
        json={"candidate_id": "cand-42", "job_position": "Frontend Engineer", "tech_stack": ["TypeScript"]},
    )
    assert create_resp.status_code == 201
    created = create_resp.json()
    assert created["status"] == "pending"
    assert created["job"]["job_position"] == "Frontend Engineer"
    assert created["job"]["experience_level"] == "Mid-level"
    session_id = created["session_id"]

    start_resp = client.post(f"/api/interview-sessions/{session_id}/start")
    assert start_resp.status_code == 200
    start = start_resp.json()
    assert start["status"] == "in_progress"
    assert start["question_number"] == 1
    assert start["total_questions"] == 6
    assert start["question"]["source"] == "generated"
    assert start["question"]["time_limit_seconds"] == 120

    body = None
    for ordinal in range(6):
        resp = client.post(
            f"/api/interview-sessions/{session_id}/answers",
            json={"ordinal": ordinal, "answer": f"Thoughtful answer {ordinal}"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["score"] == 80
        if ordinal < 5:
            assert body["next_question"]["ordinal"] == ordinal + 1
            assert not body["is_complete"]

    assert body["is_complete"]
    assert body["next_question"] is None
    assert body["final_score"] == 80
    assert body["summary"] == "Candidate scored 80/100."
    assert fake_models["score"] == 6
    assert fake_models["summary"] == 1

    session = client.get(f"/api/interview-sessions/{session_id}").json()
    assert session["status"] == "completed"
    assert session["answered_count"] == 6
    assert session["current_question_index"] == 6
    assert session["recommendation"] == "Hire"
    assert [slot["tier"] for slot in session["questions"]] == ["easy", "easy", "medium", "medium", "hard", "hard"]

    listing = client.get("/api/candidates").json()
    assert listing["pagination"]["total"] == 1
    assert listing["data"][0]["candidate_id"] == "cand-42"
    assert listing["data"][0]["interview_status"] == "completed"
    assert listing["data"][0]["score"] == 80

    detail = client.get("/api/candidates/cand-42").json()
    assert detail["candidate"]["session_id"] == session_id
    assert detail["session"]["final_score"] == 80


def test_fallbacks_carry_interview_without_backends():
    session_id = client.post("/api/interview-sessions", json={"candidate_id": "cand-7"}).json()["session_id"]
    start = client.post(f"/api/interview-sessions/{session_id}/start").json()
    assert start["question"]["source"] == "fallback"
    assert start["question"]["text"] == "What is React and what are its main benefits?"

    for ordinal in range(6):
        resp = client.post(
            f"/api/interview-sessions/{session_id}/answers",
            json={"ordinal": ordinal, "answer": "Short reply."},
        )
        assert resp.status_code == 200
    body = resp.json()
    assert body["final_score"] == 60
    assert "Recommendation: Consider" in body["summary"]


def test_timed_out_question_is_recorded():
    session_id = client.post("/api/interview-sessions", json={"candidate_id": "cand-8"}).json()["session_id"]
    resp = client.post(
        f"/api/interview-sessions/{session_id}/answers",
        json={"ordinal": 0, "answer": None, "timed_out": True},
    )
    assert resp.status_code == 200
    slot = client.get(f"/api/interview-sessions/{session_id}").json()["questions"][0]
    assert slot["timed_out"]
    assert slot["answer_text"] == "No answer provided (time expired)."


def test_list_sessions():
    client.post("/api/interview-sessions", json={"candidate_id": "a"})
    client.post("/api/interview-sessions", json={"candidate_id": "b"})
    listed = client.get("/api/interview-sessions").json()
    assert {item["candidate_id"] for item in listed} == {"a", "b"}
