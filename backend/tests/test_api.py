from datetime import timedelta

from liftlog import main as app_main
from liftlog.db import utcnow
from liftlog.llm.errors import ModelError, RateLimitedError
from liftlog.models import WorkoutSession

from fakes import calls, reply


def test_chat_logs_and_persists_messages(make_client):
    client, _ = make_client(
        calls(("log_workout_session", {"focusArea": "Push Day"})),
        reply("Let's go! First exercise?"),
        calls(("log_sets", {"exerciseName": "Bench Press", "weightLbs": 185, "reps": 5, "numberOfSets": 2})),
        reply(""),
    )
    with client:
        r = client.post("/chat", json={"message": "starting push day"})
        assert r.status_code == 200
        assert r.json()["reply"] == "Let's go! First exercise?"
        assert r.json()["logged"] is None

        r = client.post("/chat", json={"message": "bench 185 for 2 sets of 5"})
        body = r.json()
        assert body["reply"] == "Logged! ✓"
        assert body["tool_calls"] == ["log_sets"]
        assert [s["weight"] for s in body["logged"]["exercises"][0]["sets"]] == [185, 185]

        active = client.get("/sessions/active").json()
        assert active["label"] == "Push Day"
        assert active["total_sets"] == 2
        assert active["exercises"][0]["exercise"]["name"] == "Bench Press"

        msgs = client.get("/chat/messages").json()
        assert [m["role"] for m in msgs] == ["user", "assistant", "user", "assistant"]
        assert msgs[0]["session_id"] is None
        assert msgs[1]["session_id"] == active["id"]
        assert msgs[3]["logged_payload"]["exercises"][0]["exerciseName"] == "Bench Press"

def test_chat_rejects_blank_message(make_client):
    client, _ = make_client()
    with client:
        assert client.post("/chat", json={"message": "   "}).status_code == 422
        assert client.post("/chat", json={"message": "\n\t "}).status_code == 422
        assert client.get("/chat/messages").json() == []

def test_chat_reports_unavailable_service(make_client):
    client, _ = make_client(*[RateLimitedError() for _ in range(4)])
    with client:
        client.app.state.orchestrator.retry_base_delay = 0
        r = client.post("/chat", json={"message": "hi"})
        assert r.status_code == 503
        assert r.json()["detail"] == "Service temporarily unavailable. Please try again later."

def test_chat_hides_backend_errors(make_client):
    client, _ = make_client(ModelError("HTTP 400: invalid schema"))
    with client:
        r = client.post("/chat", json={"message": "hi"})
        assert r.status_code == 502
        assert "invalid schema" not in r.text

def test_chat_without_model_is_503(make_client, monkeypatch):
    monkeypatch.setattr(app_main, "_default_model_client", lambda: None)
    client, _ = make_client(with_model=False)
    with client:
        assert client.post("/chat", json={"message": "hi"}).status_code == 503
        assert client.get("/healthz").json()["assistant"] is False

def test_chat_reset(make_client):
    client, _ = make_client(reply("hey"))
    with client:
        client.post("/chat", json={"message": "hi"})
        assert client.app.state.orchestrator.transcript
        assert client.post("/chat/reset").status_code == 204
        assert client.app.state.orchestrator.transcript == []


def test_startup_ends_stale_sessions(make_client, session_factory):
    with session_factory() as db:
        db.add(WorkoutSession(label="Yesterday", start_time=utcnow() - timedelta(hours=20)))
        db.commit()
    client, _ = make_client()
    with client:
        assert client.get("/sessions/active").status_code == 404
        page = client.get("/sessions").json()
        assert page["total"] == 1
        assert page["items"][0]["end_time"] is not None


def seed(svc):
    svc.start_session("Push Day")
    svc.log_set("Bench Press", 185, 5, muscle_group="Chest")
    svc.log_set("Overhead Press", 115, 5, muscle_group="Shoulders")

def test_sessions_endpoints(make_client, svc):
    # a fresh session with exercises survives the startup cleanup
    seed(svc)
    client, _ = make_client()
    with client:
        page = client.get("/sessions", params={"limit": 10}).json()
        assert page["total"] == 1
        assert page["items"][0]["muscle_groups"] == ["Chest", "Shoulders"]
        assert client.get("/sessions", params={"q": "push"}).json()["total"] == 1
        assert client.get("/sessions", params={"q": "legs"}).json()["items"] == []

        ended = client.post("/sessions/end").json()
        assert ended["is_active"] is False
        assert client.post("/sessions/end").status_code == 404

def test_exercise_endpoints(make_client, svc):
    seed(svc)
    client, _ = make_client()
    with client:
        found = client.get("/exercises", params={"q": "bench pres"}).json()
        assert found[0]["exercise"]["name"] == "Bench Press"
        assert len(client.get("/exercises").json()) == 2

        prs = client.get("/exercises/prs").json()
        assert prs["total_count"] == 2
        assert prs["entries"][0] == {
            "exercise_name": "Bench Press", "weight": 185, "volume": 925, "muscle_group": "Chest",
        }

        bench_id = found[0]["exercise"]["id"]
        history = client.get(f"/exercises/{bench_id}/history").json()
        assert history[0]["max_weight"] == 185
        assert client.get("/exercises/999/history").status_code == 404

        suggestions = client.get("/exercises/suggestions", params={"label": "push"}).json()
        assert suggestions == []

        r = client.patch(f"/exercises/{bench_id}", json={"name": "flat bench"})
        assert r.json()["name"] == "Flat Bench"
        ohp_id = next(e["exercise"]["id"] for e in client.get("/exercises").json()
                      if e["exercise"]["name"] == "Overhead Press")
        assert client.patch(f"/exercises/{ohp_id}", json={"name": "Flat Bench"}).status_code == 400
        assert client.patch("/exercises/999", json={"name": "X"}).status_code == 404
        assert client.patch(f"/exercises/{ohp_id}", json={"name": "  "}).status_code == 422

        assert client.post(f"/exercises/{ohp_id}/hide").json()["hidden"] is True
        assert client.post(f"/exercises/{ohp_id}/hide", json={"hidden": False}).json()["hidden"] is False

        assert client.delete(f"/exercises/{bench_id}").status_code == 204
        assert client.delete(f"/exercises/{bench_id}").status_code == 404

def test_profile_endpoints(make_client):
    client, _ = make_client()
    with client:
        assert client.get("/profile").status_code == 404
        r = client.put("/profile", json={"name": "  Sam ", "weight_lbs": 180})
        assert r.status_code == 200
        assert r.json()["weight_lbs"] == 180
        assert r.json()["name"] == "Sam"
        r = client.put("/profile", json={"height_inches": 70})
        assert r.json()["name"] == "Sam"
        assert r.json()["height_inches"] == 70
        assert client.put("/profile", json={"weight_lbs": -1}).status_code == 422

def test_edit_active_exercise(make_client, svc):
    seed(svc)
    client, _ = make_client()
    with client:
        r = client.put(
            "/sessions/active/exercises/bench press",
            json={"name": "Incline Bench Press", "sets": [{"weight": 155, "reps": 8}, {"weight": 155, "reps": 6}]},
        )
        assert r.status_code == 200
        body = r.json()
        assert body["exercise"]["name"] == "Incline Bench Press"
        assert [(s["set_number"], s["weight"], s["reps"]) for s in body["sets"]] == [(1, 155, 8), (2, 155, 6)]

        r = client.put("/sessions/active/exercises/Incline Bench Press",
                       json={"name": "Overhead Press", "sets": [{"weight": 95, "reps": 5}]})
        assert r.status_code == 400
        assert client.put("/sessions/active/exercises/Squat",
                          json={"sets": [{"weight": 225, "reps": 5}]}).status_code == 404
        assert client.put("/sessions/active/exercises/Overhead Press", json={"sets": []}).status_code == 422

def test_history_summary_endpoint(make_client, svc):
    client, _ = make_client()
    with client:
        assert client.get("/sessions/summary").json() == {"summary": "No workout history yet. Let's get started!"}
    seed(svc)
    client, _ = make_client()
    with client:
        assert "Push Day" in client.get("/sessions/summary", params={"limit": 1}).json()["summary"]
