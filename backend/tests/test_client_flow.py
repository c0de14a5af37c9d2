from openai import OpenAIError

from conftest import make_client, make_therapist
from therabridge.services.crisis import CRISIS_RESPONSE


def _therapist_and_client(client):
    therapist = make_therapist(client)
    patient, client_id = make_client(client, therapist)
    return therapist, patient, client_id


def test_mood_logging_and_timeline(client):
    _, patient, _ = _therapist_and_client(client)

    for score in (3, 5, 8):
        res = client.post("/client/mood", json={"mood_score": score, "sleep_hours": 7.5}, headers=patient)
        assert res.status_code == 201

    timeline = client.get("/client/mood", headers=patient).json()
    assert [m["mood_score"] for m in timeline] == [8, 5, 3]

    res = client.post("/client/mood", json={"mood_score": 11}, headers=patient)
    assert res.status_code == 422


def test_emotional_event_is_saved(client):
    _, patient, _ = _therapist_and_client(client)
    res = client.post("/client/events", json={
        "event_type": "anxiety", "intensity": 6, "description": "Presentation at work",
        "coping_strategies_used": "box breathing",
    }, headers=patient)
    assert res.status_code == 200
    assert res.json() == {"success": True, "crisis_detected": False, "crisis_response": None}

    events = client.get("/client/events", headers=patient).json()
    assert len(events) == 1
    assert events[0]["description"] == "Presentation at work"


def test_event_scenarios(client):
    _, patient, _ = _therapist_and_client(client)

    res = client.post("/client/events", json={
        "event_type": "anxiety", "intensity": 8, "description": "I want to end my life",
    }, headers=patient)
    assert res.json() == {"success": True, "crisis_detected": True, "crisis_response": CRISIS_RESPONSE}
    assert client.get("/client/events", headers=patient).json() == []

    res = client.post("/client/events", json={
        "event_type": "joy", "intensity": 6, "description": "had a great walk",
    }, headers=patient)
    assert res.json()["crisis_detected"] is False
    assert len(client.get("/client/events", headers=patient).json()) == 1


def test_crisis_event_is_not_saved(client, fake_openai):
    _, patient, _ = _therapist_and_client(client)
    res = client.post("/client/events", json={
        "event_type": "depression", "intensity": 9, "description": "rough night", "triggers": "I feel worthless",
    }, headers=patient)
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["crisis_detected"] is True
    assert "988" in body["crisis_response"]

    assert client.get("/client/events", headers=patient).json() == []
    assert fake_openai.completions.calls == []


def test_check_in_generates_reflection(client, fake_openai):
    therapist, patient, client_id = _therapist_and_client(client)
    client.post("/therapist/goals", json={"client_id": client_id, "goal_text": "Notice automatic thoughts"}, headers=therapist)
    client.post("/client/mood", json={"mood_score": 4}, headers=patient)
    client.post("/client/mood", json={"mood_score": 6}, headers=patient)

    res = client.post("/client/check-ins", json={
        "responses": {"How was your week?": "Busy but okay"}, "mood_at_check_in": 6,
    }, headers=patient)
    assert res.status_code == 200
    body = res.json()
    assert body["crisis_detected"] is False
    assert body["ai_reflection"] == "1. What felt different this week?"

    messages = fake_openai.completions.calls[0]["messages"]
    assert "Cognitive Behavioral Therapy" in messages[0]["content"]
    assert "Average mood: 5.0/10" in messages[1]["content"]
    assert "Notice automatic thoughts" in messages[1]["content"]

    reflections = client.get("/client/reflections", headers=patient).json()
    assert len(reflections) == 1
    assert reflections[0]["summary_type"] == "reflection_prompt"
    assert reflections[0]["tokens_used"] == 42

    dashboard = client.get("/client/dashboard", headers=patient).json()
    assert dashboard["recent_check_ins"][0]["ai_reflection_generated"] == body["ai_reflection"]
    assert dashboard["recent_check_ins"][0]["responses"] == {"How was your week?": "Busy but okay"}


def test_crisis_check_in_skips_llm_and_storage(client, fake_openai):
    _, patient, _ = _therapist_and_client(client)
    res = client.post("/client/check-ins", json={
        "check_in_type": "crisis_check", "responses": {"q1": "fine", "q2": "I want to die"},
    }, headers=patient)
    assert res.status_code == 200
    body = res.json()
    assert body["crisis_detected"] is True
    assert body["ai_reflection"] is None
    assert fake_openai.completions.calls == []
    assert client.get("/client/dashboard", headers=patient).json()["recent_check_ins"] == []
    assert client.get("/client/reflections", headers=patient).json() == []


def test_check_in_answers_are_scanned_as_submitted(client, fake_openai):
    _, patient, _ = _therapist_and_client(client)
    responses = {"q1": "Honestly I want", "q2": "", "q3": "to die sometimes"}

    # blank answers still take their place in the scanned text, so the phrase is split by two spaces
    res = client.post("/client/check-ins", json={"responses": responses}, headers=patient)
    assert res.status_code == 200
    assert res.json()["crisis_detected"] is False
    stored = client.get("/client/dashboard", headers=patient).json()["recent_check_ins"]
    assert stored[0]["responses"] == responses

    res = client.post("/client/check-ins", json={"responses": {"q1": "", "q2": "I want to die"}}, headers=patient)
    assert res.json()["crisis_detected"] is True
    assert len(fake_openai.completions.calls) == 1


def test_check_in_fallback_when_model_returns_nothing(client, fake_openai):
    _, patient, _ = _therapist_and_client(client)
    fake_openai.completions.content = None
    res = client.post("/client/check-ins", json={"responses": {"q": "ok"}}, headers=patient)
    assert res.status_code == 200
    assert res.json()["ai_reflection"] == (
        "Unable to generate reflection prompts at this time. Please try again later."
    )


def test_llm_outage_returns_502(client, fake_openai):
    _, patient, _ = _therapist_and_client(client)
    fake_openai.completions.error = OpenAIError("connection reset")
    res = client.post("/client/check-ins", json={"responses": {"q": "ok"}}, headers=patient)
    assert res.status_code == 502
    assert res.json() == {"detail": "AI service is unavailable. Please try again later."}
    assert client.get("/client/dashboard", headers=patient).json()["recent_check_ins"] == []


def test_homework_status_machine(client):
    therapist, patient, client_id = _therapist_and_client(client)
    hw = client.post("/therapist/homework", json={
        "client_id": client_id, "title": "Thought record", "description": "Fill one per day",
    }, headers=therapist).json()
    assert hw["status"] == "assigned"

    res = client.patch(f"/client/homework/{hw['id']}", json={"status": "in_progress"}, headers=patient)
    assert res.status_code == 200
    res = client.patch(f"/client/homework/{hw['id']}", json={
        "status": "completed", "completion_notes": "Did 5 of 7",
    }, headers=patient)
    assert res.status_code == 200
    done = res.json()
    assert done["completed_at"] is not None
    assert done["completion_notes"] == "Did 5 of 7"

    res = client.patch(f"/client/homework/{hw['id']}", json={"status": "skipped"}, headers=patient)
    assert res.status_code == 409

    res = client.patch(f"/client/homework/{hw['id']}", json={"status": "assigned"}, headers=patient)
    assert res.status_code == 422


def test_client_cannot_touch_someone_elses_homework(client):
    therapist, patient, client_id = _therapist_and_client(client)
    other, _ = make_client(client, therapist, email="robin@example.com")
    hw = client.post("/therapist/homework", json={
        "client_id": client_id, "title": "Walk", "description": "20 minutes",
    }, headers=therapist).json()

    res = client.patch(f"/client/homework/{hw['id']}", json={"status": "completed"}, headers=other)
    assert res.status_code == 404
    assert client.get("/client/homework", headers=other).json() == []


def test_client_goals_and_dashboard(client):
    therapist, patient, client_id = _therapist_and_client(client)
    client.post("/therapist/goals", json={"client_id": client_id, "goal_text": "Sleep by 11pm"}, headers=therapist)

    goals = client.get("/client/goals", headers=patient).json()
    assert [g["goal_text"] for g in goals] == ["Sleep by 11pm"]

    dashboard = client.get("/client/dashboard", headers=patient).json()
    assert dashboard["profile"]["id"] == client_id
    assert len(dashboard["goals"]) == 1
