from therabridge.repository import Repository

from conftest import invite, make_client, make_therapist


def test_client_list_and_detail(client):
    therapist = make_therapist(client)
    patient, client_id = make_client(client, therapist)
    client.post("/client/mood", json={"mood_score": 7}, headers=patient)

    clients = client.get("/therapist/clients", headers=therapist).json()
    assert len(clients) == 1
    assert clients[0]["email"] == "sam@example.com"
    assert clients[0]["name"] == "Sam"

    detail = client.get(f"/therapist/clients/{client_id}", headers=therapist).json()
    assert detail["client"]["id"] == client_id
    assert detail["user"]["email"] == "sam@example.com"
    assert [m["mood_score"] for m in detail["recent_mood"]] == [7]


def test_seat_limit_blocks_invites(client):
    therapist = make_therapist(client)
    for i in range(5):
        assert invite(client, therapist, f"client{i}@example.com").status_code == 201

    res = invite(client, therapist, "client5@example.com")
    assert res.status_code == 403
    assert res.json()["detail"] == (
        "Your starter plan allows a maximum of 5 clients. Please upgrade to add more."
    )
    assert len(client.get("/therapist/clients", headers=therapist).json()) == 5

    res = client.post("/subscription/upgrade", json={"tier": "professional"}, headers=therapist)
    assert res.status_code == 200
    assert res.json()["max_clients"] == 25

    sub = client.get("/subscription", headers=therapist).json()
    assert sub["tier"] == "professional"
    assert sub["status"] == "active"

    # nothing was created by the rejected invite, so the email is still free
    assert invite(client, therapist, "client5@example.com").status_code == 201


def test_deactivating_a_client_frees_a_seat(client):
    therapist = make_therapist(client)
    for i in range(5):
        invite(client, therapist, f"client{i}@example.com")
    first = client.get("/therapist/clients", headers=therapist).json()[0]

    res = client.patch(
        f"/therapist/clients/{first['id']}/modality",
        json={"modality": first["primary_modality"], "is_active": False},
        headers=therapist,
    )
    assert res.status_code == 200
    assert res.json()["is_active"] is False
    assert invite(client, therapist, "client5@example.com").status_code == 201

    res = client.patch(
        f"/therapist/clients/{first['id']}/modality",
        json={"modality": first["primary_modality"], "is_active": True},
        headers=therapist,
    )
    assert res.status_code == 403


def test_invite_existing_email_conflicts(client):
    therapist = make_therapist(client)
    res = invite(client, therapist, "dr.kim@example.com")
    assert res.status_code == 409


def test_session_prep_defaults_to_seven_days(client, fake_openai):
    therapist = make_therapist(client)
    _, client_id = make_client(client, therapist, modality="trauma_informed")

    res = client.post(f"/therapist/clients/{client_id}/session-prep", headers=therapist)
    assert res.status_code == 200
    assert res.json() == {"summary": "1. What felt different this week?"}

    system, user = fake_openai.completions.calls[0]["messages"]
    assert "trauma-informed principles" in system["content"]
    assert "session with Sam" in user["content"]
    assert "Days since last session: 7" in user["content"]
    assert "No mood data recorded" in user["content"]

    summaries = client.get(f"/therapist/clients/{client_id}/summaries", headers=therapist).json()
    assert len(summaries) == 1
    assert summaries[0]["summary_type"] == "session_prep"
    assert summaries[0]["modality"] == "trauma_informed"
    assert summaries[0]["tokens_used"] == 42
    assert summaries[0]["data_window_start"] is not None

    actions = [row["action"] for row in client.get("/audit/logs", headers=therapist).json()]
    assert "GENERATE_SESSION_PREP" in actions


def test_session_prep_uses_client_data(client, fake_openai):
    therapist = make_therapist(client)
    patient, client_id = make_client(client, therapist)
    client.post("/client/mood", json={"mood_score": 3, "notes": "slept badly"}, headers=patient)
    client.post("/client/events", json={"event_type": "anger", "intensity": 7, "description": "argument"}, headers=patient)
    client.post("/therapist/homework", json={
        "client_id": client_id, "title": "Thought record", "description": "daily",
    }, headers=therapist)
    client.post("/therapist/goals", json={"client_id": client_id, "goal_text": "Fewer arguments"}, headers=therapist)

    client.post(f"/therapist/clients/{client_id}/session-prep", headers=therapist)
    prompt = fake_openai.completions.calls[-1]["messages"][1]["content"]
    assert "Days since last session: 0" in prompt
    assert 'Score 3/10 (notes: "slept badly")' in prompt
    assert "anger (intensity 7/10): argument" in prompt
    assert '"Thought record": assigned' in prompt
    assert "Fewer arguments" in prompt


def test_other_therapist_is_denied_before_generation(client, fake_openai):
    owner = make_therapist(client)
    _, client_id = make_client(client, owner)
    intruder = make_therapist(client, email="dr.other@example.com")

    for method, path in [
        ("post", f"/therapist/clients/{client_id}/session-prep"),
        ("get", f"/therapist/clients/{client_id}"),
        ("get", f"/therapist/clients/{client_id}/summaries"),
    ]:
        res = getattr(client, method)(path, headers=intruder)
        assert res.status_code == 403
        assert res.json()["detail"] == "Access denied."

    res = client.post(
        f"/therapist/clients/{client_id}/post-session", json={"session_notes": "n/a"}, headers=intruder,
    )
    assert res.status_code == 403
    res = client.post("/therapist/goals", json={"client_id": client_id, "goal_text": "x"}, headers=intruder)
    assert res.status_code == 403

    assert fake_openai.completions.calls == []
    assert client.get(f"/therapist/clients/{client_id}/summaries", headers=owner).json() == []


def test_foreign_goal_and_homework_are_denied(client):
    owner = make_therapist(client)
    _, client_id = make_client(client, owner)
    intruder = make_therapist(client, email="dr.other@example.com")
    goal = client.post("/therapist/goals", json={"client_id": client_id, "goal_text": "Walk daily"}, headers=owner).json()
    hw = client.post("/therapist/homework", json={
        "client_id": client_id, "title": "Walk", "description": "20 minutes",
    }, headers=owner).json()

    assert client.patch(f"/therapist/goals/{goal['id']}", json={"status": "paused"}, headers=intruder).status_code == 403
    assert client.post(f"/therapist/homework/{hw['id']}/review", json={"review_notes": "x"}, headers=intruder).status_code == 403


def test_post_session_summary(client, fake_openai):
    therapist = make_therapist(client)
    _, client_id = make_client(client, therapist, modality="dbt")
    client.post("/therapist/homework", json={
        "client_id": client_id, "title": "Diary card", "description": "every evening",
    }, headers=therapist)
    client.post("/therapist/goals", json={"client_id": client_id, "goal_text": "Use TIPP when overwhelmed"}, headers=therapist)

    res = client.post(f"/therapist/clients/{client_id}/post-session", json={
        "session_notes": "Worked on distress tolerance", "next_session_date": "Thursday 3pm",
    }, headers=therapist)
    assert res.status_code == 200

    prompt = fake_openai.completions.calls[0]["messages"][1]["content"]
    assert "MODALITY: DBT" in prompt
    assert "Homework assigned: Diary card" in prompt
    assert "Goals worked on: Use TIPP when overwhelmed" in prompt
    assert "Next session: Thursday 3pm" in prompt

    only_post = client.get(
        f"/therapist/clients/{client_id}/summaries", params={"summary_type": "post_session"}, headers=therapist,
    ).json()
    assert len(only_post) == 1
    assert client.get(
        f"/therapist/clients/{client_id}/summaries", params={"summary_type": "session_prep"}, headers=therapist,
    ).json() == []


def test_modality_change_switches_prompt(client, fake_openai):
    therapist = make_therapist(client)
    _, client_id = make_client(client, therapist, modality="cbt")

    res = client.patch(f"/therapist/clients/{client_id}/modality", json={"modality": "emdr"}, headers=therapist)
    assert res.status_code == 200
    assert res.json()["primary_modality"] == "emdr"

    client.post(f"/therapist/clients/{client_id}/session-prep", headers=therapist)
    system, user = fake_openai.completions.calls[0]["messages"]
    assert "emdr principles" in system["content"]
    assert "MODALITY: EMDR" in user["content"]

    res = client.patch(f"/therapist/clients/{client_id}/modality", json={"modality": "psychoanalysis"}, headers=therapist)
    assert res.status_code == 422


def test_goal_status_machine(client):
    therapist = make_therapist(client)
    _, client_id = make_client(client, therapist)
    goal = client.post("/therapist/goals", json={"client_id": client_id, "goal_text": "Walk daily"}, headers=therapist)
    assert goal.status_code == 201
    goal_id = goal.json()["id"]

    res = client.patch(f"/therapist/goals/{goal_id}", json={"status": "achieved"}, headers=therapist)
    assert res.status_code == 200
    assert res.json()["achieved_at"] is not None

    res = client.patch(f"/therapist/goals/{goal_id}", json={"progress_notes": "Kept it up for a month"}, headers=therapist)
    assert res.status_code == 200
    assert res.json()["status"] == "achieved"

    res = client.patch(f"/therapist/goals/{goal_id}", json={"status": "active"}, headers=therapist)
    assert res.status_code == 409


def test_review_does_not_change_homework_status(client):
    therapist = make_therapist(client)
    patient, client_id = make_client(client, therapist)
    hw = client.post("/therapist/homework", json={
        "client_id": client_id, "title": "Thought record", "description": "daily",
    }, headers=therapist).json()
    client.patch(f"/client/homework/{hw['id']}", json={"status": "completed"}, headers=patient)

    res = client.post(f"/therapist/homework/{hw['id']}/review", json={"review_notes": "Great detail"}, headers=therapist)
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "completed"
    assert body["therapist_review_notes"] == "Great detail"
    assert body["reviewed_at"] is not None


def test_failed_audit_write_does_not_fail_request(client, monkeypatch):
    therapist = make_therapist(client)
    _, client_id = make_client(client, therapist)

    async def broken_audit(self, **values):
        raise RuntimeError("audit table unavailable")

    monkeypatch.setattr(Repository, "add_audit_log", broken_audit)

    res = client.post("/therapist/goals", json={"client_id": client_id, "goal_text": "Journal weekly"}, headers=therapist)
    assert res.status_code == 201
    res = client.post(f"/therapist/clients/{client_id}/session-prep", headers=therapist)
    assert res.status_code == 200

    monkeypatch.undo()
    goals = client.get(f"/therapist/clients/{client_id}", headers=therapist).json()["goals"]
    assert [g["goal_text"] for g in goals] == ["Journal weekly"]
    summaries = client.get(f"/therapist/clients/{client_id}/summaries", headers=therapist).json()
    assert len(summaries) == 1
    actions = [row["action"] for row in client.get("/audit/logs", headers=therapist).json()]
    assert "CREATE_GOAL" not in actions


def test_therapist_profile_update(client):
    therapist = make_therapist(client)
    res = client.put("/therapist/profile", json={"bio": "CBT and DBT for adults"}, headers=therapist)
    assert res.status_code == 200
    assert res.json()["bio"] == "CBT and DBT for adults"
    assert res.json()["practice_name"] == "Harbor Counseling"
    assert client.get("/therapist/profile", headers=therapist).json()["bio"] == "CBT and DBT for adults"
