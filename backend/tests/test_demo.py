from sqlalchemy import update

from conftest import login, make_therapist, register, run_db
from therabridge.models import User


def _make_admin(client, app, email="ops@example.com"):
    register(client, email)

    async def promote(session):
        await session.execute(update(User).where(User.email == email).values(role="admin"))
    run_db(client, app, promote)
    return login(client, email)


def test_anyone_can_request_a_demo(client, app):
    res = client.post("/demo", json={
        "name": "Dr. Jane Smith", "email": "jane@example.com", "practice_name": "Smith Therapy",
        "practice_size": "solo", "message": "Interested in the platform.",
    })
    assert res.status_code == 201
    assert res.json() == {"success": True}

    res = client.post("/demo", json={"name": "Test", "email": "not-an-email"})
    assert res.status_code == 422
    res = client.post("/demo", json={"name": "", "email": "test@example.com"})
    assert res.status_code == 422

    admin = _make_admin(client, app)
    requests = client.get("/demo", headers=admin).json()
    assert len(requests) == 1
    assert requests[0]["email"] == "jane@example.com"
    assert requests[0]["practice_size"] == "solo"
    assert requests[0]["status"] == "pending"


def test_demo_list_is_admin_only(client):
    client.post("/demo", json={"name": "Lee", "email": "lee@example.com"})

    res = client.get("/demo")
    assert res.status_code == 401

    therapist = make_therapist(client)
    res = client.get("/demo", headers=therapist)
    assert res.status_code == 403
    assert res.json()["detail"] == "Admin access required."
