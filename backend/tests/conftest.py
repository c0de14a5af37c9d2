from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from therabridge.main import create_app
from therabridge.services.llm_client import LLMClient


class FakeCompletions:
    def __init__(self):
        self.calls = []
        self.content = "1. What felt different this week?"
        self.total_tokens = 42
        self.error = None

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))],
            usage=SimpleNamespace(total_tokens=self.total_tokens),
        )


class FakeOpenAI:
    """Stands in for openai.OpenAI: only chat.completions.create is used."""

    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def app(fake_openai):
    return create_app("sqlite+aiosqlite://", llm=LLMClient(client=fake_openai), create_tables=True)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def run_db(client, app, fn):
    """Run `await fn(session)` on the app's database from sync test code, then commit."""
    async def run():
        async with app.state.sessionmaker() as session:
            result = await fn(session)
            await session.commit()
            return result
    return client.portal.call(run)


# --- API helpers ---

def register(client, email, role="user", name=None, password="password123", invite_token=None):
    res = client.post("/auth/register", json={
        "email": email, "password": password, "name": name or email.split("@")[0], "role": role,
        "invite_token": invite_token,
    })
    assert res.status_code == 201, res.text
    return res.json()["user_id"]


def login(client, email, password="password123"):
    res = client.post("/auth/login", data={"username": email, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


def make_therapist(client, email="dr.kim@example.com", **profile):
    register(client, email)
    headers = login(client, email)
    res = client.post("/onboarding/therapist", json={"practice_name": "Harbor Counseling", **profile}, headers=headers)
    assert res.status_code == 200, res.text
    return headers


def invite(client, therapist_headers, email="sam@example.com", modality="cbt"):
    res = client.post(
        "/therapist/clients/invite",
        json={"client_email": email, "primary_modality": modality},
        headers=therapist_headers,
    )
    return res


def make_client(client, therapist_headers, email="sam@example.com", modality="cbt"):
    """Invite, register with the invited email and token, log in. Returns (headers, client_profile_id)."""
    res = invite(client, therapist_headers, email, modality)
    assert res.status_code == 201, res.text
    token = res.json()["invite_token"]

    register(client, email, role="client", name="Sam", invite_token=token)
    headers = login(client, email)

    profile = client.get("/client/profile", headers=headers).json()
    return headers, profile["id"]
