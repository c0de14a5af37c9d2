import pytest
from fastapi import HTTPException

from therabridge.models import User
from therabridge.services.permissions import ANY_ROLE, authorize, require_role

ROLES = ["user", "therapist", "client", "admin"]


@pytest.mark.parametrize("required", ["therapist", "client", "admin", ANY_ROLE])
def test_admin_passes_every_guard(required):
    assert authorize(required, "admin")


@pytest.mark.parametrize("required", ["therapist", "client"])
def test_other_roles_are_kept_out(required):
    for actual in ROLES:
        if actual in (required, "admin"):
            assert authorize(required, actual)
        else:
            assert not authorize(required, actual)


def test_any_role_lets_everyone_in():
    assert all(authorize(ANY_ROLE, r) for r in ROLES)


async def test_guard_message_names_the_role():
    guard = require_role("therapist")
    with pytest.raises(HTTPException) as exc:
        await guard(current_user=User(id=1, role="client"))
    assert exc.value.status_code == 403
    assert exc.value.detail == "Therapist access required."

    user = User(id=2, role="therapist")
    assert await guard(current_user=user) is user
