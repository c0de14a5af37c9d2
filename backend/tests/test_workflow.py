import pytest

from therabridge.services.workflow import (
    InvalidTransition, check_goal_transition, check_homework_transition,
)


@pytest.mark.parametrize("current,target", [
    ("active", "achieved"), ("active", "paused"), ("active", "archived"),
    ("paused", "active"), ("paused", "achieved"), ("achieved", "archived"),
    ("active", "active"),
])
def test_legal_goal_moves(current, target):
    check_goal_transition(current, target)


@pytest.mark.parametrize("current,target", [
    ("archived", "active"), ("achieved", "active"), ("achieved", "paused"), ("archived", "achieved"),
])
def test_illegal_goal_moves(current, target):
    with pytest.raises(InvalidTransition):
        check_goal_transition(current, target)


@pytest.mark.parametrize("current,target", [
    ("assigned", "in_progress"), ("assigned", "completed"), ("assigned", "skipped"),
    ("in_progress", "completed"), ("in_progress", "skipped"), ("completed", "completed"),
])
def test_legal_homework_moves(current, target):
    check_homework_transition(current, target)


@pytest.mark.parametrize("current,target", [
    ("completed", "in_progress"), ("skipped", "completed"), ("in_progress", "assigned"),
])
def test_illegal_homework_moves(current, target):
    with pytest.raises(InvalidTransition) as exc:
        check_homework_transition(current, target)
    assert f"from '{current}' to '{target}'" in str(exc.value)
