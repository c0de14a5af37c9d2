from __future__ import annotations

# Allowed status moves. Staying in the same status is always allowed (note edits).
GOAL_TRANSITIONS: dict[str, frozenset[str]] = {
    "active": frozenset({"achieved", "paused", "archived"}),
    "paused": frozenset({"active", "achieved", "archived"}),
    "achieved": frozenset({"archived"}),
    "archived": frozenset(),
}

HOMEWORK_TRANSITIONS: dict[str, frozenset[str]] = {
    "assigned": frozenset({"in_progress", "completed", "skipped"}),
    "in_progress": frozenset({"completed", "skipped"}),
    "completed": frozenset(),
    "skipped": frozenset(),
}


class InvalidTransition(ValueError):
    def __init__(self, kind: str, current: str, target: str):
        super().__init__(f"Cannot move {kind} from '{current}' to '{target}'.")
        self.kind = kind
        self.current = current
        self.target = target


def _check(table: dict[str, frozenset[str]], kind: str, current: str, target: str) -> None:
    if current == target:
        return
    if target not in table.get(current, frozenset()):
        raise InvalidTransition(kind, current, target)


def check_goal_transition(current: str, target: str) -> None:
    _check(GOAL_TRANSITIONS, "goal", current, target)


def check_homework_transition(current: str, target: str) -> None:
    _check(HOMEWORK_TRANSITIONS, "homework", current, target)
