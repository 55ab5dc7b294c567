from tasktracker.domain.enums import TaskStatus
from tasktracker.domain.errors import InvalidStatusError

ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.PENDING}),
    TaskStatus.COMPLETED: frozenset({TaskStatus.PENDING, TaskStatus.IN_PROGRESS}),
}


def parse_status(value) -> TaskStatus:
    """Turns a raw value into a `TaskStatus`.

    :raises InvalidStatusError: when the value is not one of the known statuses.
    """
    if isinstance(value, TaskStatus):
        return value
    try:
        return TaskStatus(value)
    except ValueError:
        raise InvalidStatusError(f"invalid status: {value!r}", requested=value)


def validate_transition(current, requested) -> TaskStatus:
    """
    Checks that a task may move from `current` to `requested`.

    - Both values must be known statuses, otherwise the transition is rejected
      even when they are equal.
    - Same state to same state is always allowed.
    - Anything else must be listed in `ALLOWED_TRANSITIONS`.

    :return: The requested status as a `TaskStatus`.
    :raises InvalidStatusError: For unknown values or a forbidden transition.
    """
    try:
        source = parse_status(current)
    except InvalidStatusError:
        raise InvalidStatusError(f"invalid current status: {current!r}", current, requested)
    target = parse_status(requested)

    if source == target:
        return target
    if target not in ALLOWED_TRANSITIONS.get(source, frozenset()):
        raise InvalidStatusError(
            f"invalid status transition: {source} -> {target}", source, target
        )
    return target
