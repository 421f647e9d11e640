"""Round-robin assignment of tasks to focus sessions."""

from collections.abc import Sequence

from .planner import Session


def distribute_tasks_to_sessions(
    sessions: Sequence[Session], task_ids: Sequence[str]
) -> list[Session]:
    """Assign ``task_ids`` cyclically to the focus sessions of a plan.

    Returns new sessions; the input is left untouched. Break sessions always
    carry no task and do not consume a task id.
    """
    if not task_ids:
        return [session.with_task(None) for session in sessions]

    distributed = []
    task_cursor = 0
    for session in sessions:
        if session.is_focus:
            distributed.append(session.with_task(task_ids[task_cursor % len(task_ids)]))
            task_cursor += 1
        else:
            distributed.append(session.with_task(None))
    return distributed
