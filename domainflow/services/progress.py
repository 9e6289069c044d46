# domainflow/services/progress.py
from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class Progress:
    total_tasks: int
    completed_tasks: int
    progress: int  # percent, 0..100


def percent(completed: int, total: int) -> int:
    """Whole percentage, rounding halves up. 0 when there is nothing to do."""
    if total <= 0:
        return 0
    completed = max(0, min(completed, total))
    # integer form of floor(100 * completed / total + 0.5)
    return (200 * completed + total) // (2 * total)


def compute_progress(tasks: Iterable) -> Progress:
    """Aggregate a domain's tasks using each task's stored `completed` flag."""
    total = 0
    done = 0
    for t in tasks:
        total += 1
        if getattr(t, "completed", False):
            done += 1
    return Progress(total_tasks=total, completed_tasks=done, progress=percent(done, total))


def effective_completion(task, subtasks=None) -> bool:
    """
    Completion as suggested by the subtasks: a task without subtasks reports its
    own flag, otherwise it is done when every subtask is done.

    Display hint only. The stored flag stays authoritative and is never
    rewritten from this value.
    """
    subs = list(subtasks if subtasks is not None else (getattr(task, "subtasks", None) or []))
    if not subs:
        return bool(getattr(task, "completed", False))
    return all(bool(s.completed) for s in subs)


def progress_bucket(progress: int) -> str:
    if progress >= 100:
        return "complete"
    if progress > 0:
        return "in_progress"
    return "not_started"


def progress_color(progress: int) -> str:
    if progress == 100:
        return "text-success"
    if progress > 50:
        return "text-primary"
    if progress > 0:
        return "text-warning"
    return "text-muted"


def domain_stats(summaries: Iterable) -> dict:
    """Counters for the dashboard cards; only active domains are counted."""
    stats = {"active": 0, "complete": 0, "in_progress": 0, "not_started": 0}
    for d in summaries:
        if getattr(d, "status", "active") != "active":
            continue
        stats["active"] += 1
        stats[progress_bucket(d.progress)] += 1
    return stats
