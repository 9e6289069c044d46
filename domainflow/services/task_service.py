# domainflow/services/task_service.py
import logging
from typing import Optional

from sqlalchemy import func, select

from ..extensions import db
from ..models.comment import CommentTarget, SubtaskTarget, TaskComment, TaskTarget
from ..models.domain import Domain
from ..models.task import DomainTask, Subtask
from . import checklist
from .template_store import normalize_fields

log = logging.getLogger(__name__)


def get_task(task_id: int) -> DomainTask:
    return DomainTask.query.get_or_404(task_id)


def list_tasks(domain_id: int) -> list[DomainTask]:
    return (
        DomainTask.query
        .filter_by(domain_id=domain_id)
        .order_by(DomainTask.created_at.desc(), DomainTask.id.desc())
        .all()
    )


def add_task(domain_id: int, **fields) -> DomainTask:
    """A task added by hand to one domain; it has no template behind it."""
    domain = Domain.query.get_or_404(domain_id)
    task = DomainTask(domain_id=domain.id, template_id=None, completed=False, **normalize_fields(fields))
    db.session.add(task)
    db.session.commit()
    log.info("Domain %s: manual task %s added", domain.id, task.id)
    return task


def set_task_completed(task_id: int, completed: bool) -> DomainTask:
    task = get_task(task_id)
    task.mark(completed)
    db.session.commit()
    log.info("Task %s completed=%s", task.id, task.completed)
    return task


def update_checklist(task_id: int, items) -> DomainTask:
    task = get_task(task_id)
    task.checklist_items = checklist.normalize(items)
    db.session.commit()
    return task


def add_checklist_item(task_id: int, text: str) -> DomainTask:
    task = get_task(task_id)
    if not (text or "").strip():
        raise ValueError("Il testo dell'elemento è obbligatorio.")
    task.checklist_items = checklist.add_item(task.checklist_items, text)
    db.session.commit()
    return task


def toggle_checklist_item(task_id: int, item_id: str, completed: bool) -> DomainTask:
    task = get_task(task_id)
    task.checklist_items = checklist.set_completed(task.checklist_items, item_id, completed)
    db.session.commit()
    return task


def remove_checklist_item(task_id: int, item_id: str) -> DomainTask:
    task = get_task(task_id)
    task.checklist_items = checklist.remove_item(task.checklist_items, item_id)
    db.session.commit()
    return task


# -----------------
# Subtasks
# -----------------

def list_subtasks(task_id: int) -> list[Subtask]:
    return (
        Subtask.query
        .filter_by(parent_task_id=task_id)
        .order_by(Subtask.created_at.asc(), Subtask.id.asc())
        .all()
    )


def create_subtask(task_id: int, title: str, description: Optional[str] = None) -> Subtask:
    task = get_task(task_id)
    title = (title or "").strip()
    if not title:
        raise ValueError("Il titolo del sottotask è obbligatorio.")
    sub = Subtask(parent_task_id=task.id, title=title, description=(description or "").strip() or None)
    db.session.add(sub)
    db.session.commit()
    log.info("Task %s: subtask %s created", task.id, sub.id)
    return sub


def set_subtask_completed(subtask_id: int, completed: bool) -> Subtask:
    sub = Subtask.query.get_or_404(subtask_id)
    sub.mark(completed)
    db.session.commit()
    return sub


# -----------------
# Comments
# -----------------

def _target_filter(target: CommentTarget):
    if isinstance(target, TaskTarget):
        return (TaskComment.task_id == target.task_id, TaskComment.subtask_id.is_(None))
    if isinstance(target, SubtaskTarget):
        return (TaskComment.subtask_id == target.subtask_id, TaskComment.task_id.is_(None))
    raise TypeError(f"Unsupported comment target: {target!r}")


def list_comments(target: CommentTarget) -> list[TaskComment]:
    return (
        TaskComment.query
        .filter(*_target_filter(target))
        .order_by(TaskComment.created_at.asc(), TaskComment.id.asc())
        .all()
    )


def add_comment(target: CommentTarget, content: str) -> TaskComment:
    content = (content or "").strip()
    if not content:
        raise ValueError("Il commento non può essere vuoto.")
    if isinstance(target, TaskTarget):
        get_task(target.task_id)
    else:
        Subtask.query.get_or_404(target.subtask_id)
    comment = TaskComment.for_target(target, content)
    db.session.add(comment)
    db.session.commit()
    return comment


# -----------------
# Change detection
# -----------------

def tasks_fingerprint(domain_id: int) -> str:
    """
    Token that changes whenever a task, subtask or comment of the domain is
    inserted, updated or deleted. Pages poll it and refetch on change.
    """
    task_ids = select(DomainTask.id).where(DomainTask.domain_id == domain_id)
    sub_ids = select(Subtask.id).where(Subtask.parent_task_id.in_(task_ids))

    n_tasks, last_task = db.session.query(
        func.count(DomainTask.id), func.max(DomainTask.updated_at)
    ).filter(DomainTask.domain_id == domain_id).one()
    n_subs, last_sub = db.session.query(
        func.count(Subtask.id), func.max(Subtask.updated_at)
    ).filter(Subtask.parent_task_id.in_(task_ids)).one()
    n_comments, last_comment = db.session.query(
        func.count(TaskComment.id), func.max(TaskComment.updated_at)
    ).filter(
        TaskComment.task_id.in_(task_ids) | TaskComment.subtask_id.in_(sub_ids)
    ).one()

    stamps = [s for s in (last_task, last_sub, last_comment) if s is not None]
    latest = max(stamps).isoformat() if stamps else "-"
    return f"{n_tasks}.{n_subs}.{n_comments}:{latest}"
