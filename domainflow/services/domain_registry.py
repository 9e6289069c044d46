# domainflow/services/domain_registry.py
"""
Domain lifecycle: creation with template materialization, close/reopen,
pin/unpin, deletion, and the per-domain progress summaries for the list view.
"""
import copy
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import func, case
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models.domain import Domain
from ..models.task import DomainTask, Subtask
from ..models.template import TaskTemplate
from .progress import percent

log = logging.getLogger(__name__)


@dataclass
class DomainSummary:
    id: int
    name: str
    url: str
    description: Optional[str]
    status: str
    pinned: bool
    pinned_at: Optional[datetime]
    pinned_order: Optional[int]
    created_at: datetime
    total_tasks: int = 0
    completed_tasks: int = 0
    progress: int = 0


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _validate(name: Optional[str], url: Optional[str]) -> tuple[str, str]:
    name, url = _clean(name), _clean(url)
    if not name:
        raise ValueError("Il nome del dominio è obbligatorio.")
    if not url:
        raise ValueError("L'URL del dominio è obbligatorio.")
    return name, url


def task_from_template(template: TaskTemplate) -> DomainTask:
    """Copy a template into a new, independent domain task (subtasks included)."""
    task = DomainTask(
        template_id=template.id,
        title=template.title,
        description=template.description,
        category=template.category,
        priority=template.priority,
        estimated_hours=template.estimated_hours,
        tags=list(template.tags or []),
        dependencies=list(template.dependencies or []),
        reference_links=list(template.reference_links or []),
        checklist_items=copy.deepcopy(template.checklist_items or []),
        completed=False,
        completed_at=None,
    )
    for ts in sorted(template.subtasks, key=lambda s: s.order_index):
        task.subtasks.append(Subtask(title=ts.title, description=ts.description, completed=False))
    return task


def create_domain(name: str, url: str, description: Optional[str] = None) -> Domain:
    """
    Insert a domain and one task per existing template in a single transaction.
    Any failure rolls back the whole unit, so a domain never exists half-populated.
    """
    name, url = _validate(name, url)
    domain = Domain(
        name=name,
        url=url,
        description=_clean(description) or None,
        status="active",
        pinned=False,
    )
    try:
        templates = (
            TaskTemplate.query
            .options(selectinload(TaskTemplate.subtasks))
            .order_by(TaskTemplate.created_at.asc(), TaskTemplate.id.asc())
            .all()
        )
        for tpl in templates:
            domain.tasks.append(task_from_template(tpl))
        db.session.add(domain)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    log.info("Domain %s (%s) created with %d task(s)", domain.id, domain.name, len(domain.tasks))
    return domain


def get_domain(domain_id: int) -> Domain:
    return Domain.query.get_or_404(domain_id)


def update_domain(domain_id: int, name: str, url: str, description: Optional[str] = None) -> Domain:
    domain = get_domain(domain_id)
    domain.name, domain.url = _validate(name, url)
    domain.description = _clean(description) or None
    db.session.commit()
    log.info("Domain %s updated", domain.id)
    return domain


def _set_status(domain_id: int, status: str) -> Domain:
    domain = get_domain(domain_id)
    domain.status = status
    db.session.commit()
    log.info("Domain %s -> %s", domain.id, status)
    return domain


def close_domain(domain_id: int) -> Domain:
    return _set_status(domain_id, "closed")


def reopen_domain(domain_id: int) -> Domain:
    return _set_status(domain_id, "active")


def delete_domain(domain_id: int) -> None:
    """Irreversible; tasks, subtasks and comments are removed with the domain."""
    domain = get_domain(domain_id)
    db.session.delete(domain)
    db.session.commit()
    log.info("Domain %s deleted", domain_id)


def next_pinned_order() -> int:
    current = db.session.query(func.max(Domain.pinned_order)).filter(Domain.pinned.is_(True)).scalar()
    return (current or 0) + 1


def pin_domain(domain_id: int) -> Domain:
    domain = get_domain(domain_id)
    domain.pinned = True
    domain.pinned_at = datetime.utcnow()
    domain.pinned_order = next_pinned_order()
    db.session.commit()
    log.info("Domain %s pinned (order %s)", domain.id, domain.pinned_order)
    return domain


def unpin_domain(domain_id: int) -> Domain:
    domain = get_domain(domain_id)
    domain.pinned = False
    domain.pinned_at = None
    domain.pinned_order = None
    db.session.commit()
    log.info("Domain %s unpinned", domain.id)
    return domain


def fetch_domain_summaries() -> list[DomainSummary]:
    """Every domain with its task counts; domains without tasks report 0%."""
    completed_sum = func.coalesce(func.sum(case((DomainTask.completed.is_(True), 1), else_=0)), 0)
    rows = (
        db.session.query(Domain, func.count(DomainTask.id), completed_sum)
        .outerjoin(DomainTask, DomainTask.domain_id == Domain.id)
        .group_by(Domain.id)
        .all()
    )
    out = []
    for d, total, done in rows:
        total, done = int(total or 0), int(done or 0)
        out.append(DomainSummary(
            id=d.id,
            name=d.name,
            url=d.url,
            description=d.description,
            status=d.status,
            pinned=bool(d.pinned),
            pinned_at=d.pinned_at,
            pinned_order=d.pinned_order,
            created_at=d.created_at,
            total_tasks=total,
            completed_tasks=done,
            progress=percent(done, total),
        ))
    return out
