# domainflow/services/template_store.py
"""
Reusable task templates and their ordered subtasks.

Editing or deleting a template never reaches tasks already copied into
domains; deleted templates only lose the provenance link on those tasks.
"""
import logging
from typing import Iterable, Optional

from ..extensions import db
from ..models.task import DomainTask
from ..models.template import PRIORITIES, TaskTemplate, TemplateSubtask
from . import checklist

log = logging.getLogger(__name__)

TEMPLATE_FIELDS = (
    "title", "description", "category", "priority", "estimated_hours",
    "tags", "dependencies", "reference_links", "checklist_items",
)


# -----------------
# Normalization
# -----------------

def split_labels(raw) -> list[str]:
    """Comma-separated text (or a list) -> stripped, de-duplicated labels, first spelling wins."""
    if raw is None:
        return []
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    out, seen = [], set()
    for p in parts:
        p = (p or "").strip()
        if p and p.lower() not in seen:
            seen.add(p.lower())
            out.append(p)
    return out


def split_links(raw) -> list[str]:
    if raw is None:
        return []
    parts = raw.splitlines() if isinstance(raw, str) else list(raw)
    return [p.strip() for p in parts if p and p.strip()]


def parse_hours(raw) -> Optional[float]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    try:
        hours = float(raw)
    except (TypeError, ValueError):
        raise ValueError("Le ore stimate devono essere un numero.")
    if hours < 0:
        raise ValueError("Le ore stimate non possono essere negative.")
    return hours


def normalize_fields(fields: dict, partial: bool = False) -> dict:
    """Validate and coerce template (or task) fields. With `partial`, only given keys are checked."""
    out = {}
    if not partial or "title" in fields:
        title = (fields.get("title") or "").strip()
        if not title:
            raise ValueError("Il titolo è obbligatorio.")
        out["title"] = title
    if not partial or "category" in fields:
        category = (fields.get("category") or "").strip()
        if not category:
            raise ValueError("La categoria è obbligatoria.")
        out["category"] = category
    if not partial or "priority" in fields:
        priority = (fields.get("priority") or "medium").strip().lower()
        if priority not in PRIORITIES:
            raise ValueError(f"Priorità non valida: {priority}")
        out["priority"] = priority
    if "description" in fields or not partial:
        out["description"] = (fields.get("description") or "").strip() or None
    if "estimated_hours" in fields or not partial:
        out["estimated_hours"] = parse_hours(fields.get("estimated_hours"))
    if "tags" in fields or not partial:
        out["tags"] = split_labels(fields.get("tags"))
    if "dependencies" in fields or not partial:
        out["dependencies"] = split_labels(fields.get("dependencies"))
    if "reference_links" in fields or not partial:
        out["reference_links"] = split_links(fields.get("reference_links"))
    if "checklist_items" in fields or not partial:
        out["checklist_items"] = checklist.normalize(fields.get("checklist_items"))
    return out


# -----------------
# Templates
# -----------------

def list_templates() -> list[TaskTemplate]:
    return TaskTemplate.query.order_by(TaskTemplate.created_at.desc(), TaskTemplate.id.desc()).all()


def get_template(template_id: int) -> TaskTemplate:
    return TaskTemplate.query.get_or_404(template_id)


def create_template(**fields) -> TaskTemplate:
    tpl = TaskTemplate(**normalize_fields(fields))
    db.session.add(tpl)
    db.session.commit()
    log.info("Template %s (%s) created", tpl.id, tpl.title)
    return tpl


def update_template(template_id: int, **fields) -> TaskTemplate:
    tpl = get_template(template_id)
    for key, value in normalize_fields(fields, partial=True).items():
        setattr(tpl, key, value)
    db.session.commit()
    log.info("Template %s updated", tpl.id)
    return tpl


def delete_template(template_id: int) -> None:
    tpl = get_template(template_id)
    # Domain tasks keep their copied data; only the provenance link goes
    DomainTask.query.filter_by(template_id=tpl.id).update(
        {DomainTask.template_id: None}, synchronize_session=False
    )
    db.session.delete(tpl)
    db.session.commit()
    log.info("Template %s deleted", template_id)


def import_templates(rows: Iterable[dict]) -> int:
    """Bulk insert from plain dicts (used by the seed script). All or nothing."""
    count = 0
    try:
        for row in rows:
            subtasks = row.get("subtasks") or []
            fields = {k: v for k, v in row.items() if k in TEMPLATE_FIELDS}
            tpl = TaskTemplate(**normalize_fields(fields))
            for st in subtasks:
                title = (st.get("title") or "").strip()
                if title:
                    tpl.subtasks.append(TemplateSubtask(
                        title=title,
                        description=(st.get("description") or "").strip() or None,
                        order_index=len(tpl.subtasks),
                    ))
            db.session.add(tpl)
            count += 1
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    log.info("Imported %d template(s)", count)
    return count


# -----------------
# Template subtasks
# -----------------

def list_template_subtasks(template_id: int) -> list[TemplateSubtask]:
    return (
        TemplateSubtask.query
        .filter_by(template_id=template_id)
        .order_by(TemplateSubtask.order_index.asc(), TemplateSubtask.id.asc())
        .all()
    )


def add_template_subtask(template_id: int, title: str, description: Optional[str] = None) -> TemplateSubtask:
    tpl = get_template(template_id)
    title = (title or "").strip()
    if not title:
        raise ValueError("Il titolo del sottotask è obbligatorio.")
    st = TemplateSubtask(
        template_id=tpl.id,
        title=title,
        description=(description or "").strip() or None,
        order_index=TemplateSubtask.query.filter_by(template_id=tpl.id).count(),
    )
    db.session.add(st)
    db.session.commit()
    log.info("Template %s: subtask %s added at %s", tpl.id, st.id, st.order_index)
    return st


def update_template_subtask(subtask_id: int, title: str, description: Optional[str] = None) -> TemplateSubtask:
    st = TemplateSubtask.query.get_or_404(subtask_id)
    title = (title or "").strip()
    if not title:
        raise ValueError("Il titolo del sottotask è obbligatorio.")
    st.title = title
    st.description = (description or "").strip() or None
    db.session.commit()
    return st


def renumber_subtasks(template_id: int) -> None:
    """Close gaps so order_index runs 0..n-1 in the current order."""
    for idx, st in enumerate(list_template_subtasks(template_id)):
        if st.order_index != idx:
            st.order_index = idx


def delete_template_subtask(subtask_id: int) -> int:
    """Delete and renumber the siblings. Returns the parent template id."""
    st = TemplateSubtask.query.get_or_404(subtask_id)
    template_id = st.template_id
    db.session.delete(st)
    db.session.flush()
    renumber_subtasks(template_id)
    db.session.commit()
    log.info("Template %s: subtask %s deleted", template_id, subtask_id)
    return template_id
