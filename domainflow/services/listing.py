# domainflow/services/listing.py
"""
In-memory filtering and ordering for domain and task lists.

Everything here works on already-loaded objects (models, summaries or any
object exposing the same attributes) and never touches the database. Sorts
rely on Python's stable `sorted`, so ties keep their incoming order.
"""
import unicodedata
from datetime import datetime
from typing import Iterable, Sequence

DOMAIN_SORTS = ("created_at", "name", "progress")
TASK_SORTS = ("created_at", "priority", "title")

PRIORITY_RANK = {"urgent": 4, "high": 3, "medium": 2, "low": 1}

ALL = "all"


def collation_key(value: str | None) -> tuple:
    """
    Accent- and case-insensitive ordering key. Case-only ties put the lowercase
    spelling first, so "a" sorts before "A".
    """
    text = value or ""
    stripped = "".join(
        ch for ch in unicodedata.normalize("NFKD", text) if not unicodedata.combining(ch)
    )
    return (stripped.casefold(), text.swapcase())


def priority_rank(priority: str | None) -> int:
    return PRIORITY_RANK.get((priority or "").lower(), 0)


def _ts(value) -> datetime:
    return value if isinstance(value, datetime) else datetime.min


# -----------------
# Domains
# -----------------

def filter_domains(domains: Sequence, query: str | None) -> list:
    if not query or not query.strip():
        return list(domains)
    q = query.lower()
    return [
        d for d in domains
        if q in (d.name or "").lower()
        or q in (d.url or "").lower()
        or q in (d.description or "").lower()
    ]


def filter_by_status(domains: Iterable, show_closed: bool) -> list:
    wanted = "closed" if show_closed else "active"
    return [d for d in domains if (d.status or "active") == wanted]


def sort_domains(domains: Iterable, sort_by: str) -> list:
    """Pinned domains first, then the rest ordered by `sort_by`."""
    domains = list(domains)
    pinned = [d for d in domains if d.pinned]
    unpinned = [d for d in domains if not d.pinned]

    if sort_by == "name":
        pinned = sorted(pinned, key=lambda d: collation_key(d.name))
    else:
        pinned = sorted(pinned, key=lambda d: d.pinned_order or 0, reverse=True)

    if sort_by == "created_at":
        unpinned = sorted(unpinned, key=lambda d: _ts(d.created_at), reverse=True)
    elif sort_by == "name":
        unpinned = sorted(unpinned, key=lambda d: collation_key(d.name))
    elif sort_by == "progress":
        unpinned = sorted(unpinned, key=lambda d: d.progress or 0, reverse=True)

    return pinned + unpinned


# -----------------
# Tasks
# -----------------

def _matches_label(values, wanted: str | None) -> bool:
    if not wanted or wanted == ALL:
        return True
    needle = wanted.lower()
    return any(needle in (v or "").lower() for v in (values or []))


def filter_tasks(tasks: Iterable, tag: str | None = ALL, dependency: str | None = ALL) -> list:
    return [
        t for t in tasks
        if _matches_label(t.tags, tag) and _matches_label(t.dependencies, dependency)
    ]


def sort_tasks(tasks: Iterable, sort_by: str) -> list:
    tasks = list(tasks)
    if sort_by == "created_at":
        return sorted(tasks, key=lambda t: _ts(t.created_at))
    if sort_by == "priority":
        return sorted(tasks, key=lambda t: priority_rank(t.priority), reverse=True)
    if sort_by == "title":
        return sorted(tasks, key=lambda t: collation_key(t.title))
    return tasks


def collect_labels(tasks: Iterable, attr: str) -> list[str]:
    """Distinct values of `tags` or `dependencies` across tasks, for the filter menus."""
    seen = {}
    for t in tasks:
        for v in getattr(t, attr, None) or []:
            if v and v.lower() not in seen:
                seen[v.lower()] = v
    return sorted(seen.values(), key=collation_key)
