# domainflow/services/checklist.py
# Checklist items are plain dicts {id, text, completed} kept in a JSON column.
# Every helper returns a new list so the ORM sees a fresh value on assignment.
import uuid


def new_item_id() -> str:
    return uuid.uuid4().hex[:12]


def normalize(raw) -> list[dict]:
    """Accept a list of items or newline-separated text; drop blank entries."""
    if not raw:
        return []
    if isinstance(raw, str):
        raw = [{"text": line} for line in raw.splitlines()]
    items = []
    for entry in raw:
        if isinstance(entry, str):
            entry = {"text": entry}
        if not isinstance(entry, dict):
            continue
        text = str(entry.get("text") or "").strip()
        if not text:
            continue
        item_id = entry.get("id")
        items.append({
            "id": str(item_id) if item_id else new_item_id(),
            "text": text,
            "completed": bool(entry.get("completed", False)),
        })
    return items


def add_item(items: list[dict], text: str) -> list[dict]:
    text = (text or "").strip()
    if not text:
        return list(items or [])
    return [*(items or []), {"id": new_item_id(), "text": text, "completed": False}]


def set_completed(items: list[dict], item_id: str, completed: bool) -> list[dict]:
    return [
        {**it, "completed": bool(completed)} if it.get("id") == item_id else dict(it)
        for it in (items or [])
    ]


def remove_item(items: list[dict], item_id: str) -> list[dict]:
    return [dict(it) for it in (items or []) if it.get("id") != item_id]


def as_text(items: list[dict]) -> str:
    return "\n".join(it.get("text", "") for it in (items or []))
