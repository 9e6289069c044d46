# domainflow/services/preferences.py
"""
Per-browser view preferences (list sort, search, closed toggle, task filters).

The blob is a single JSON object under one key. Reads never fail: a missing
or unreadable blob yields the defaults, and each field that is absent or has
the wrong type falls back to its own default, so older blobs keep working
after new fields are added.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, MutableMapping

log = logging.getLogger(__name__)

PREFERENCES_KEY = "domain-task-flow-preferences"
SCHEMA_VERSION = 1


@dataclass(frozen=True)
class DomainFilters:
    sort_by: str = "created_at"
    filter_tag: str = "all"
    filter_dependency: str = "all"

    @classmethod
    def from_dict(cls, raw: Any) -> "DomainFilters":
        raw = raw if isinstance(raw, dict) else {}
        return cls(
            sort_by=_str(raw.get("sortBy"), cls.sort_by),
            filter_tag=_str(raw.get("filterTag"), cls.filter_tag),
            filter_dependency=_str(raw.get("filterDependency"), cls.filter_dependency),
        )

    def as_dict(self) -> dict:
        return {
            "sortBy": self.sort_by,
            "filterTag": self.filter_tag,
            "filterDependency": self.filter_dependency,
        }


@dataclass(frozen=True)
class Preferences:
    sort_by: str = "created_at"
    search_query: str = ""
    show_closed_domains: bool = False
    domain_filters: DomainFilters = field(default_factory=DomainFilters)
    version: int = SCHEMA_VERSION

    @classmethod
    def from_dict(cls, raw: Any) -> "Preferences":
        raw = raw if isinstance(raw, dict) else {}
        show_closed = raw.get("showClosedDomains")
        return cls(
            sort_by=_str(raw.get("sortBy"), cls.sort_by),
            search_query=_str(raw.get("searchQuery"), cls.search_query),
            show_closed_domains=show_closed if isinstance(show_closed, bool) else cls.show_closed_domains,
            domain_filters=DomainFilters.from_dict(raw.get("domainFilters")),
        )

    def as_dict(self) -> dict:
        """Public shape of the preferences, without the schema version."""
        return {
            "sortBy": self.sort_by,
            "searchQuery": self.search_query,
            "showClosedDomains": self.show_closed_domains,
            "domainFilters": self.domain_filters.as_dict(),
        }

    def merge(self, partial: dict) -> "Preferences":
        """Shallow merge: a `domainFilters` entry replaces the whole sub-object."""
        merged = {**self.as_dict(), **(partial or {})}
        return Preferences.from_dict(merged)

    def dumps(self) -> str:
        return json.dumps({**self.as_dict(), "version": self.version}, separators=(",", ":"))


def _str(value: Any, default: str) -> str:
    return value if isinstance(value, str) else default


def parse_preferences(raw: str | None) -> Preferences:
    if not raw:
        return Preferences()
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        log.warning("Discarding unreadable preferences blob: %s", e)
        return Preferences()
    return Preferences.from_dict(data)


class PreferenceStore:
    """Read-through, shallow-merge-on-write store over a string mapping."""

    def __init__(self, storage: MutableMapping[str, str], key: str = PREFERENCES_KEY):
        self.storage = storage
        self.key = key
        self.dirty = False

    def load(self) -> Preferences:
        return parse_preferences(self.storage.get(self.key))

    def save(self, partial: dict) -> Preferences:
        updated = self.load().merge(partial)
        blob = updated.dumps()
        if self.storage.get(self.key) != blob:
            self.storage[self.key] = blob
            self.dirty = True
        return updated

    def save_domain_filters(self, sort_by: str, filter_tag: str, filter_dependency: str) -> Preferences:
        filters = DomainFilters(sort_by=sort_by, filter_tag=filter_tag, filter_dependency=filter_dependency)
        return self.save({"domainFilters": filters.as_dict()})

    def get_domain_filters(self) -> DomainFilters:
        return self.load().domain_filters
