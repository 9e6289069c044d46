"""
Tests for the preferences blob: defaults, tolerant parsing and merging.
"""
import json

from domainflow.services.preferences import (
    PREFERENCES_KEY,
    SCHEMA_VERSION,
    DomainFilters,
    PreferenceStore,
    Preferences,
    parse_preferences,
)


def test_empty_storage_yields_defaults():
    prefs = PreferenceStore({}).load()
    assert prefs.as_dict() == {
        "sortBy": "created_at",
        "searchQuery": "",
        "showClosedDomains": False,
        "domainFilters": {"sortBy": "created_at", "filterTag": "all", "filterDependency": "all"},
    }


def test_save_partial_keeps_other_fields():
    store = PreferenceStore({})
    store.save({"sortBy": "name"})
    prefs = store.save({"searchQuery": "shop"})
    assert prefs.sort_by == "name"
    assert prefs.search_query == "shop"
    assert store.load() == prefs
    assert store.dirty is True


def test_saving_same_values_is_not_a_change():
    store = PreferenceStore({})
    store.save({"sortBy": "name"})
    again = PreferenceStore(dict(store.storage))
    again.save({"sortBy": "name"})
    assert again.dirty is False


def test_blob_records_schema_version():
    storage = {}
    PreferenceStore(storage).save({"showClosedDomains": True})
    data = json.loads(storage[PREFERENCES_KEY])
    assert data["version"] == SCHEMA_VERSION
    assert data["showClosedDomains"] is True


def test_corrupt_blob_falls_back_to_defaults():
    assert parse_preferences("{not json") == Preferences()
    assert PreferenceStore({PREFERENCES_KEY: "[1, 2"}).load() == Preferences()


def test_wrong_typed_field_falls_back_individually():
    raw = json.dumps({"sortBy": 42, "searchQuery": "blog", "showClosedDomains": "yes"})
    prefs = parse_preferences(raw)
    assert prefs.sort_by == "created_at"
    assert prefs.search_query == "blog"
    assert prefs.show_closed_domains is False


def test_domain_filters_round_trip_through_store():
    store = PreferenceStore({})
    store.save({"searchQuery": "x"})
    store.save_domain_filters("priority", "seo", "all")
    assert store.get_domain_filters() == DomainFilters("priority", "seo", "all")
    assert store.load().search_query == "x"


def test_domain_filters_entry_is_replaced_whole():
    store = PreferenceStore({})
    store.save_domain_filters("title", "seo", "dns")
    prefs = store.save({"domainFilters": {"sortBy": "priority"}})
    assert prefs.domain_filters == DomainFilters(sort_by="priority")


def test_saving_search_only_changes_search():
    store = PreferenceStore({})
    expected = store.load().as_dict()
    expected["searchQuery"] = "x"

    store.save({"searchQuery": "x"})
    assert store.load().as_dict() == expected
