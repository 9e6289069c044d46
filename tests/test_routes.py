"""
End-to-end checks through the Flask test client.
"""
from domainflow.models import Domain, DomainTask, TaskTemplate
from domainflow.services import domain_registry as registry
from domainflow.services.preferences import PREFERENCES_KEY


def _set_cookie_headers(resp):
    return [h for h in resp.headers.getlist("Set-Cookie") if h.startswith(PREFERENCES_KEY + "=")]


def test_dashboard_renders_empty_state(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Nessun dominio ancora" in resp.get_data(as_text=True)
    # nothing changed, nothing written
    assert _set_cookie_headers(resp) == []


def test_search_is_remembered_between_requests(client, app):
    registry.create_domain("Negozio", "https://shop.example")
    registry.create_domain("Blog", "https://blog.example")

    first = client.get("/?q=shop")
    assert len(_set_cookie_headers(first)) == 1
    assert "Negozio" in first.get_data(as_text=True)

    # no query string this time: the saved search still applies
    again = client.get("/").get_data(as_text=True)
    assert 'value="shop"' in again
    assert "Negozio" in again
    assert "https://blog.example" not in again


def test_create_domain_through_form(client, make_template):
    make_template(title="Backup settimanale")
    resp = client.post("/domains/new", data={"name": "Shop", "url": "https://shop.example"})
    assert resp.status_code == 302

    domain = Domain.query.filter_by(name="Shop").one()
    assert resp.headers["Location"].endswith(f"/domains/{domain.id}")
    assert [t.title for t in domain.tasks] == ["Backup settimanale"]

    page = client.get(f"/domains/{domain.id}").get_data(as_text=True)
    assert "Backup settimanale" in page


def test_create_domain_requires_name(client):
    resp = client.post("/domains/new", data={"name": "", "url": "https://x.example"})
    assert resp.status_code == 200
    assert Domain.query.count() == 0


def test_missing_domain_shows_not_found_page(client):
    resp = client.get("/domains/12345")
    assert resp.status_code == 404
    assert "Dominio non trovato" in resp.get_data(as_text=True)


def test_delete_needs_confirmation(client):
    domain = registry.create_domain("Shop", "https://shop.example")

    client.post(f"/domains/{domain.id}/delete")
    assert Domain.query.get(domain.id) is not None

    resp = client.post(f"/domains/{domain.id}/delete", data={"confirm": "1"})
    assert resp.status_code == 302
    assert Domain.query.count() == 0


def test_close_hides_domain_from_active_list(client):
    domain = registry.create_domain("Shop", "https://shop.example")
    client.post(f"/domains/{domain.id}/close")

    assert Domain.query.get(domain.id).status == "closed"
    assert "https://shop.example" not in client.get("/").get_data(as_text=True)
    assert "https://shop.example" in client.get("/?closed=1").get_data(as_text=True)


def test_complete_task_from_detail_page(client, make_template):
    make_template()
    domain = registry.create_domain("Shop", "https://shop.example")
    task_id = domain.tasks[0].id

    client.post(f"/tasks/{task_id}/complete", data={"completed": "1"})
    task = DomainTask.query.get(task_id)
    assert task.completed is True and task.completed_at is not None

    client.post(f"/tasks/{task_id}/complete", data={"completed": "0"})
    task = DomainTask.query.get(task_id)
    assert task.completed is False and task.completed_at is None


def test_blank_comment_is_refused_with_message(client, make_template):
    make_template()
    domain = registry.create_domain("Shop", "https://shop.example")
    task_id = domain.tasks[0].id

    resp = client.post(f"/tasks/{task_id}/comments", data={"content": " "}, follow_redirects=True)
    assert resp.status_code == 200
    assert "Impossibile aggiungere il commento" in resp.get_data(as_text=True)


def test_task_filters_are_stored_in_preferences(client, make_template):
    make_template(title="Meta tag", tags="seo")
    make_template(title="Firewall", tags="sicurezza")
    domain = registry.create_domain("Shop", "https://shop.example")

    resp = client.get(f"/domains/{domain.id}?tag=seo")
    page = resp.get_data(as_text=True)
    assert len(_set_cookie_headers(resp)) == 1
    assert "Meta tag" in page and "Firewall" not in page

    # filter sticks on the next visit
    page = client.get(f"/domains/{domain.id}").get_data(as_text=True)
    assert "Firewall" not in page


def test_changes_endpoint_reports_new_fingerprint(client, make_template):
    make_template()
    domain = registry.create_domain("Shop", "https://shop.example")
    url = f"/domains/{domain.id}/tasks/changes"

    before = client.get(url).get_json()["fingerprint"]
    client.post(f"/tasks/{domain.tasks[0].id}/subtasks", data={"title": "Nuovo"})
    after = client.get(url).get_json()

    assert after["domain_id"] == domain.id
    assert after["fingerprint"] != before


def test_admin_creates_template(client):
    resp = client.post(
        "/admin/templates/new",
        data={"title": "SSL", "category": "Sicurezza", "priority": "urgent", "tags": "https, ssl"},
    )
    assert resp.status_code == 302
    tpl = TaskTemplate.query.one()
    assert (tpl.priority, tpl.tags) == ("urgent", ["https", "ssl"])

    page = client.get("/admin/templates").get_data(as_text=True)
    assert "SSL" in page


def test_admin_template_subtasks(client, make_template):
    tpl = make_template()
    client.post(f"/admin/templates/{tpl.id}/subtasks", data={"title": "Uno"})
    client.post(f"/admin/templates/{tpl.id}/subtasks", data={"title": "Due"})
    first = tpl.subtasks[0]

    client.post(f"/admin/template-subtasks/{first.id}/delete", data={"confirm": "1"})
    tpl = TaskTemplate.query.get(tpl.id)
    assert [(s.title, s.order_index) for s in tpl.subtasks] == [("Due", 0)]


def test_status_endpoint(client):
    resp = client.get("/status")
    assert resp.status_code == 200
    assert resp.get_json()["checks"]["database"] == "ok"


def test_pin_and_unpin_from_dashboard(client):
    a = registry.create_domain("Alfa", "https://alfa.example")
    b = registry.create_domain("Beta", "https://beta.example")
    registry.create_domain("Gamma", "https://gamma.example")

    client.post(f"/domains/{a.id}/pin")
    client.post(f"/domains/{b.id}/pin")
    page = client.get("/").get_data(as_text=True)
    assert page.index("https://beta.example") < page.index("https://alfa.example")
    assert page.index("https://alfa.example") < page.index("https://gamma.example")

    client.post(f"/domains/{a.id}/unpin")
    a = Domain.query.get(a.id)
    assert (a.pinned, a.pinned_at, a.pinned_order) == (False, None, None)
    assert Domain.query.get(b.id).pinned is True


def test_template_edit_keeps_fractional_hours(client, make_template):
    tpl = make_template(title="SSL", estimated_hours=1.25)

    page = client.get(f"/admin/templates/{tpl.id}/edit").get_data(as_text=True)
    assert 'value="1.25"' in page

    resp = client.post(
        f"/admin/templates/{tpl.id}/edit",
        data={"title": "SSL rinnovo", "category": "Manutenzione", "priority": "medium",
              "estimated_hours": "1.25"},
    )
    assert resp.status_code == 302
    tpl = TaskTemplate.query.get(tpl.id)
    assert tpl.title == "SSL rinnovo"
    assert tpl.estimated_hours == 1.25
