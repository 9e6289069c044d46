# domainflow/blueprints/main/routes.py
from datetime import datetime
from urllib.parse import urlparse

from flask import render_template, request, redirect, url_for, flash, current_app, jsonify, g
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...services import domain_registry as registry
from ...services import task_service
from ...services.listing import (
    DOMAIN_SORTS, TASK_SORTS, ALL,
    filter_domains, filter_by_status, sort_domains, filter_tasks, sort_tasks, collect_labels,
)
from ...services.progress import compute_progress, domain_stats, effective_completion
from .forms import DomainForm, PRIORITY_LABELS
from . import main_bp


@main_bp.app_context_processor
def inject_labels():
    return {"priority_labels": PRIORITY_LABELS}


# -----------------
# Helpers
# -----------------

def safe_redirect(default, **values):
    ref = request.referrer
    if ref:
        u = urlparse(ref)
        if not u.netloc or u.netloc == request.host:  # same-origin only
            return redirect(ref)
    return redirect(url_for(default, **values))


def guarded(fail_message, fn, *args, **kwargs):
    """
    Run a service call; on a database or validation failure roll back, log,
    flash the fixed message and return None. 404s propagate.
    """
    try:
        return fn(*args, **kwargs)
    except (SQLAlchemyError, ValueError) as e:
        db.session.rollback()
        current_app.logger.exception(f"{fn.__name__} failed: {e}")
        flash(fail_message, "danger")
        return None


def confirmed() -> bool:
    # Destructive forms carry confirm=1 once the browser dialog was accepted
    return request.form.get("confirm") == "1"


# -----------------
# Domain list
# -----------------

@main_bp.route("/")
def index():
    store = g.preferences
    updates = {}
    if "q" in request.args:
        updates["searchQuery"] = (request.args.get("q") or "").strip()
    if request.args.get("sort") in DOMAIN_SORTS:
        updates["sortBy"] = request.args["sort"]
    if request.args.get("closed") in ("0", "1"):
        updates["showClosedDomains"] = request.args["closed"] == "1"
    prefs = store.save(updates) if updates else store.load()

    summaries = guarded("Impossibile caricare i domini", registry.fetch_domain_summaries) or []
    visible = filter_by_status(summaries, prefs.show_closed_domains)
    visible = sort_domains(filter_domains(visible, prefs.search_query), prefs.sort_by)

    return render_template(
        "main/index.html",
        domains=visible,
        stats=domain_stats(summaries),
        prefs=prefs,
        sort_options=[("created_at", "Data di Creazione"), ("name", "Ordine Alfabetico"), ("progress", "Completezza")],
    )


@main_bp.route("/domains/new", methods=["GET", "POST"])
def domain_new():
    form = DomainForm()
    if form.validate_on_submit():
        domain = guarded(
            "Impossibile creare il dominio",
            registry.create_domain, form.name.data, form.url.data, form.description.data,
        )
        if domain is not None:
            n = len(domain.tasks)
            suffix = f" con {n} task" if n else ""
            flash(f'Dominio "{domain.name}" creato con successo{suffix}', "success")
            return redirect(url_for("main.domain_detail", domain_id=domain.id))
    return render_template("main/domain_new.html", form=form)


@main_bp.route("/domains/<int:domain_id>/edit", methods=["GET", "POST"])
def domain_edit(domain_id):
    domain = registry.get_domain(domain_id)
    form = DomainForm(obj=domain)
    form.submit.label.text = "Salva"
    if form.validate_on_submit():
        updated = guarded(
            "Impossibile aggiornare il dominio",
            registry.update_domain, domain.id, form.name.data, form.url.data, form.description.data,
        )
        if updated is not None:
            flash("Dominio aggiornato con successo", "success")
            return redirect(url_for("main.domain_detail", domain_id=domain.id))
    return render_template("main/domain_new.html", form=form, domain=domain)


# -----------------
# Domain detail
# -----------------

@main_bp.route("/domains/<int:domain_id>")
def domain_detail(domain_id):
    domain = registry.get_domain(domain_id)
    store = g.preferences
    filters = store.get_domain_filters()

    sort_by = request.args.get("sort", filters.sort_by)
    tag = request.args.get("tag", filters.filter_tag)
    dependency = request.args.get("dependency", filters.filter_dependency)
    if sort_by not in TASK_SORTS:
        sort_by = "created_at"
    if (sort_by, tag, dependency) != (filters.sort_by, filters.filter_tag, filters.filter_dependency):
        store.save_domain_filters(sort_by, tag or ALL, dependency or ALL)

    tasks = guarded("Impossibile caricare i dati del dominio", task_service.list_tasks, domain.id) or []
    progress = compute_progress(tasks)
    shown = sort_tasks(filter_tasks(tasks, tag, dependency), sort_by)

    return render_template(
        "main/domain_detail.html",
        domain=domain,
        tasks=shown,
        progress=progress,
        all_tags=collect_labels(tasks, "tags"),
        all_dependencies=collect_labels(tasks, "dependencies"),
        sort_by=sort_by,
        filter_tag=tag or ALL,
        filter_dependency=dependency or ALL,
        effective_completion=effective_completion,
        fingerprint=task_service.tasks_fingerprint(domain.id),
        poll_seconds=current_app.config.get("CHANGES_POLL_SECONDS", 0),
    )


@main_bp.route("/domains/<int:domain_id>/tasks/changes")
def domain_changes(domain_id):
    domain = registry.get_domain(domain_id)
    return jsonify({"domain_id": domain.id, "fingerprint": task_service.tasks_fingerprint(domain.id)})


# -----------------
# Domain lifecycle
# -----------------

@main_bp.post("/domains/<int:domain_id>/close")
def domain_close(domain_id):
    if guarded("Impossibile chiudere il dominio", registry.close_domain, domain_id):
        flash("Dominio chiuso con successo", "success")
    return redirect(url_for("main.index"))


@main_bp.post("/domains/<int:domain_id>/reopen")
def domain_reopen(domain_id):
    if guarded("Impossibile riaprire il dominio", registry.reopen_domain, domain_id):
        flash("Dominio riaperto con successo", "success")
    return redirect(url_for("main.index"))


@main_bp.post("/domains/<int:domain_id>/pin")
def domain_pin(domain_id):
    if guarded("Impossibile fissare il dominio", registry.pin_domain, domain_id):
        flash("Dominio fissato in alto", "success")
    return redirect(url_for("main.index"))


@main_bp.post("/domains/<int:domain_id>/unpin")
def domain_unpin(domain_id):
    if guarded("Impossibile rimuovere il dominio dai fissati", registry.unpin_domain, domain_id):
        flash("Dominio rimosso dai fissati", "success")
    return redirect(url_for("main.index"))


@main_bp.post("/domains/<int:domain_id>/delete")
def domain_delete(domain_id):
    if not confirmed():
        return redirect(url_for("main.index"))
    try:
        registry.delete_domain(domain_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception(f"delete_domain failed: {e}")
        flash("Impossibile eliminare il dominio", "danger")
    else:
        flash("Dominio eliminato con successo", "success")
    return redirect(url_for("main.index"))


# ---- Tiny JSON health route (DB ping + version) ----
@main_bp.route("/status")
def status():
    ok_db = True
    try:
        db.session.execute(db.text("SELECT 1"))
    except SQLAlchemyError as e:
        current_app.logger.error(f"DB health failed: {e}")
        ok_db = False

    payload = {
        "service": "domainflow",
        "version": current_app.config.get("APP_VERSION"),
        "time_utc": datetime.utcnow().isoformat() + "Z",
        "checks": {"database": "ok" if ok_db else "fail"},
    }
    return jsonify(payload), (200 if ok_db else 503)
