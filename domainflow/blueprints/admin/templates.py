# domainflow/blueprints/admin/templates.py
from flask import render_template, request, redirect, url_for, flash, current_app
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...services import template_store
from ..main.forms import TaskForm, task_form_data
from ..main.routes import guarded, confirmed
from . import admin_bp


@admin_bp.route("/")
@admin_bp.route("/templates")
def templates_list():
    templates = guarded("Impossibile caricare i template", template_store.list_templates) or []
    return render_template("admin/templates_list.html", templates=templates)


@admin_bp.route("/templates/new", methods=["GET", "POST"])
def template_new():
    form = TaskForm()
    if form.validate_on_submit():
        tpl = guarded("Impossibile salvare il template", template_store.create_template, **form.to_fields())
        if tpl is not None:
            flash("Template creato con successo", "success")
            return redirect(url_for("admin.template_edit", template_id=tpl.id))
    return render_template("admin/template_edit.html", form=form, template=None)


@admin_bp.route("/templates/<int:template_id>/edit", methods=["GET", "POST"])
def template_edit(template_id):
    tpl = template_store.get_template(template_id)
    form = TaskForm() if request.method == "POST" else TaskForm(data=task_form_data(tpl))
    if form.validate_on_submit():
        updated = guarded("Impossibile salvare il template",
                          template_store.update_template, tpl.id, **form.to_fields())
        if updated is not None:
            flash("Template aggiornato con successo", "success")
            return redirect(url_for("admin.template_edit", template_id=tpl.id))
    return render_template(
        "admin/template_edit.html",
        form=form,
        template=tpl,
        subtasks=template_store.list_template_subtasks(tpl.id),
    )


@admin_bp.post("/templates/<int:template_id>/delete")
def template_delete(template_id):
    if not confirmed():
        return redirect(url_for("admin.templates_list"))
    try:
        template_store.delete_template(template_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception(f"delete_template failed: {e}")
        flash("Impossibile eliminare il template", "danger")
    else:
        flash("Template eliminato con successo", "success")
    return redirect(url_for("admin.templates_list"))
