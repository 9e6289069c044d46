# domainflow/blueprints/admin/template_subtasks.py
from flask import request, redirect, url_for, flash, current_app
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models.template import TemplateSubtask
from ...services import template_store
from ..main.routes import guarded, confirmed
from . import admin_bp


def _back(template_id):
    return redirect(url_for("admin.template_edit", template_id=template_id) + "#subtasks")


@admin_bp.post("/templates/<int:template_id>/subtasks")
def template_subtask_new(template_id):
    st = guarded("Impossibile salvare il sottotask", template_store.add_template_subtask,
                 template_id, request.form.get("title"), request.form.get("description"))
    if st is not None:
        flash("Sottotask aggiunto con successo", "success")
    return _back(template_id)


@admin_bp.post("/template-subtasks/<int:subtask_id>/edit")
def template_subtask_edit(subtask_id):
    st = TemplateSubtask.query.get_or_404(subtask_id)
    if guarded("Impossibile salvare il sottotask", template_store.update_template_subtask,
               st.id, request.form.get("title"), request.form.get("description")):
        flash("Sottotask aggiornato con successo", "success")
    return _back(st.template_id)


@admin_bp.post("/template-subtasks/<int:subtask_id>/delete")
def template_subtask_delete(subtask_id):
    st = TemplateSubtask.query.get_or_404(subtask_id)
    template_id = st.template_id
    if not confirmed():
        return _back(template_id)
    try:
        template_store.delete_template_subtask(st.id)
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception(f"delete_template_subtask failed: {e}")
        flash("Impossibile eliminare il sottotask", "danger")
    else:
        flash("Sottotask eliminato con successo", "success")
    return _back(template_id)
