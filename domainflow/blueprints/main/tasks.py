# domainflow/blueprints/main/tasks.py
# Task-level actions on the domain detail page. Each one redirects back to
# the page it came from so the active filters survive.
from flask import render_template, request, redirect, url_for, flash

from ...models.comment import TaskTarget, SubtaskTarget
from ...services import domain_registry as registry
from ...services import task_service
from .forms import TaskForm
from .routes import guarded, safe_redirect
from . import main_bp


def _checked() -> bool:
    return request.form.get("completed") in ("1", "on", "true")


@main_bp.route("/domains/<int:domain_id>/tasks/new", methods=["GET", "POST"])
def task_new(domain_id):
    domain = registry.get_domain(domain_id)
    form = TaskForm()
    form.submit.label.text = "Aggiungi Task"
    if form.validate_on_submit():
        task = guarded("Impossibile creare il task", task_service.add_task, domain.id, **form.to_fields())
        if task is not None:
            flash("Task aggiunto con successo", "success")
            return redirect(url_for("main.domain_detail", domain_id=domain.id))
    return render_template("main/task_new.html", form=form, domain=domain)


@main_bp.post("/tasks/<int:task_id>/complete")
def task_complete(task_id):
    task = task_service.get_task(task_id)
    completed = _checked()
    if guarded("Impossibile aggiornare il task", task_service.set_task_completed, task.id, completed):
        if completed:
            flash("Task completato! Il task è stato completato con successo", "success")
        else:
            flash("Task riaperto. Il task è stato riaperto con successo", "info")
    return safe_redirect("main.domain_detail", domain_id=task.domain_id)


# ---- Checklist ----

@main_bp.post("/tasks/<int:task_id>/checklist")
def checklist_add(task_id):
    task = task_service.get_task(task_id)
    guarded("Impossibile aggiornare la checklist",
            task_service.add_checklist_item, task.id, request.form.get("text"))
    return safe_redirect("main.domain_detail", domain_id=task.domain_id)


@main_bp.post("/tasks/<int:task_id>/checklist/<item_id>/toggle")
def checklist_toggle(task_id, item_id):
    task = task_service.get_task(task_id)
    guarded("Impossibile aggiornare la checklist",
            task_service.toggle_checklist_item, task.id, item_id, _checked())
    return safe_redirect("main.domain_detail", domain_id=task.domain_id)


@main_bp.post("/tasks/<int:task_id>/checklist/<item_id>/delete")
def checklist_remove(task_id, item_id):
    task = task_service.get_task(task_id)
    guarded("Impossibile aggiornare la checklist",
            task_service.remove_checklist_item, task.id, item_id)
    return safe_redirect("main.domain_detail", domain_id=task.domain_id)


# ---- Subtasks ----

@main_bp.post("/tasks/<int:task_id>/subtasks")
def subtask_new(task_id):
    task = task_service.get_task(task_id)
    sub = guarded("Impossibile creare il sottotask", task_service.create_subtask,
                  task.id, request.form.get("title"), request.form.get("description"))
    if sub is not None:
        flash("Sottotask creato con successo", "success")
    return safe_redirect("main.domain_detail", domain_id=task.domain_id)


@main_bp.post("/subtasks/<int:subtask_id>/complete")
def subtask_complete(subtask_id):
    completed = _checked()
    sub = guarded("Impossibile aggiornare il sottotask",
                  task_service.set_subtask_completed, subtask_id, completed)
    if sub is None:
        return safe_redirect("main.index")
    if completed:
        flash("Sottotask completato!", "success")
    else:
        flash("Sottotask riaperto", "info")
    return safe_redirect("main.domain_detail", domain_id=sub.parent_task.domain_id)


# ---- Comments ----

@main_bp.post("/tasks/<int:task_id>/comments")
def task_comment(task_id):
    task = task_service.get_task(task_id)
    if guarded("Impossibile aggiungere il commento",
               task_service.add_comment, TaskTarget(task.id), request.form.get("content")):
        flash("Commento aggiunto con successo", "success")
    return safe_redirect("main.domain_detail", domain_id=task.domain_id)


@main_bp.post("/subtasks/<int:subtask_id>/comments")
def subtask_comment(subtask_id):
    comment = guarded("Impossibile aggiungere il commento",
                      task_service.add_comment, SubtaskTarget(subtask_id), request.form.get("content"))
    if comment is None:
        return safe_redirect("main.index")
    flash("Commento aggiunto con successo", "success")
    return safe_redirect("main.domain_detail", domain_id=comment.subtask.parent_task.domain_id)
