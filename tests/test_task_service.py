"""
Tests for task completion, checklists, subtasks, comments and change detection.
"""
import pytest
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import NotFound

from domainflow.extensions import db
from domainflow.models import SubtaskTarget, TaskComment, TaskTarget
from domainflow.services import domain_registry as registry
from domainflow.services import task_service


@pytest.fixture()
def task(app, make_template):
    make_template(checklist_items="Primo\nSecondo")
    domain = registry.create_domain("Shop", "https://shop.example")
    return domain.tasks[0]


def test_completed_at_follows_flag(task):
    task_service.set_task_completed(task.id, True)
    assert task.completed is True
    assert task.completed_at is not None

    task_service.set_task_completed(task.id, False)
    assert task.completed is False
    assert task.completed_at is None


def test_manual_task_has_no_template(app):
    domain = registry.create_domain("Shop", "https://shop.example")
    task = task_service.add_task(domain.id, title="Manuale", category="Extra", tags="x")
    assert task.template_id is None
    assert task.tags == ["x"]
    assert task_service.list_tasks(domain.id) == [task]


def test_add_task_to_missing_domain_is_404(app):
    with pytest.raises(NotFound):
        task_service.add_task(42, title="T", category="C")


def test_checklist_add_toggle_remove(task):
    task_service.add_checklist_item(task.id, "Terzo")
    assert [it["text"] for it in task.checklist_items] == ["Primo", "Secondo", "Terzo"]

    first = task.checklist_items[0]["id"]
    task_service.toggle_checklist_item(task.id, first, True)
    assert task.checklist_items[0]["completed"] is True
    assert task.completed is False  # checklist does not complete the task

    task_service.remove_checklist_item(task.id, first)
    assert [it["text"] for it in task.checklist_items] == ["Secondo", "Terzo"]


def test_blank_checklist_item_is_rejected(task):
    with pytest.raises(ValueError):
        task_service.add_checklist_item(task.id, "   ")


def test_subtask_completion(task):
    sub = task_service.create_subtask(task.id, "  Controllo  ", "")
    assert sub.title == "Controllo"
    assert sub.description is None

    task_service.set_subtask_completed(sub.id, True)
    assert sub.completed and sub.completed_at is not None
    task_service.set_subtask_completed(sub.id, False)
    assert not sub.completed and sub.completed_at is None
    assert task_service.list_subtasks(task.id) == [sub]


def test_subtask_needs_title(task):
    with pytest.raises(ValueError):
        task_service.create_subtask(task.id, "")


def test_comments_are_listed_per_target(task):
    sub = task_service.create_subtask(task.id, "Sotto")
    on_task = task_service.add_comment(TaskTarget(task.id), "  ciao ")
    on_sub = task_service.add_comment(SubtaskTarget(sub.id), "sotto")

    assert on_task.content == "ciao"
    assert on_task.target == TaskTarget(task.id)
    assert on_sub.target == SubtaskTarget(sub.id)
    assert task_service.list_comments(TaskTarget(task.id)) == [on_task]
    assert task_service.list_comments(SubtaskTarget(sub.id)) == [on_sub]


def test_comment_validation(task):
    with pytest.raises(ValueError):
        task_service.add_comment(TaskTarget(task.id), "  ")
    with pytest.raises(NotFound):
        task_service.add_comment(SubtaskTarget(999), "x")
    with pytest.raises(TypeError):
        TaskComment.for_target("task", "x")


def test_comment_cannot_have_two_parents(task):
    sub = task_service.create_subtask(task.id, "Sotto")
    db.session.add(TaskComment(task_id=task.id, subtask_id=sub.id, content="x"))
    with pytest.raises(IntegrityError):
        db.session.commit()
    db.session.rollback()


def test_fingerprint_changes_on_every_kind_of_write(task):
    def changed(action):
        before = task_service.tasks_fingerprint(task.domain_id)
        result = action()
        assert task_service.tasks_fingerprint(task.domain_id) != before
        return result

    sub = changed(lambda: task_service.create_subtask(task.id, "Sotto"))
    comment = changed(lambda: task_service.add_comment(SubtaskTarget(sub.id), "nota"))
    changed(lambda: task_service.set_task_completed(task.id, True))

    def drop_comment():
        db.session.delete(TaskComment.query.get(comment.id))
        db.session.commit()

    changed(drop_comment)


def test_update_checklist_replaces_items(task):
    kept = task.checklist_items[0]
    task_service.update_checklist(task.id, [kept, {"text": "  "}, "Nuovo"])
    assert [it["text"] for it in task.checklist_items] == ["Primo", "Nuovo"]
    assert task.checklist_items[0]["id"] == kept["id"]
