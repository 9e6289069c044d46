# domainflow/models/comment.py
from dataclasses import dataclass
from datetime import datetime
from typing import Union

from ..extensions import db


@dataclass(frozen=True)
class TaskTarget:
    task_id: int


@dataclass(frozen=True)
class SubtaskTarget:
    subtask_id: int


# A comment hangs off exactly one of the two
CommentTarget = Union[TaskTarget, SubtaskTarget]


class TaskComment(db.Model):
    __tablename__ = "task_comments"
    __table_args__ = (
        db.CheckConstraint(
            "(task_id IS NULL) <> (subtask_id IS NULL)",
            name="ck_task_comments_one_parent",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)
    task_id = db.Column(
        db.Integer, db.ForeignKey("domain_tasks.id", ondelete="CASCADE"), nullable=True, index=True
    )
    subtask_id = db.Column(
        db.Integer, db.ForeignKey("subtasks.id", ondelete="CASCADE"), nullable=True, index=True
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    task = db.relationship("DomainTask", back_populates="comments")
    subtask = db.relationship("Subtask", back_populates="comments")

    @classmethod
    def for_target(cls, target: CommentTarget, content: str) -> "TaskComment":
        if isinstance(target, TaskTarget):
            return cls(task_id=target.task_id, content=content)
        if isinstance(target, SubtaskTarget):
            return cls(subtask_id=target.subtask_id, content=content)
        raise TypeError(f"Unsupported comment target: {target!r}")

    @property
    def target(self) -> CommentTarget:
        if self.task_id is not None:
            return TaskTarget(self.task_id)
        return SubtaskTarget(self.subtask_id)
