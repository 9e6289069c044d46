# domainflow/models/task.py
from datetime import datetime
from ..extensions import db


class DomainTask(db.Model):
    __tablename__ = "domain_tasks"

    id = db.Column(db.Integer, primary_key=True)
    domain_id = db.Column(
        db.Integer, db.ForeignKey("domains.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Provenance only; the task is a copy and never follows later template edits
    template_id = db.Column(
        db.Integer, db.ForeignKey("task_templates.id", ondelete="SET NULL"), nullable=True, index=True
    )

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(80), nullable=False, index=True)
    priority = db.Column(db.String(20), default="medium", nullable=False, index=True)
    estimated_hours = db.Column(db.Float)
    tags = db.Column(db.JSON, default=list, nullable=False)
    dependencies = db.Column(db.JSON, default=list, nullable=False)
    reference_links = db.Column(db.JSON, default=list, nullable=False)
    checklist_items = db.Column(db.JSON, default=list, nullable=False)

    completed = db.Column(db.Boolean, default=False, nullable=False, index=True)
    completed_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    domain = db.relationship("Domain", back_populates="tasks")
    template = db.relationship("TaskTemplate")

    subtasks = db.relationship(
        "Subtask",
        back_populates="parent_task",
        order_by="Subtask.created_at",
        lazy="selectin",
        cascade="all, delete-orphan",
    )
    comments = db.relationship(
        "TaskComment",
        back_populates="task",
        order_by="TaskComment.created_at",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def mark(self, completed: bool, when: datetime | None = None):
        """Set the completion flag, keeping completed_at in step with it."""
        self.completed = bool(completed)
        self.completed_at = (when or datetime.utcnow()) if self.completed else None

    def __repr__(self):
        return f"<DomainTask {self.id} {self.title!r}>"


class Subtask(db.Model):
    __tablename__ = "subtasks"

    id = db.Column(db.Integer, primary_key=True)
    parent_task_id = db.Column(
        db.Integer, db.ForeignKey("domain_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    completed = db.Column(db.Boolean, default=False, nullable=False)
    completed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    parent_task = db.relationship("DomainTask", back_populates="subtasks")
    comments = db.relationship(
        "TaskComment",
        back_populates="subtask",
        order_by="TaskComment.created_at",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def mark(self, completed: bool, when: datetime | None = None):
        self.completed = bool(completed)
        self.completed_at = (when or datetime.utcnow()) if self.completed else None
