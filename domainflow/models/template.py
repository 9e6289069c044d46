# domainflow/models/template.py
from datetime import datetime
from ..extensions import db

PRIORITIES = ("low", "medium", "high", "urgent")


class TaskTemplate(db.Model):
    __tablename__ = "task_templates"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    description = db.Column(db.Text)
    category = db.Column(db.String(80), nullable=False, index=True)
    priority = db.Column(db.String(20), default="medium", nullable=False)  # low|medium|high|urgent
    estimated_hours = db.Column(db.Float)

    # Free-text labels; dependencies are descriptive, not references to other templates
    tags = db.Column(db.JSON, default=list, nullable=False)
    dependencies = db.Column(db.JSON, default=list, nullable=False)
    reference_links = db.Column(db.JSON, default=list, nullable=False)
    checklist_items = db.Column(db.JSON, default=list, nullable=False)  # [{id, text, completed}]

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    subtasks = db.relationship(
        "TemplateSubtask",
        back_populates="template",
        order_by="TemplateSubtask.order_index",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<TaskTemplate {self.id} {self.title!r}>"


class TemplateSubtask(db.Model):
    __tablename__ = "template_subtasks"

    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(
        db.Integer, db.ForeignKey("task_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    order_index = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    template = db.relationship("TaskTemplate", back_populates="subtasks")
