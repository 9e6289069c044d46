# domainflow/blueprints/main/forms.py
from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, SelectField, DecimalField, SubmitField
from wtforms.validators import DataRequired, Length, NumberRange, Optional as Opt

from ...models.template import PRIORITIES

PRIORITY_LABELS = {"low": "Bassa", "medium": "Media", "high": "Alta", "urgent": "Urgente"}
PRIORITY_CHOICES = [(p, PRIORITY_LABELS[p]) for p in PRIORITIES]


class DomainForm(FlaskForm):
    name = StringField("Nome del dominio *", validators=[DataRequired(message="Campo obbligatorio."), Length(max=200)])
    url = StringField("URL *", validators=[DataRequired(message="Campo obbligatorio."), Length(max=500)])
    description = TextAreaField("Descrizione", validators=[Opt(), Length(max=5000)])
    submit = SubmitField("Crea Dominio")


class TaskForm(FlaskForm):
    """Shared by manual domain tasks and admin templates."""
    title = StringField("Titolo *", validators=[DataRequired(message="Campo obbligatorio."), Length(max=200)])
    category = StringField("Categoria *", validators=[DataRequired(message="Campo obbligatorio."), Length(max=80)])
    priority = SelectField("Priorità", choices=PRIORITY_CHOICES, default="medium")
    estimated_hours = DecimalField("Ore stimate", places=None, validators=[Opt(), NumberRange(min=0)])
    description = TextAreaField("Descrizione", validators=[Opt()])
    tags = StringField("Tag (separati da virgola)", validators=[Opt()])
    dependencies = StringField("Dipendenze (separate da virgola)", validators=[Opt()])
    reference_links = TextAreaField("Link di riferimento (uno per riga)", validators=[Opt()])
    checklist_items = TextAreaField("Checklist (un elemento per riga)", validators=[Opt()])
    submit = SubmitField("Salva")

    def to_fields(self) -> dict:
        hours = self.estimated_hours.data
        return {
            "title": self.title.data,
            "category": self.category.data,
            "priority": self.priority.data,
            "estimated_hours": float(hours) if hours is not None else None,
            "description": self.description.data,
            "tags": self.tags.data,
            "dependencies": self.dependencies.data,
            "reference_links": self.reference_links.data,
            "checklist_items": self.checklist_items.data,
        }



def task_form_data(obj) -> dict:
    """Flatten a template or task into the text shapes the form fields expect."""
    return {
        "title": obj.title,
        "category": obj.category,
        "priority": obj.priority,
        "estimated_hours": obj.estimated_hours,
        "description": obj.description or "",
        "tags": ", ".join(obj.tags or []),
        "dependencies": ", ".join(obj.dependencies or []),
        "reference_links": "\n".join(obj.reference_links or []),
        "checklist_items": "\n".join(it.get("text", "") for it in (obj.checklist_items or [])),
    }
