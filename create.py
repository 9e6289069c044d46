# create.py: create the schema and optionally seed task templates from JSON
#
#   python create.py                      # tables only
#   python create.py templates.json       # tables + templates
#
# The JSON file holds a list of objects with the template fields
# (title, category, priority, estimated_hours, description, tags,
# dependencies, reference_links, checklist_items) and an optional
# "subtasks" list of {title, description}.
import json
import sys

from domainflow import create_app
from domainflow.extensions import db
from domainflow.models.template import TaskTemplate
from domainflow.services.template_store import import_templates


def main():
    app = create_app()
    with app.app_context():
        db.create_all()
        print("Database tables ready.")

        if len(sys.argv) < 2:
            return

        with open(sys.argv[1], encoding="utf-8") as fh:
            rows = json.load(fh)
        if not isinstance(rows, list):
            print("Expected a JSON list of templates.")
            return

        if TaskTemplate.query.count():
            answer = input("Templates already exist. Add these anyway? [y/N] ").strip().lower()
            if answer not in {"y", "yes", "s", "si", "sì"}:
                print("Nothing imported.")
                return

        count = import_templates(rows)
        print(f"Imported {count} template(s).")

if __name__ == "__main__":
    main()
