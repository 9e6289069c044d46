from flask import Blueprint

admin_bp = Blueprint('admin', __name__)

# Import route modules to register their endpoints
from . import templates          # noqa: E402,F401
from . import template_subtasks  # noqa: E402,F401
