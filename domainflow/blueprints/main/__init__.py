from flask import Blueprint

main_bp = Blueprint("main", __name__)

# Import route modules to register their endpoints
from . import routes  # noqa: E402,F401
from . import tasks   # noqa: E402,F401
