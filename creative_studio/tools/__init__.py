from flask import Blueprint

bp = Blueprint("tools", __name__, url_prefix="/projects/<int:project_id>/tools")

from . import routes  # noqa: E402,F401
