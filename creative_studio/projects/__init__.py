from flask import Blueprint

bp = Blueprint("projects", __name__, url_prefix="/projects")

from . import files, routes  # noqa: E402,F401
