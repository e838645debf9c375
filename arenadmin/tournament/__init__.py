"""Tournament blueprint."""

from flask import Blueprint

bp = Blueprint("tournament", __name__, url_prefix="/tournaments")

from . import routes  # noqa: E402, F401
from .models import Registration, Tournament  # noqa: E402
from .services import TournamentService, TournamentStatusManager  # noqa: E402

__all__ = [
    "Registration",
    "Tournament",
    "TournamentService",
    "TournamentStatusManager",
    "routes",
]
