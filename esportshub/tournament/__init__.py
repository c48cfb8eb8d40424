"""Tournament blueprint."""

from flask import Blueprint

bp = Blueprint("tournament", __name__, url_prefix="/tournaments")

from . import routes  # noqa: E402, F401
from .models import BracketSummary, Registration, Tournament  # noqa: E402
from .participants import Participant, SoloParticipant, TeamParticipant  # noqa: E402
from .services import BracketService  # noqa: E402

__all__ = [
    "BracketService",
    "BracketSummary",
    "Participant",
    "Registration",
    "SoloParticipant",
    "TeamParticipant",
    "Tournament",
    "routes",
]
