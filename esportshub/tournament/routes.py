"""Routes for the tournament blueprint."""

from __future__ import annotations

import random
from typing import Any

from firebase_admin import firestore
from flask import current_app, jsonify, session

from esportshub.auth.decorators import login_required
from esportshub.match.services import MatchService

from . import bp
from .participants import collect_participants
from .services import BracketService


@bp.route("/<string:tournament_id>/participants", methods=["GET"])
@login_required(admin_required=True)
def list_participants(tournament_id: str) -> Any:
    """Preview who would enter the bracket if it were generated now."""
    db = firestore.client()
    participants = collect_participants(db, tournament_id)
    return jsonify(
        {
            "success": True,
            "message": f"{len(participants)} approved participants",
            "data": {"participants": [p.to_slot() for p in participants]},
        }
    )


@bp.route("/<string:tournament_id>/bracket", methods=["POST"])
@login_required(admin_required=True)
def generate_bracket(tournament_id: str) -> Any:
    """Generate the elimination bracket from approved registrations."""
    db = firestore.client()
    seed = current_app.config.get("BRACKET_SHUFFLE_SEED")
    rng = random.Random(seed) if seed is not None else None

    summary = BracketService.generate_bracket(
        db, tournament_id, rng=rng, created_by=session["user_id"]
    )
    return (
        jsonify({"success": True, "message": summary.message, "data": summary.to_dict()}),
        201,
    )


@bp.route("/<string:tournament_id>/bracket", methods=["GET"])
def view_bracket(tournament_id: str) -> Any:
    """Return the bracket grouped by round."""
    db = firestore.client()
    bracket = BracketService.get_bracket(db, tournament_id)
    return jsonify({"success": True, "message": "", "data": bracket})


@bp.route("/<string:tournament_id>/matches/playable", methods=["GET"])
@login_required(admin_required=True)
def playable_matches(tournament_id: str) -> Any:
    """Matches ready to be played and awaiting an approved result."""
    db = firestore.client()
    matches = MatchService.get_playable_matches(db, tournament_id)
    return jsonify({"success": True, "message": "", "data": {"matches": matches}})
