"""Routes for the match blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import jsonify, request, session

from esportshub.auth.decorators import login_required
from esportshub.errors import NotFoundError, ValidationError

from . import bp
from .forms import (
    ApproveResultForm,
    RejectResultForm,
    ResultForm,
    ScheduleForm,
    SubmitResultForm,
)
from .models import ResultSubmission
from .services import MatchService


def _form_errors(form: Any) -> str:
    """Flatten WTForms errors into one message."""
    return "; ".join(
        f"{name}: {', '.join(errors)}" for name, errors in form.errors.items()
    )


def _submission_from_form(form: ResultForm, **extra: Any) -> ResultSubmission:
    return ResultSubmission(
        winner=form.winner.data,
        score_a=form.score_a.data,
        score_b=form.score_b.data,
        team_a_stats=form.team_stats("a"),
        team_b_stats=form.team_stats("b"),
        **extra,
    )


def _outcome_response(outcome: Any) -> Any:
    return jsonify(
        {
            "success": True,
            "message": outcome.message,
            "data": {
                "matchId": outcome.match_id,
                "winner": outcome.winner,
                "nextMatchId": outcome.next_match_id,
                "nextSlot": outcome.next_slot,
                "champion": outcome.champion,
            },
        }
    )


@bp.route("/pending", methods=["GET"])
@login_required(admin_required=True)
def pending_approvals() -> Any:
    """Return matches whose submitted result awaits an admin."""
    db = firestore.client()
    matches = MatchService.get_pending_approvals(db, request.args.get("tournamentId"))
    return jsonify({"success": True, "message": "", "data": {"matches": matches}})


@bp.route("/<string:match_id>", methods=["GET"])
def view_match(match_id: str) -> Any:
    """Return a single match."""
    db = firestore.client()
    match = MatchService.get_match_by_id(db, match_id)
    if match is None:
        raise NotFoundError("Match not found.")
    return jsonify({"success": True, "message": "", "data": match})


@bp.route("/<string:match_id>/approve", methods=["POST"])
@login_required(admin_required=True)
def approve_result(match_id: str) -> Any:
    """Approve a submitted result; the winner advances automatically."""
    form = ApproveResultForm()
    if not form.validate_on_submit():
        raise ValidationError(_form_errors(form) or "Invalid result submission.")

    submission = _submission_from_form(form, admin_notes=form.admin_notes.data or "")
    db = firestore.client()
    outcome = MatchService.approve_result(
        db, match_id, submission, approved_by=session["user_id"]
    )
    return _outcome_response(outcome)


@bp.route("/<string:match_id>/submit", methods=["POST"])
@login_required
def submit_result(match_id: str) -> Any:
    """Let a team captain report a result for admin approval."""
    form = SubmitResultForm()
    if not form.validate_on_submit():
        raise ValidationError(_form_errors(form) or "Invalid result submission.")

    submission = _submission_from_form(
        form, proof_url=form.proof_url.data, admin_notes=form.notes.data or ""
    )
    db = firestore.client()
    data = MatchService.submit_result(
        db, match_id, submission, submitted_by=session["user_id"]
    )
    return (
        jsonify(
            {
                "success": True,
                "message": "Result submitted and awaiting admin approval",
                "data": data,
            }
        ),
        202,
    )


@bp.route("/<string:match_id>/submission/approve", methods=["POST"])
@login_required(admin_required=True)
def approve_submission(match_id: str) -> Any:
    """Approve the result a captain submitted."""
    db = firestore.client()
    outcome = MatchService.approve_result(db, match_id, approved_by=session["user_id"])
    return _outcome_response(outcome)


@bp.route("/<string:match_id>/submission/reject", methods=["POST"])
@login_required(admin_required=True)
def reject_submission(match_id: str) -> Any:
    """Turn down a submitted result so the captains can report again."""
    form = RejectResultForm()
    if not form.validate_on_submit():
        raise ValidationError(_form_errors(form) or "Rejection reason is required.")

    db = firestore.client()
    MatchService.reject_result(
        db, match_id, form.reason.data, rejected_by=session["user_id"]
    )
    return jsonify({"success": True, "message": "Result rejected", "data": None})


@bp.route("/<string:match_id>/schedule", methods=["POST"])
@login_required(admin_required=True)
def schedule_match(match_id: str) -> Any:
    """Set the date and time of a match."""
    form = ScheduleForm()
    if not form.validate_on_submit():
        raise ValidationError(_form_errors(form) or "Please select date and time.")

    db = firestore.client()
    MatchService.update_match_schedule(
        db, match_id, form.scheduled_at.data, updated_by=session["user_id"]
    )
    return jsonify({"success": True, "message": "Schedule updated", "data": None})


@bp.route("/<string:match_id>/audit", methods=["GET"])
@login_required(admin_required=True)
def match_audit_log(match_id: str) -> Any:
    """Return the audit trail of a match."""
    db = firestore.client()
    logs = MatchService.get_match_audit_logs(db, match_id)
    return jsonify({"success": True, "message": "", "data": {"logs": logs}})
