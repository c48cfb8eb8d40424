"""Forms for the match blueprint."""

from __future__ import annotations

from typing import Any

from flask_wtf import FlaskForm
from wtforms import (
    DateTimeLocalField,
    IntegerField,
    RadioField,
    StringField,
    TextAreaField,
)
from wtforms.validators import URL, DataRequired, Length, NumberRange, Optional

STAT_FIELDS = {"points": "totalPoints", "kills": "kills", "placement": "placement"}


class ResultForm(FlaskForm):
    """Winner, scores and per-team stats shared by result forms."""

    winner = RadioField(
        "Winner",
        choices=[("teamA", "Team A"), ("teamB", "Team B")],
        validators=[DataRequired()],
    )

    score_a = IntegerField(
        "Team A Score", validators=[Optional(), NumberRange(min=0)]
    )

    score_b = IntegerField(
        "Team B Score", validators=[Optional(), NumberRange(min=0)]
    )

    points_a = IntegerField("Team A Points", validators=[Optional(), NumberRange(min=0)])
    points_b = IntegerField("Team B Points", validators=[Optional(), NumberRange(min=0)])
    kills_a = IntegerField("Team A Kills", validators=[Optional(), NumberRange(min=0)])
    kills_b = IntegerField("Team B Kills", validators=[Optional(), NumberRange(min=0)])
    placement_a = IntegerField(
        "Team A Placement", validators=[Optional(), NumberRange(min=1)]
    )
    placement_b = IntegerField(
        "Team B Placement", validators=[Optional(), NumberRange(min=1)]
    )

    def team_stats(self, side: str) -> dict[str, Any]:
        """Collect the stats entered for ``side`` ("a" or "b")."""
        stats = {}
        for prefix, key in STAT_FIELDS.items():
            value = getattr(self, f"{prefix}_{side}").data
            if value is not None:
                stats[key] = value
        return stats


class ApproveResultForm(ResultForm):
    """Form for approving the result of a bracket match."""

    admin_notes = TextAreaField("Admin Notes", validators=[Optional()])


class SubmitResultForm(ResultForm):
    """Form for a captain reporting the result of their match."""

    proof_url = StringField(
        "Proof Screenshot or Video",
        validators=[DataRequired(message="Proof screenshot or video is required."), URL()],
    )

    notes = TextAreaField("Notes", validators=[Optional(), Length(max=1000)])


class RejectResultForm(FlaskForm):
    """Form for turning down a submitted result."""

    reason = TextAreaField(
        "Reason",
        validators=[DataRequired(message="Rejection reason is required.")],
    )


class ScheduleForm(FlaskForm):
    """Form for scheduling a bracket match."""

    scheduled_at = DateTimeLocalField(
        "Scheduled At", format="%Y-%m-%dT%H:%M", validators=[DataRequired()]
    )
