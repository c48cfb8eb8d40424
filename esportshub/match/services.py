"""Service layer for match results and winner advancement."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore
from flask import current_app
from google.api_core import exceptions as google_exceptions

from esportshub.core.constants import (
    AUDIT_LOGS_COLLECTION,
    MATCH_COMPLETED,
    MATCH_SCHEDULED,
    MATCHES_COLLECTION,
    TOURNAMENT_COMPLETED,
    TOURNAMENTS_COLLECTION,
)
from esportshub.errors import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    ValidationError,
)

from .models import AdvanceOutcome, Match, ResultSubmission
from .utils import (
    SlotState,
    is_playable,
    match_document_id,
    next_match_number,
    next_slot,
    slot_state,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction


class MatchService:
    """Service class for match-related operations."""

    @staticmethod
    def _audit_entry(
        match_id: str, tournament_id: str, action: str, performed_by: str, **details: Any
    ) -> dict[str, Any]:
        return {
            "matchId": match_id,
            "tournamentId": tournament_id,
            "action": action,
            "performedBy": performed_by,
            "performedAt": firestore.SERVER_TIMESTAMP,
            "details": details,
        }

    @staticmethod
    def _approve_in_transaction(
        transaction: Transaction,
        db: Client,
        match_ref: DocumentReference,
        submission: Optional[ResultSubmission],
        approved_by: str,
    ) -> AdvanceOutcome:
        """Complete a match and move its winner on, reading before writing.

        Without an explicit ``submission`` the captain's pending one is used.
        """
        # 1. Read the match and check it can take a result
        match = MatchService._read_playable_match(transaction, match_ref)

        pending = match.get("submission")
        if submission is None:
            if not pending:
                raise InvalidTransitionError("No submitted result is awaiting approval.")
            submission = ResultSubmission.from_submission(pending)
            try:
                submission.validate()
            except ValueError as e:
                raise ValidationError(str(e)) from e

        tournament_id = match["tournamentId"]
        round_number = match["round"]
        total_rounds = match.get("totalRounds", round_number)
        winner = match[submission.winner]
        is_final = round_number >= total_rounds

        # 2. Read the destination (or the tournament for the final)
        tournament_ref = db.collection(TOURNAMENTS_COLLECTION).document(tournament_id)
        next_ref = None
        next_side = match.get("nextSlot") or next_slot(match["matchNumber"])
        if is_final:
            tournament_doc = cast(
                "DocumentSnapshot", tournament_ref.get(transaction=transaction)
            )
            if not tournament_doc.exists:
                raise NotFoundError("Tournament not found.")
        else:
            next_id = match.get("nextMatchId") or match_document_id(
                tournament_id, round_number + 1, next_match_number(match["matchNumber"])
            )
            next_ref = db.collection(MATCHES_COLLECTION).document(next_id)
            next_doc = cast("DocumentSnapshot", next_ref.get(transaction=transaction))
            if not next_doc.exists:
                raise NotFoundError(f"Next round match {next_id} not found.")
            next_data = next_doc.to_dict() or {}
            if slot_state(next_data.get(next_side)) is not SlotState.TBD:
                raise InvalidTransitionError(
                    f"Slot {next_side} of match {next_id} is already filled."
                )

        # 3. Queue Writes
        result = submission.to_result(winner, approved_by)
        result["approvedAt"] = firestore.SERVER_TIMESTAMP
        transaction.update(
            match_ref,
            {
                "status": MATCH_COMPLETED,
                "result": result,
                "submission": None,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )

        outcome = AdvanceOutcome(match_id=match_ref.id, winner=winner)
        if next_ref is not None:
            transaction.update(
                next_ref, {next_side: winner, "updatedAt": firestore.SERVER_TIMESTAMP}
            )
            outcome.next_match_id = next_ref.id
            outcome.next_slot = next_side
        else:
            transaction.update(
                tournament_ref,
                {
                    "status": TOURNAMENT_COMPLETED,
                    "champion": winner,
                    "completedAt": firestore.SERVER_TIMESTAMP,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                },
            )
            outcome.champion = winner

        transaction.set(
            db.collection(AUDIT_LOGS_COLLECTION).document(),
            MatchService._audit_entry(
                match_ref.id,
                tournament_id,
                "approved",
                approved_by,
                previousStatus=match.get("status"),
                newStatus=MATCH_COMPLETED,
                winner=submission.winner,
                notes=submission.admin_notes,
                submittedBy=submission.submitted_by or None,
            ),
        )
        return outcome

    @staticmethod
    def _read_playable_match(
        transaction: Transaction, match_ref: DocumentReference
    ) -> dict[str, Any]:
        """Read a match inside a transaction and require it to be playable."""
        match_doc = cast("DocumentSnapshot", match_ref.get(transaction=transaction))
        if not match_doc.exists:
            raise NotFoundError("Match not found.")
        match = cast(dict[str, Any], match_doc.to_dict() or {})

        if match.get("status") == MATCH_COMPLETED:
            raise InvalidTransitionError("Match result has already been applied.")
        if not is_playable(match):
            raise InvalidTransitionError(
                "Match is not ready: both sides must be known participants."
            )
        return match

    @staticmethod
    def _run_transaction(func: Any, db: Client, match_id: str, *args: Any) -> Any:
        """Run ``func`` transactionally against a match, wrapping storage errors."""
        match_ref = db.collection(MATCHES_COLLECTION).document(match_id)
        transaction = db.transaction()
        try:
            return firestore.transactional(func)(transaction, db, match_ref, *args)
        except InvalidTransitionError as e:
            current_app.logger.warning(f"Rejected change to match {match_id}: {e.message}")
            raise
        except google_exceptions.GoogleAPICallError as e:
            current_app.logger.error(f"Error updating match {match_id}: {e}")
            raise PersistenceError() from e

    @staticmethod
    def _submit_in_transaction(
        transaction: Transaction,
        db: Client,
        match_ref: DocumentReference,
        submission: ResultSubmission,
        submitted_by: str,
    ) -> dict[str, Any]:
        match = MatchService._read_playable_match(transaction, match_ref)

        captains = {
            match["teamA"].get("captainId") or match["teamA"].get("id"),
            match["teamB"].get("captainId") or match["teamB"].get("id"),
        }
        if submitted_by not in captains:
            raise PermissionDeniedError("Only team captains can submit results.")
        if match.get("submission"):
            raise InvalidTransitionError("A result is already awaiting approval.")

        data = submission.to_submission(submitted_by)
        transaction.update(
            match_ref,
            {
                "submission": {**data, "submittedAt": firestore.SERVER_TIMESTAMP},
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        transaction.set(
            db.collection(AUDIT_LOGS_COLLECTION).document(),
            MatchService._audit_entry(
                match_ref.id,
                match["tournamentId"],
                "submitted",
                submitted_by,
                winner=submission.winner,
                proofUrl=submission.proof_url,
            ),
        )
        return data

    @staticmethod
    def submit_result(
        db: Client, match_id: str, submission: ResultSubmission, submitted_by: str
    ) -> dict[str, Any]:
        """Store a captain's result until an admin approves or rejects it.

        The match stays ``scheduled`` while the submission is pending.

        Raises:
            ValidationError: If the result is malformed or has no proof.
            NotFoundError: If the match does not exist.
            PermissionDeniedError: If the submitter captains neither side.
            InvalidTransitionError: If the match is not playable or already
                has a pending submission.
            PersistenceError: If Firestore fails.
        """
        try:
            submission.validate()
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if not submission.proof_url.strip():
            raise ValidationError("Proof screenshot or video is required.")

        data = MatchService._run_transaction(
            MatchService._submit_in_transaction, db, match_id, submission, submitted_by
        )
        current_app.logger.info(f"Result for match {match_id} submitted by {submitted_by}.")
        return cast(dict[str, Any], data)

    @staticmethod
    def _reject_in_transaction(
        transaction: Transaction,
        db: Client,
        match_ref: DocumentReference,
        reason: str,
        rejected_by: str,
    ) -> None:
        match_doc = cast("DocumentSnapshot", match_ref.get(transaction=transaction))
        if not match_doc.exists:
            raise NotFoundError("Match not found.")
        match = match_doc.to_dict() or {}

        pending = match.get("submission")
        if not pending or match.get("status") == MATCH_COMPLETED:
            raise InvalidTransitionError("No submitted result is awaiting approval.")

        transaction.update(
            match_ref,
            {
                "submission": None,
                "lastRejection": {
                    "reason": reason,
                    "rejectedBy": rejected_by,
                    "rejectedAt": firestore.SERVER_TIMESTAMP,
                    "submittedBy": pending.get("submittedBy", ""),
                },
                "updatedAt": firestore.SERVER_TIMESTAMP,
            },
        )
        transaction.set(
            db.collection(AUDIT_LOGS_COLLECTION).document(),
            MatchService._audit_entry(
                match_ref.id,
                match.get("tournamentId", ""),
                "rejected",
                rejected_by,
                reason=reason,
                submittedBy=pending.get("submittedBy", ""),
            ),
        )

    @staticmethod
    def reject_result(
        db: Client, match_id: str, reason: str, rejected_by: str = "admin"
    ) -> None:
        """Discard a pending submission so the captains can submit again.

        Raises:
            ValidationError: If no reason is given.
            NotFoundError: If the match does not exist.
            InvalidTransitionError: If nothing is awaiting approval.
            PersistenceError: If Firestore fails.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Rejection reason is required.")

        MatchService._run_transaction(
            MatchService._reject_in_transaction, db, match_id, reason, rejected_by
        )
        current_app.logger.info(f"Result for match {match_id} rejected by {rejected_by}.")

    @staticmethod
    def approve_result(
        db: Client,
        match_id: str,
        submission: Optional[ResultSubmission] = None,
        approved_by: str = "admin",
    ) -> AdvanceOutcome:
        """Record an approved result and advance the winner.

        With no ``submission`` the result a captain submitted is approved.

        Raises:
            ValidationError: If the submission is malformed.
            NotFoundError: If the match does not exist.
            InvalidTransitionError: If the match cannot take a result.
            PersistenceError: If Firestore fails.
        """
        if submission is not None:
            try:
                submission.validate()
            except ValueError as e:
                raise ValidationError(str(e)) from e

        outcome = cast(
            AdvanceOutcome,
            MatchService._run_transaction(
                MatchService._approve_in_transaction,
                db,
                match_id,
                submission,
                approved_by,
            ),
        )

        if outcome.champion is not None:
            current_app.logger.info(
                f"Match {match_id} was the final, champion {outcome.winner.get('id')}."
            )
        else:
            current_app.logger.info(
                f"Match {match_id} winner {outcome.winner.get('id')} advanced to "
                f"{outcome.next_match_id} ({outcome.next_slot})."
            )
        return outcome

    @staticmethod
    def get_match_by_id(db: Client, match_id: str) -> Match | None:
        """Fetch a single match by its ID."""
        match_ref = db.collection(MATCHES_COLLECTION).document(match_id)
        match_doc = cast("DocumentSnapshot", match_ref.get())
        if not match_doc.exists:
            return None
        data = cast("Match", match_doc.to_dict() or {})
        data["id"] = match_id
        data["playable"] = is_playable(cast(dict[str, Any], data))
        return data

    @staticmethod
    def get_matches_by_tournament(db: Client, tournament_id: str) -> list[Match]:
        """Fetch every match of a tournament ordered by round and position."""
        docs = (
            db.collection(MATCHES_COLLECTION)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .stream()
        )
        matches = []
        for doc in docs:
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                matches.append(data)
        matches.sort(key=lambda m: (m.get("round", 0), m.get("matchNumber", 0)))
        return cast("list[Match]", matches)

    @staticmethod
    def get_playable_matches(db: Client, tournament_id: str) -> list[Match]:
        """Matches with both sides known that are still waiting for a result."""
        return [
            m
            for m in MatchService.get_matches_by_tournament(db, tournament_id)
            if is_playable(cast(dict[str, Any], m))
        ]

    @staticmethod
    def get_pending_approvals(
        db: Client, tournament_id: Optional[str] = None
    ) -> list[Match]:
        """Scheduled matches holding a captain's submission, oldest round first."""
        query = db.collection(MATCHES_COLLECTION).where(
            filter=firestore.FieldFilter("status", "==", MATCH_SCHEDULED)
        )
        if tournament_id:
            query = query.where(
                filter=firestore.FieldFilter("tournamentId", "==", tournament_id)
            )

        pending = []
        for doc in query.stream():
            data = doc.to_dict()
            if data and data.get("submission"):
                data["id"] = doc.id
                pending.append(data)
        pending.sort(
            key=lambda m: (
                m.get("tournamentId", ""),
                m.get("round", 0),
                m.get("matchNumber", 0),
            )
        )
        return cast("list[Match]", pending)

    @staticmethod
    def update_match_schedule(
        db: Client,
        match_id: str,
        scheduled_at: datetime.datetime,
        updated_by: str = "admin",
    ) -> None:
        """Set when a match is to be played."""
        match_ref = db.collection(MATCHES_COLLECTION).document(match_id)
        match_doc = cast("DocumentSnapshot", match_ref.get())
        if not match_doc.exists:
            raise NotFoundError("Match not found.")
        match = match_doc.to_dict() or {}

        if scheduled_at.tzinfo is None:
            scheduled_at = scheduled_at.replace(tzinfo=datetime.timezone.utc)

        batch = db.batch()
        batch.update(
            match_ref,
            {"scheduledAt": scheduled_at, "updatedAt": firestore.SERVER_TIMESTAMP},
        )
        batch.set(
            db.collection(AUDIT_LOGS_COLLECTION).document(),
            MatchService._audit_entry(
                match_id,
                match.get("tournamentId", ""),
                "rescheduled",
                updated_by,
                scheduledAt=scheduled_at.isoformat(),
            ),
        )
        try:
            batch.commit()
        except google_exceptions.GoogleAPICallError as e:
            current_app.logger.error(f"Error updating schedule of match {match_id}: {e}")
            raise PersistenceError() from e

    @staticmethod
    def get_match_audit_logs(db: Client, match_id: str) -> list[dict[str, Any]]:
        """Fetch the audit trail of a match, newest first."""
        docs = (
            db.collection(AUDIT_LOGS_COLLECTION)
            .where(filter=firestore.FieldFilter("matchId", "==", match_id))
            .stream()
        )
        logs = []
        for doc in docs:
            data = doc.to_dict()
            if data:
                data["id"] = doc.id
                logs.append(data)

        def performed_at(log: dict[str, Any]) -> float:
            value = log.get("performedAt")
            return value.timestamp() if isinstance(value, datetime.datetime) else 0.0

        logs.sort(key=performed_at, reverse=True)
        return logs
