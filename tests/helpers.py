"""Base test case for tests that run against a mocked Firestore."""

from __future__ import annotations

import random
import unittest
from typing import Any, Optional
from unittest.mock import MagicMock, patch

from mockfirestore import MockFirestore

from esportshub import create_app
from esportshub.core.constants import (
    MATCHES_COLLECTION,
    REGISTRATIONS_COLLECTION,
    TEAMS_COLLECTION,
    TOURNAMENT_UPCOMING,
    TOURNAMENTS_COLLECTION,
    USERS_COLLECTION,
)
from tests.mock_utils import (
    MockBatch,
    MockTransaction,
    build_firestore_module,
    patch_mockfirestore,
)

patch_mockfirestore()

ADMIN_ID = "admin1"
PLAYER_ID = "player1"
TOURNAMENT_ID = "t1"


class KeepOrder(random.Random):
    """Random source whose shuffle leaves the list as it is."""

    def shuffle(self, x: Any) -> None:  # type: ignore[override]
        pass


FIRESTORE_MODULES = [
    "esportshub.tournament.utils",
    "esportshub.tournament.participants",
    "esportshub.tournament.services",
    "esportshub.tournament.routes",
    "esportshub.match.services",
    "esportshub.match.routes",
]


class FirestoreTestCase(unittest.TestCase):
    """Sets up an app bound to a fresh MockFirestore for every test."""

    def setUp(self) -> None:
        """Set up a test client and a mock Firestore environment."""
        self.mock_db = MockFirestore()

        self.transactions: list[MockTransaction] = []

        def new_transaction() -> MockTransaction:
            transaction = MockTransaction(self.mock_db)
            self.transactions.append(transaction)
            return transaction

        self.mock_db.transaction = MagicMock(side_effect=new_transaction)
        self.mock_batch_instance = MockBatch(self.mock_db)
        self.mock_db.batch = MagicMock(return_value=self.mock_batch_instance)

        self.mock_firestore_module = build_firestore_module(self.mock_db)

        patchers = [patch("firebase_admin.initialize_app")]
        patchers += [
            patch(f"{module}.firestore", new=self.mock_firestore_module)
            for module in FIRESTORE_MODULES
        ]
        for p in patchers:
            p.start()
            self.addCleanup(p.stop)

        self.app = create_app(
            {"TESTING": True, "WTF_CSRF_ENABLED": False, "SERVER_NAME": "localhost"}
        )
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()

    def tearDown(self) -> None:
        """Tear down the test client."""
        self.app_context.pop()

    def fail_next_commit(self, error: Exception) -> None:
        """Make the next transaction raise ``error`` when it commits."""
        new_transaction = self.mock_db.transaction.side_effect

        def failing_transaction() -> MockTransaction:
            transaction = new_transaction()
            transaction.commit.side_effect = error
            return transaction

        self.mock_db.transaction.side_effect = failing_transaction

    def login(self, user_id: str = ADMIN_ID, is_admin: bool = True) -> None:
        """Put a signed-in user into the test client's session."""
        with self.client.session_transaction() as sess:
            sess["user_id"] = user_id
            sess["is_admin"] = is_admin

    def create_tournament(
        self, tournament_id: str = TOURNAMENT_ID, **fields: Any
    ) -> dict[str, Any]:
        """Store a tournament that is still open for registration."""
        data = {
            "title": "Spring Cup",
            "game": "Valorant",
            "format": "single_elimination",
            "status": TOURNAMENT_UPCOMING,
            "startDate": "2024-03-01T18:00:00Z",
            **fields,
        }
        self.mock_db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).set(
            data
        )
        return data

    def create_team(
        self, team_id: str, name: Optional[str] = None, captain_id: str = ""
    ) -> None:
        """Store a team document."""
        self.mock_db.collection(TEAMS_COLLECTION).document(team_id).set(
            {
                "name": name or f"Team {team_id}",
                "logo": f"https://cdn.example.com/{team_id}.png",
                "captainId": captain_id or f"captain_{team_id}",
            }
        )

    def create_user(self, user_id: str, display_name: str) -> None:
        """Store a user document."""
        self.mock_db.collection(USERS_COLLECTION).document(user_id).set(
            {"displayName": display_name, "photoURL": ""}
        )

    def register(
        self,
        registration_id: str,
        team_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status: str = "approved",
        tournament_id: str = TOURNAMENT_ID,
    ) -> None:
        """Store a registration for a team or a solo player."""
        data: dict[str, Any] = {"tournamentId": tournament_id, "status": status}
        if team_id:
            data["teamId"] = team_id
        if user_id:
            data["userId"] = user_id
        self.mock_db.collection(REGISTRATIONS_COLLECTION).document(
            registration_id
        ).set(data)

    def register_teams(
        self, count: int, tournament_id: str = TOURNAMENT_ID
    ) -> list[str]:
        """Store ``count`` teams, each with an approved registration."""
        team_ids = [f"team{i}" for i in range(1, count + 1)]
        for team_id in team_ids:
            self.create_team(team_id)
            self.register(
                f"reg_{tournament_id}_{team_id}",
                team_id=team_id,
                tournament_id=tournament_id,
            )
        return team_ids

    def get_tournament(self, tournament_id: str = TOURNAMENT_ID) -> dict[str, Any]:
        """Read a tournament back from the mock database."""
        doc = self.mock_db.collection(TOURNAMENTS_COLLECTION).document(tournament_id)
        return doc.get().to_dict()

    def get_match(self, match_id: str) -> dict[str, Any]:
        """Read a match back from the mock database."""
        return self.mock_db.collection(MATCHES_COLLECTION).document(match_id).get().to_dict()

    def all_matches(self) -> list[dict[str, Any]]:
        """Every stored match, in no particular order.

        mockfirestore keeps an empty document for every ``document(id)`` call,
        so refs taken inside an uncommitted transaction are skipped.
        """
        docs = self.mock_db.collection(MATCHES_COLLECTION).stream()
        return [data for data in (doc.to_dict() for doc in docs) if data]
