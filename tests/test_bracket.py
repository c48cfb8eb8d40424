"""Tests for single elimination bracket planning."""

from __future__ import annotations

import random
import unittest

from esportshub.core.constants import BYE, MATCH_COMPLETED, MATCH_SCHEDULED, TBD
from esportshub.errors import InsufficientParticipantsError, ValidationError
from esportshub.tournament.bracket import (
    calculate_bracket_size,
    calculate_byes,
    calculate_total_rounds,
    fill_slots,
    plan_bracket,
    seed_participants,
)
from esportshub.tournament.participants import SoloParticipant, TeamParticipant
from tests.helpers import KeepOrder


def make_teams(count: int) -> list[TeamParticipant]:
    return [
        TeamParticipant(id=f"t{i}", name=chr(ord("A") + i - 1))
        for i in range(1, count + 1)
    ]


class BracketSizeTestCase(unittest.TestCase):
    """Tests for the bracket sizing helpers."""

    def test_bracket_size(self) -> None:
        cases = {2: 2, 3: 4, 4: 4, 5: 8, 6: 8, 8: 8, 9: 16, 16: 16, 17: 32}
        for count, size in cases.items():
            with self.subTest(count=count):
                self.assertEqual(calculate_bracket_size(count), size)

    def test_bracket_size_of_nothing(self) -> None:
        self.assertEqual(calculate_bracket_size(0), 0)

    def test_byes(self) -> None:
        self.assertEqual(calculate_byes(6), 2)
        self.assertEqual(calculate_byes(5), 3)
        self.assertEqual(calculate_byes(8), 0)

    def test_total_rounds(self) -> None:
        self.assertEqual(calculate_total_rounds(2), 1)
        self.assertEqual(calculate_total_rounds(8), 3)
        self.assertEqual(calculate_total_rounds(32), 5)


class SeedingTestCase(unittest.TestCase):
    """Tests for participant seeding and slot filling."""

    def test_seeding_keeps_every_participant(self) -> None:
        teams = make_teams(7)
        seeded = seed_participants(teams, random.Random(3))
        self.assertCountEqual(seeded, teams)

    def test_seeding_does_not_mutate_input(self) -> None:
        teams = make_teams(6)
        original = list(teams)
        seed_participants(teams, random.Random(1))
        self.assertEqual(teams, original)

    def test_same_seed_same_order(self) -> None:
        teams = make_teams(10)
        first = seed_participants(teams, random.Random(42))
        second = seed_participants(teams, random.Random(42))
        self.assertEqual(first, second)

    def test_fill_slots_never_pairs_two_byes(self) -> None:
        for count in range(2, 33):
            with self.subTest(count=count):
                size = calculate_bracket_size(count)
                slots = fill_slots(make_teams(count), size)
                self.assertEqual(len(slots), size)
                self.assertEqual(sum(1 for s in slots if s["id"] == BYE), size - count)
                for k in range(size // 2):
                    pair = (slots[2 * k]["id"], slots[2 * k + 1]["id"])
                    self.assertNotEqual(pair, (BYE, BYE))

    def test_fill_slots_six_teams(self) -> None:
        slots = fill_slots(make_teams(6), 8)
        self.assertEqual(
            [s["name"] for s in slots], ["A", "B", "C", "D", "E", BYE, "F", BYE]
        )

    def test_fill_slots_rejects_small_bracket(self) -> None:
        with self.assertRaises(ValueError):
            fill_slots(make_teams(5), 4)


class PlanBracketTestCase(unittest.TestCase):
    """Tests for ``plan_bracket``."""

    def test_six_participants(self) -> None:
        plan = plan_bracket(make_teams(6), KeepOrder())

        self.assertEqual(plan.size, 8)
        self.assertEqual(plan.byes, 2)
        self.assertEqual(plan.total_rounds, 3)
        self.assertEqual(len(plan.matches), 7)

        rounds = plan.rounds()
        self.assertEqual([len(rounds[r]) for r in (1, 2, 3)], [4, 2, 1])

        m1, m2, m3, m4 = rounds[1]
        self.assertEqual((m1.team_a["name"], m1.team_b["name"]), ("A", "B"))
        self.assertEqual((m2.team_a["name"], m2.team_b["name"]), ("C", "D"))
        self.assertEqual(m1.status, MATCH_SCHEDULED)
        self.assertIsNone(m1.result)

        for bye_match, name in ((m3, "E"), (m4, "F")):
            self.assertEqual(bye_match.status, MATCH_COMPLETED)
            self.assertEqual(bye_match.note, "Bye")
            self.assertEqual(bye_match.team_b["id"], BYE)
            self.assertEqual(bye_match.result["winner"], "teamA")
            self.assertEqual(bye_match.result["winnerName"], name)

        r2m1, r2m2 = rounds[2]
        self.assertEqual((r2m1.team_a["id"], r2m1.team_b["id"]), (TBD, TBD))
        self.assertEqual((r2m2.team_a["name"], r2m2.team_b["name"]), ("E", "F"))
        self.assertEqual(r2m2.status, MATCH_SCHEDULED)

        final = rounds[3][0]
        self.assertTrue(final.is_final)
        self.assertIsNone(final.next_match_number)
        self.assertIsNone(final.next_slot)
        self.assertEqual((final.team_a["id"], final.team_b["id"]), (TBD, TBD))

    def test_power_of_two_has_no_byes(self) -> None:
        plan = plan_bracket(make_teams(8), random.Random(7))
        self.assertEqual(plan.byes, 0)
        first_round = plan.rounds()[1]
        self.assertEqual(len(first_round), 4)
        for m in first_round:
            self.assertEqual(m.status, MATCH_SCHEDULED)
            self.assertNotEqual(m.team_a["id"], BYE)
            self.assertNotEqual(m.team_b["id"], BYE)

    def test_five_participants_never_double_bye(self) -> None:
        plan = plan_bracket(make_teams(5), KeepOrder())
        rounds = plan.rounds()

        self.assertEqual(plan.byes, 3)
        completed = [m for m in rounds[1] if m.status == MATCH_COMPLETED]
        self.assertEqual(len(completed), 3)

        r2m1, r2m2 = rounds[2]
        self.assertEqual(r2m1.team_a["id"], TBD)
        self.assertEqual(r2m1.team_b["name"], "C")
        self.assertEqual((r2m2.team_a["name"], r2m2.team_b["name"]), ("D", "E"))

    def test_two_participants_play_the_final(self) -> None:
        plan = plan_bracket(make_teams(2), random.Random(0))
        self.assertEqual(plan.total_rounds, 1)
        self.assertEqual(len(plan.matches), 1)
        final = plan.matches[0]
        self.assertTrue(final.is_final)
        self.assertEqual(final.status, MATCH_SCHEDULED)
        self.assertIsNone(final.next_match_number)

    def test_three_participants(self) -> None:
        plan = plan_bracket(make_teams(3), KeepOrder())
        final = plan.match(2, 1)
        self.assertTrue(final.is_final)
        self.assertEqual(final.team_a["id"], TBD)
        self.assertEqual(final.team_b["name"], "C")

    def test_each_participant_enters_exactly_once(self) -> None:
        for count in (2, 3, 6, 7, 12, 16, 23):
            with self.subTest(count=count):
                teams = make_teams(count)
                plan = plan_bracket(teams, random.Random(count))
                entered = [
                    slot["id"]
                    for m in plan.rounds()[1]
                    for slot in (m.team_a, m.team_b)
                    if slot["id"] != BYE
                ]
                self.assertCountEqual(entered, [t.id for t in teams])
                self.assertEqual(len(plan.matches), plan.size - 1)

    def test_match_numbers_restart_each_round(self) -> None:
        plan = plan_bracket(make_teams(16), random.Random(5))
        for round_number, matches in plan.rounds().items():
            self.assertEqual(
                [m.match_number for m in matches], list(range(1, len(matches) + 1))
            )
            self.assertTrue(all(m.round == round_number for m in matches))

    def test_too_few_participants(self) -> None:
        for count in (0, 1):
            with self.subTest(count=count):
                with self.assertRaises(InsufficientParticipantsError) as cm:
                    plan_bracket(make_teams(count))
                self.assertEqual(cm.exception.count, count)
                self.assertEqual(cm.exception.status_code, 422)
                self.assertIn(f"(found {count})", cm.exception.message)

    def test_duplicate_participant_rejected(self) -> None:
        team = TeamParticipant(id="t1", name="A")
        with self.assertRaises(ValidationError):
            plan_bracket([team, team, TeamParticipant(id="t2", name="B")])

    def test_team_and_solo_with_same_id_are_distinct(self) -> None:
        plan = plan_bracket(
            [TeamParticipant(id="x", name="Team X"), SoloParticipant(id="x", name="Player X")]
        )
        self.assertEqual(plan.size, 2)


class BracketDocumentsTestCase(unittest.TestCase):
    """Tests for ``BracketPlan.to_documents``."""

    def setUp(self) -> None:
        plan = plan_bracket(make_teams(6), KeepOrder())
        tournament = {"title": "Spring Cup", "game": "Valorant", "startDate": "2024-03-01"}
        self.documents = dict(plan.to_documents("t1", tournament, "NOW", "admin1"))

    def test_document_ids_are_deterministic(self) -> None:
        self.assertCountEqual(
            self.documents,
            [
                "t1_r1_m1",
                "t1_r1_m2",
                "t1_r1_m3",
                "t1_r1_m4",
                "t1_r2_m1",
                "t1_r2_m2",
                "t1_r3_m1",
            ],
        )

    def test_links_to_next_match(self) -> None:
        self.assertEqual(self.documents["t1_r1_m1"]["nextMatchId"], "t1_r2_m1")
        self.assertEqual(self.documents["t1_r1_m1"]["nextSlot"], "teamA")
        self.assertEqual(self.documents["t1_r1_m4"]["nextMatchId"], "t1_r2_m2")
        self.assertEqual(self.documents["t1_r1_m4"]["nextSlot"], "teamB")
        self.assertIsNone(self.documents["t1_r3_m1"]["nextMatchId"])
        self.assertIsNone(self.documents["t1_r3_m1"]["nextSlot"])

    def test_document_fields(self) -> None:
        doc = self.documents["t1_r1_m3"]
        self.assertEqual(doc["tournamentId"], "t1")
        self.assertEqual(doc["tournamentName"], "Spring Cup")
        self.assertEqual(doc["game"], "Valorant")
        self.assertEqual(doc["totalRounds"], 3)
        self.assertEqual(doc["scheduledAt"], "2024-03-01")
        self.assertEqual(doc["createdBy"], "admin1")
        self.assertEqual(doc["result"]["approvedAt"], "NOW")
        self.assertEqual(doc["result"]["approvedBy"], "system")
