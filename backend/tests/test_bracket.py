import unittest
from backend.app.core.errors import InsufficientPlayersError, InvalidScoreError, InvalidTransitionError
from backend.app.engine.bracket import (
    advancement_slot,
    bracket_size_for,
    build_bracket,
    feeder_positions,
    round_name,
    total_rounds_for,
)
from backend.app.engine.lifecycle import can_transition, check_transition
from backend.app.engine.scoring import best_multiplier, decide_winner, validate_score


class TestBuildBracket(unittest.TestCase):
    def test_match_count_is_bracket_size_minus_one(self):
        for n in range(2, 70):
            matches = build_bracket(list(range(n)))
            self.assertEqual(len(matches), bracket_size_for(n) - 1, f"n={n}")

    def test_highest_round_is_ceil_log2(self):
        expected = {2: 1, 3: 2, 4: 2, 5: 3, 8: 3, 9: 4, 16: 4, 17: 5, 64: 6}
        for n, rounds in expected.items():
            matches = build_bracket(list(range(n)))
            self.assertEqual(max(m.round for m in matches), rounds, f"n={n}")
            self.assertEqual(total_rounds_for(n), rounds)

    def test_rejects_fewer_than_two_players(self):
        with self.assertRaises(InsufficientPlayersError):
            build_bracket([])
        with self.assertRaises(InsufficientPlayersError):
            build_bracket(["solo"])

    def test_five_player_layout(self):
        """
        Scenario: 5 players, 8-slot bracket. Positional seeding puts E alone
        in match 3 and leaves match 4 with nobody.
        """
        matches = build_bracket(["A", "B", "C", "D", "E"])
        round1 = [m for m in matches if m.round == 1]
        round2 = [m for m in matches if m.round == 2]
        round3 = [m for m in matches if m.round == 3]

        self.assertEqual(
            [(m.player1_id, m.player2_id, m.match_number, m.is_bye) for m in round1],
            [
                ("A", "B", 1, False),
                ("C", "D", 2, False),
                ("E", None, 3, True),
                (None, None, 4, True),
            ],
        )
        self.assertEqual(len(round2), 2)
        self.assertEqual(len(round3), 1)
        for m in round2 + round3:
            self.assertIsNone(m.player1_id)
            self.assertIsNone(m.player2_id)
            self.assertFalse(m.is_bye)

    def test_match_numbers_run_across_rounds(self):
        matches = build_bracket(["A", "B", "C", "D", "E"])
        self.assertEqual([m.match_number for m in matches], list(range(1, 8)))
        self.assertEqual([m.round for m in matches], [1, 1, 1, 1, 2, 2, 3])

    def test_seeding_is_positional(self):
        """Players are paired in list order; top seeds are not separated."""
        matches = build_bracket([1, 2, 3, 4, 5, 6, 7, 8])
        pairs = [(m.player1_id, m.player2_id) for m in matches if m.round == 1]
        self.assertEqual(pairs, [(1, 2), (3, 4), (5, 6), (7, 8)])

    def test_one_short_of_power_of_two_has_single_bye(self):
        for n in (3, 7, 15):
            round1 = [m for m in build_bracket(list(range(n))) if m.round == 1]
            byes = [m for m in round1 if m.is_bye]
            self.assertEqual(len(byes), bracket_size_for(n) - n)
            self.assertEqual(byes[0].player1_id, n - 1)
            self.assertIsNone(byes[0].player2_id)

    def test_power_of_two_has_no_byes(self):
        for n in (2, 4, 8, 32):
            self.assertFalse(any(m.is_bye for m in build_bracket(list(range(n)))))

    def test_every_player_placed_once(self):
        players = [f"p{i}" for i in range(11)]
        placed = []
        for m in build_bracket(players):
            placed.extend(p for p in (m.player1_id, m.player2_id) if p is not None)
        self.assertEqual(placed, players)


class TestSlotMath(unittest.TestCase):
    def test_advancement_slot(self):
        self.assertEqual(advancement_slot(1), (0, "player1_id"))
        self.assertEqual(advancement_slot(2), (0, "player2_id"))
        self.assertEqual(advancement_slot(3), (1, "player1_id"))
        self.assertEqual(advancement_slot(4), (1, "player2_id"))
        self.assertEqual(advancement_slot(7), (3, "player1_id"))

    def test_feeders_are_inverse_of_advancement(self):
        for position in range(1, 9):
            low, high = feeder_positions(position)
            self.assertEqual(advancement_slot(low), (position - 1, "player1_id"))
            self.assertEqual(advancement_slot(high), (position - 1, "player2_id"))

    def test_round_names(self):
        self.assertEqual(round_name(4, 4), "Finals")
        self.assertEqual(round_name(3, 4), "Semi-Finals")
        self.assertEqual(round_name(2, 4), "Quarter-Finals")
        self.assertEqual(round_name(1, 4), "Round 1")
        self.assertEqual(round_name(1, 1), "Finals")


class TestScoring(unittest.TestCase):
    def test_higher_score_wins(self):
        self.assertEqual(decide_winner("p1", "p2", 12.5, 3.0), ("p1", "p2"))
        self.assertEqual(decide_winner("p1", "p2", 0.0, 0.5), ("p2", "p1"))

    def test_tie_goes_to_player2(self):
        self.assertEqual(decide_winner("p1", "p2", 5.0, 5.0), ("p2", "p1"))

    def test_validate_score(self):
        self.assertEqual(validate_score(3), 3.0)
        self.assertEqual(validate_score("2.5"), 2.5)
        for bad in (-1, float("nan"), float("inf"), None, "abc"):
            with self.assertRaises(InvalidScoreError):
                validate_score(bad)

    def test_best_multiplier_never_drops(self):
        self.assertEqual(best_multiplier(None, 4.0), 4.0)
        self.assertEqual(best_multiplier(10.0, 4.0), 10.0)
        self.assertEqual(best_multiplier(10.0, 40.0), 40.0)


class TestLifecycle(unittest.TestCase):
    def test_forward_path(self):
        self.assertTrue(can_transition("pending", "registration"))
        self.assertTrue(can_transition("registration", "live"))
        self.assertTrue(can_transition("live", "completed"))

    def test_cancel_from_non_terminal_only(self):
        for status in ("pending", "registration", "live"):
            self.assertTrue(can_transition(status, "cancelled"))
        for status in ("completed", "cancelled"):
            self.assertFalse(can_transition(status, "cancelled"))

    def test_no_skipping(self):
        self.assertFalse(can_transition("pending", "live"))
        self.assertFalse(can_transition("registration", "completed"))
        with self.assertRaises(InvalidTransitionError):
            check_transition("completed", "live")

    def test_admin_cannot_set_engine_states(self):
        with self.assertRaises(InvalidTransitionError):
            check_transition("registration", "live", admin=True)
        with self.assertRaises(InvalidTransitionError):
            check_transition("live", "completed", admin=True)
        check_transition("live", "cancelled", admin=True)

    def test_unknown_status(self):
        with self.assertRaises(InvalidTransitionError):
            check_transition("pending", "paused")


if __name__ == '__main__':
    unittest.main()
