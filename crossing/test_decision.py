#!/usr/bin/env python3
"""
Tests for the pure switch policy.
"""

from __future__ import annotations

import unittest

from crossing.decision import DecisionRule, decide, green_duration
from crossing.entities import Direction, SignalPhase
from crossing.signal_policy import SignalPolicy

N, E, S, W = Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST


def _counts(n: int = 0, e: int = 0, s: int = 0, w: int = 0):
    return {N: n, E: e, S: s, W: w}


class DecideTests(unittest.TestCase):
    def setUp(self) -> None:
        self.policy = SignalPolicy()

    def test_emergency_precedence_ignores_countdown(self) -> None:
        for countdown in (0, 5, 25, 50):
            d = decide(_counts(n=1, e=10), N, SignalPhase.GREEN, countdown, self.policy)
            self.assertEqual(d.switch_to, E, msg=f"countdown={countdown}")
            self.assertEqual(d.rule, DecisionRule.EMERGENCY)
            self.assertEqual(d.green_duration, 20)

    def test_emergency_picks_highest_then_rotation_order(self) -> None:
        d = decide(_counts(e=12, s=11, w=12), N, SignalPhase.GREEN, 30, self.policy)
        self.assertEqual(d.switch_to, E)

        # rotation after SOUTH is WEST, NORTH, EAST
        d = decide(_counts(n=12, e=12), S, SignalPhase.GREEN, 30, self.policy)
        self.assertEqual(d.switch_to, N)

        d = decide(_counts(n=10, e=13, w=11), S, SignalPhase.GREEN, 30, self.policy)
        self.assertEqual(d.switch_to, E)

    def test_active_direction_never_triggers_its_own_emergency(self) -> None:
        d = decide(_counts(n=15), N, SignalPhase.GREEN, 30, self.policy)
        self.assertIsNone(d.switch_to)
        self.assertEqual(d.rule, DecisionRule.HOLD)
        self.assertEqual(d.green_duration, 0)

    def test_starvation_release_goes_to_rotation_successor(self) -> None:
        d = decide(_counts(s=2), N, SignalPhase.GREEN, 5, self.policy)
        self.assertEqual(d.switch_to, E)
        self.assertEqual(d.rule, DecisionRule.STARVATION_RELEASE)
        self.assertEqual(d.green_duration, self.policy.min_green_s)

        d = decide(_counts(s=2), W, SignalPhase.GREEN, 8, self.policy)
        self.assertEqual(d.switch_to, N)

    def test_starvation_release_waits_for_window(self) -> None:
        d = decide(_counts(s=2), N, SignalPhase.GREEN, 9, self.policy)
        self.assertEqual(d.rule, DecisionRule.HOLD)

    def test_high_demand_preemption(self) -> None:
        d = decide(_counts(n=1, w=4), N, SignalPhase.GREEN, 10, self.policy)
        self.assertEqual(d.switch_to, W)
        self.assertEqual(d.rule, DecisionRule.HIGH_DEMAND)
        self.assertEqual(d.green_duration, 12)

        d = decide(_counts(n=1, w=4), N, SignalPhase.GREEN, 11, self.policy)
        self.assertEqual(d.rule, DecisionRule.HOLD)

        d = decide(_counts(n=1, w=3), N, SignalPhase.GREEN, 4, self.policy)
        self.assertEqual(d.rule, DecisionRule.HOLD)

    def test_high_demand_tie_break(self) -> None:
        # rotation after EAST is SOUTH, WEST, NORTH
        d = decide(_counts(n=6, e=2, s=5, w=6), E, SignalPhase.GREEN, 3, self.policy)
        self.assertEqual(d.switch_to, W)

    def test_natural_cycle_end_rotates(self) -> None:
        expected = {N: E, E: S, S: W, W: N}
        for active, nxt in expected.items():
            d = decide(_counts(), active, SignalPhase.RED, 0, self.policy)
            self.assertEqual(d.switch_to, nxt)
            self.assertEqual(d.rule, DecisionRule.CYCLE_END)
            self.assertEqual(d.green_duration, self.policy.min_green_s)

    def test_idle_intersection_does_not_switch_on_demand_rules(self) -> None:
        for phase, countdown in ((SignalPhase.GREEN, 3), (SignalPhase.GREEN, 0),
                                 (SignalPhase.YELLOW, 0), (SignalPhase.YELLOW, 2)):
            d = decide(_counts(), N, phase, countdown, self.policy)
            self.assertIsNone(d.switch_to, msg=f"{phase} {countdown}")

    def test_missing_counts_are_zero(self) -> None:
        d = decide({E: 10}, N, SignalPhase.GREEN, 30, self.policy)
        self.assertEqual(d.switch_to, E)

    def test_reason_names_both_directions(self) -> None:
        d = decide(_counts(n=1, e=10), N, SignalPhase.GREEN, 30, self.policy)
        self.assertIn("north->east", d.reason)
        self.assertIn("1->10 vehicles", d.reason)

    def test_reason_format_is_plain_ascii(self) -> None:
        d = decide(_counts(n=1, e=10), N, SignalPhase.GREEN, 30, self.policy)
        self.assertEqual(
            d.reason, "Emergency switch - 10 vehicles waiting | north->east (1->10 vehicles)"
        )
        self.assertTrue(d.reason.isascii())

    def test_custom_thresholds(self) -> None:
        policy = SignalPolicy(emergency_threshold=4, demand_margin=1)
        d = decide(_counts(n=3, s=4), N, SignalPhase.GREEN, 40, policy)
        self.assertEqual(d.rule, DecisionRule.EMERGENCY)
        self.assertEqual(d.switch_to, S)


class GreenDurationTests(unittest.TestCase):
    def test_clamped_to_bounds(self) -> None:
        policy = SignalPolicy()
        self.assertEqual(green_duration(0, policy), 12)
        self.assertEqual(green_duration(6, policy), 12)
        self.assertEqual(green_duration(7, policy), 14)
        self.assertEqual(green_duration(25, policy), 50)
        self.assertEqual(green_duration(100, policy), 50)

    def test_every_switch_is_within_bounds(self) -> None:
        policy = SignalPolicy(min_green_s=5, max_green_s=30, seconds_per_vehicle=3)
        for target in range(0, 40):
            for active in Direction:
                counts = {d: 0 for d in Direction}
                counts[active] = 1
                counts[active.next()] = target
                d = decide(counts, active, SignalPhase.RED, 0, policy)
                self.assertTrue(d.is_switch)
                self.assertGreaterEqual(d.green_duration, policy.min_green_s)
                self.assertLessEqual(d.green_duration, policy.max_green_s)


if __name__ == "__main__":
    unittest.main()
