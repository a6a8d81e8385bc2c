#!/usr/bin/env python3
"""
Integration tests for IntersectionSim and the headless report.

Long runs use manual stepping so they stay deterministic; the threaded
tests use very short periods and only assert invariants.
"""

from __future__ import annotations

import os
import tempfile
import threading
import time
import unittest

import pandas as pd

from crossing.decision import DecisionRule
from crossing.entities import ROTATION, Direction, SignalPhase
from crossing.errors import ConfigError
from crossing.report import run_headless, summarise, write_csv
from crossing.signal_policy import SignalPolicy
from crossing.simulation import IntersectionSim

N, E, S, W = Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST

_NO_SPAWNS = {"spawn_north": 0.0, "spawn_south": 0.0, "spawn_east": 0.0, "spawn_west": 0.0}
_FAST = {"signal_period_s": 0.01, "spawn_period_s": 0.01, "motion_period_s": 0.005}


def _greens(sim: IntersectionSim):
    return [d for d, st in sim.controller.table.items() if st.phase is SignalPhase.GREEN]


class ManualSteppingTests(unittest.TestCase):
    def test_long_run_keeps_safety_invariants(self) -> None:
        sim = IntersectionSim(SignalPolicy(seed=3))
        policy = sim.policy
        for step in range(4000):
            if step % 8 == 0:
                sim.spawn_tick()
            sim.motion_tick()
            phases = {d: st.phase for d, st in sim.controller.table.items()}
            for v in sim.pool:
                if phases[v.direction] is not SignalPhase.GREEN and v.position < policy.approach_limit:
                    self.assertLessEqual(v.position, policy.stop_line)
                self.assertLess(v.position, policy.exit_threshold)
            if step % 5 == 0:
                sim.signal_tick()
            self.assertLessEqual(len(_greens(sim)), 1)
        self.assertGreater(sim.metrics.exited, 0)
        self.assertGreater(sim.metrics.switches, 0)

    def test_end_to_end_cycle_without_traffic(self) -> None:
        sim = IntersectionSim(SignalPolicy(**_NO_SPAWNS))
        decisions = []
        for _ in range(25):
            sim.spawn_tick()
            sim.motion_tick()
            decisions.append(sim.signal_tick())
        self.assertEqual(len(sim.pool), 0)
        self.assertEqual(sim.controller.active_direction, E)
        self.assertEqual(sim.controller.state(E).countdown, sim.policy.min_green_s)
        self.assertEqual([d.rule for d in decisions if d.is_switch], [DecisionRule.CYCLE_END])
        self.assertEqual(sim.metrics.switches_by_rule[DecisionRule.CYCLE_END], 1)

    def test_waiting_counts_follow_the_pool(self) -> None:
        sim = IntersectionSim(SignalPolicy(**_NO_SPAWNS))
        sim.add_vehicle(N, position=10.0)
        sim.add_vehicle(N, position=50.0)
        sim.add_vehicle(W, position=0.0)
        self.assertEqual(sim.controller.waiting_counts(), {N: 1, E: 0, S: 0, W: 1})

    def test_exited_vehicles_leave_and_are_counted(self) -> None:
        sim = IntersectionSim(SignalPolicy(**_NO_SPAWNS))
        vid = sim.add_vehicle(E, position=99.5)
        result = sim.motion_tick()
        self.assertEqual(result.exited[E], 1)
        self.assertNotIn(vid, sim.pool)
        self.assertEqual(sim.metrics.exited, 1)
        self.assertEqual(sim.metrics.served[E], 1)

    def test_queue_triggers_emergency_switch(self) -> None:
        sim = IntersectionSim(SignalPolicy(**_NO_SPAWNS))
        for i in range(10):
            sim.add_vehicle(S, position=float(i))
        decision = sim.signal_tick()
        self.assertEqual(decision.rule, DecisionRule.EMERGENCY)
        self.assertEqual(_greens(sim), [S])
        self.assertEqual(sim.controller.state(S).countdown, 20)

    def test_snapshot_shape(self) -> None:
        sim = IntersectionSim(SignalPolicy(seed=1))
        sim.add_vehicle(N, position=3.0)
        snap = sim.get_snapshot()
        for key in ("directions", "active_direction", "recent_decisions", "tick",
                    "total_vehicles", "total_waiting", "efficiency", "metrics",
                    "vehicles", "running"):
            self.assertIn(key, snap)
        self.assertEqual(snap["total_vehicles"], 1)
        self.assertEqual(snap["total_waiting"], 1)
        self.assertEqual(snap["efficiency"], 95)
        self.assertEqual(snap["vehicles"][0]["direction"], "north")
        self.assertFalse(snap["running"])
        self.assertNotIn("vehicles", sim.get_snapshot(include_vehicles=False))

    def test_describe(self) -> None:
        line = IntersectionSim().describe()
        self.assertTrue(line.startswith("t=0 active=north"))
        self.assertIn("N:G20/0", line)

    def test_reset(self) -> None:
        sim = IntersectionSim(SignalPolicy(seed=2))
        sim.add_vehicle(W, position=1.0)
        sim.signal_tick()
        sim.reset()
        self.assertEqual(len(sim.pool), 0)
        self.assertEqual(sim.controller.ticks, 0)
        self.assertEqual(sim.metrics.spawned, 0)

    def test_mapping_config(self) -> None:
        sim = IntersectionSim({"initial_direction": "south", "seed": 4})
        self.assertEqual(sim.controller.active_direction, S)


class ThreadedTests(unittest.TestCase):
    def setUp(self) -> None:
        self.sim = IntersectionSim(SignalPolicy(seed=5, **_FAST))

    def tearDown(self) -> None:
        self.sim.stop()

    def test_start_and_stop(self) -> None:
        self.sim.start()
        self.assertTrue(self.sim.is_running())
        time.sleep(0.3)
        self.sim.stop()
        self.assertFalse(self.sim.is_running())
        ticks = self.sim.controller.ticks
        self.assertGreater(ticks, 0)
        time.sleep(0.05)
        self.assertEqual(self.sim.controller.ticks, ticks)

    def test_second_start_is_ignored(self) -> None:
        self.sim.start()
        with self.assertLogs("simulation", level="WARNING"):
            self.sim.start({"seed": 99})
        self.assertEqual(self.sim.policy.seed, 5)

    def test_concurrent_starts_leave_no_threads_after_stop(self) -> None:
        for _ in range(5):
            barrier = threading.Barrier(2)
            results = []

            def starter() -> None:
                barrier.wait()
                results.append(self.sim.start({"seed": 1, **_FAST}))

            starters = [threading.Thread(target=starter) for _ in range(2)]
            for t in starters:
                t.start()
            for t in starters:
                t.join(timeout=2.0)
            self.assertEqual(sorted(results), [False, True])

            self.sim.stop()
            alive = [t.name for t in threading.enumerate()
                     if t.name.endswith("-tick") and t.is_alive()]
            self.assertEqual(alive, [])

    def test_invalid_config_does_not_start(self) -> None:
        with self.assertRaises(ConfigError):
            self.sim.start({"min_green_s": 0})
        self.assertFalse(self.sim.is_running())
        with self.assertRaises(ConfigError):
            self.sim.start({"no_such_setting": 1})
        self.assertFalse(self.sim.is_running())

    def test_concurrent_readers_see_consistent_tables(self) -> None:
        errors = []
        done = threading.Event()

        def reader() -> None:
            while not done.is_set():
                snap = self.sim.get_snapshot()
                greens = [n for n, st in snap["directions"].items() if st["phase"] == "green"]
                if len(greens) > 1:
                    errors.append(greens)
                if len(snap["directions"]) != len(ROTATION):
                    errors.append(snap["directions"])

        self.sim.start()
        readers = [threading.Thread(target=reader) for _ in range(3)]
        for t in readers:
            t.start()
        time.sleep(0.4)
        done.set()
        for t in readers:
            t.join(timeout=2.0)
        self.sim.stop()
        self.assertEqual(errors, [])


class HeadlessReportTests(unittest.TestCase):
    def test_row_per_signal_tick(self) -> None:
        df = run_headless(SignalPolicy(seed=1), seconds=60.0)
        self.assertIn(len(df), (74, 75))
        for col in ("time_s", "tick", "active", "rule", "north_phase",
                    "west_countdown", "east_waiting", "total_vehicles"):
            self.assertIn(col, df.columns)
        self.assertTrue((df["time_s"].diff().dropna() > 0).all())

    def test_at_most_one_green_per_row(self) -> None:
        df = run_headless(SignalPolicy(seed=8), seconds=120.0)
        phase_cols = [f"{d.value}_phase" for d in ROTATION]
        greens = (df[phase_cols] == "green").sum(axis=1)
        self.assertTrue((greens <= 1).all())

    def test_seeded_runs_are_reproducible(self) -> None:
        a = run_headless(SignalPolicy(seed=12), seconds=40.0)
        b = run_headless(SignalPolicy(seed=12), seconds=40.0)
        pd.testing.assert_frame_equal(a, b)

    def test_summarise_idle_run(self) -> None:
        df = run_headless(SignalPolicy(**_NO_SPAWNS), seconds=30.0)
        summary = summarise(df)
        self.assertEqual(summary["signal_ticks"], len(df))
        self.assertEqual(set(summary["switches_by_rule"]), {"cycle_end"})
        self.assertEqual(summary["mean_waiting"], 0.0)
        self.assertLessEqual(sum(summary["green_share"].values()), 1.0)

    def test_summarise_empty_frame(self) -> None:
        self.assertEqual(summarise(pd.DataFrame())["signal_ticks"], 0)

    def test_write_csv(self) -> None:
        df = run_headless(SignalPolicy(seed=2), seconds=10.0)
        with tempfile.TemporaryDirectory() as tmp:
            path = write_csv(df, os.path.join(tmp, "nested", "run.csv"))
            back = pd.read_csv(path)
        self.assertEqual(len(back), len(df))
        self.assertEqual(list(back.columns), list(df.columns))


if __name__ == "__main__":
    unittest.main()
