"""
SimMetrics: Tracks simple statistics for the intersection run.
"""

from typing import Dict

from crossing.decision import DecisionRule
from crossing.entities import ROTATION, Direction


class SimMetrics:
    """
    Tracks vehicle flow and signal switching.

    Attributes:
        spawned (int): Vehicles created by the spawner.
        exited (int): Vehicles that crossed the exit threshold.
        served (Dict[Direction, int]): Exited vehicles per approach.
        switches (int): Phase switches applied by the controller.
        switches_by_rule (Dict[DecisionRule, int]): Switches per decision rule.
        wait_ticks (int): Blocked motion ticks accumulated by exited vehicles.
    """

    def __init__(self):
        """Initialize all counters to zero."""
        self.spawned = 0
        self.exited = 0
        self.served: Dict[Direction, int] = {d: 0 for d in ROTATION}
        self.switches = 0
        self.switches_by_rule: Dict[DecisionRule, int] = {
            r: 0 for r in DecisionRule if r is not DecisionRule.HOLD
        }
        self.wait_ticks = 0

    def record_switch(self, rule: DecisionRule):
        self.switches += 1
        self.switches_by_rule[rule] = self.switches_by_rule.get(rule, 0) + 1

    def record_exits(self, exited: Dict[Direction, int], wait_ticks: int):
        for direction, count in exited.items():
            self.served[direction] += count
            self.exited += count
        self.wait_ticks += wait_ticks

    def avg_wait_ticks(self) -> float:
        """Mean blocked motion ticks per exited vehicle."""
        if self.exited <= 0:
            return 0.0
        return self.wait_ticks / self.exited

    @staticmethod
    def efficiency(total_waiting: int) -> int:
        """Rough 0-100 health score: five points lost per waiting vehicle."""
        return max(0, 100 - total_waiting * 5)

    def throughput_per_min(self, elapsed_s: float) -> float:
        if elapsed_s <= 0:
            return 0.0
        return self.exited * 60.0 / elapsed_s

    def report(self) -> dict:
        """
        Return a snapshot of current metrics.

        Returns:
            dict: Counters keyed by name; per-direction and per-rule maps use string keys.
        """
        return {
            "spawned": self.spawned,
            "exited": self.exited,
            "served": {d.value: n for d, n in self.served.items()},
            "switches": self.switches,
            "switches_by_rule": {r.value: n for r, n in self.switches_by_rule.items()},
            "avg_wait_ticks": round(self.avg_wait_ticks(), 3),
        }
