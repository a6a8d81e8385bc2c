"""
crossing/spawner.py
===================
Per-direction Bernoulli arrivals.

Each spawn tick draws one trial per approach.  A red approach gets its
probability scaled by ``policy.red_spawn_bias`` to model queue pressure.
"""

from __future__ import annotations

import logging
import random
from typing import List, Mapping, Optional

from crossing.entities import ROTATION, VEHICLE_KINDS, Direction, SignalPhase, TurnIntent
from crossing.signal_policy import SignalPolicy
from crossing.vehicles import VehiclePool

log = logging.getLogger("spawner")


class Spawner:
    """Creates vehicles at position 0 on each approach.

    Parameters
    ----------
    policy : SignalPolicy
        Spawn probabilities, red bias and turn shares.
    rng : random.Random or None
        Source of randomness; seeded from ``policy.seed`` when *None*.
    """

    def __init__(self, policy: SignalPolicy, rng: Optional[random.Random] = None) -> None:
        self.policy = policy
        self._rng = rng or random.Random(policy.seed)

    def probability(self, direction: Direction, phase: SignalPhase) -> float:
        p = self.policy.spawn_probability(direction)
        if phase is SignalPhase.RED:
            p *= self.policy.red_spawn_bias
        return min(1.0, p)

    def draw_turn(self) -> TurnIntent:
        roll = self._rng.random()
        if roll < self.policy.turn_left_share:
            return TurnIntent.LEFT
        if roll < self.policy.turn_left_share + self.policy.turn_right_share:
            return TurnIntent.RIGHT
        return TurnIntent.STRAIGHT

    def tick(self, pool: VehiclePool, phases: Mapping[Direction, SignalPhase]) -> List[int]:
        """Run one spawn tick; return the ids of the vehicles created."""
        spawned: List[int] = []
        for direction in ROTATION:
            if self._rng.random() >= self.probability(direction, phases[direction]):
                continue
            vid = pool.add(
                direction,
                turn_intent=self.draw_turn(),
                kind=self._rng.choice(VEHICLE_KINDS),
                position=0.0,
                speed=self.policy.vehicle_speed,
            )
            spawned.append(vid)
        if spawned:
            log.debug("spawned %d vehicle(s), pool size %d", len(spawned), len(pool))
        return spawned
