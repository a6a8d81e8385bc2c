#!/usr/bin/env python3
"""
crossing/vehicles.py
====================
Vehicle pool, motion step and demand counter.

Vehicles live in an index-stable arena: one dense ``numpy`` column per
attribute, filled from index 0 up to :attr:`VehiclePool.size`.  Removal is
a boolean-mask compaction, and the backing arrays only ever grow
(geometrically), so a sustained high spawn rate does not reallocate on
every tick.

The pool is not capped.  With a spawn rate near 1 and no green time for an
approach its queue grows without bound; capacity doublings past
:data:`GROWTH_WARN_CAPACITY` are logged as warnings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping

import numpy as np

from crossing.entities import (
    ROTATION,
    TURN_INTENTS,
    VEHICLE_KINDS,
    Direction,
    SignalPhase,
    TurnIntent,
    VehicleKind,
)
from crossing.signal_policy import SignalPolicy

log = logging.getLogger("vehicles")

INITIAL_CAPACITY = 64
GROWTH_WARN_CAPACITY = 1024


@dataclass(frozen=True)
class Vehicle:
    """Read-only view of one arena row.

    Attributes
    ----------
    id : int
        Unique, never reused.
    direction : Direction
        Approach the vehicle travels on.
    turn_intent : TurnIntent
        Informational manoeuvre.
    kind : VehicleKind
        Body type for renderers.
    position : float
        Progress along the path (0 at spawn).
    speed : float
        Advance per motion tick when unobstructed.
    wait_ticks : int
        Motion ticks spent held at a non-green signal.
    """

    id: int
    direction: Direction
    turn_intent: TurnIntent
    kind: VehicleKind
    position: float
    speed: float
    wait_ticks: int = 0

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "direction": self.direction.value,
            "turn": self.turn_intent.value,
            "kind": self.kind.value,
            "position": self.position,
            "speed": self.speed,
            "wait_ticks": self.wait_ticks,
        }


@dataclass
class MotionResult:
    """What one motion step did."""

    exited: Dict[Direction, int] = field(default_factory=lambda: {d: 0 for d in ROTATION})
    exited_wait_ticks: int = 0
    blocked: int = 0

    @property
    def exited_total(self) -> int:
        return sum(self.exited.values())


class VehiclePool:
    """Dense arena of in-flight vehicles.

    Parameters
    ----------
    capacity : int
        Initial number of preallocated rows.
    """

    def __init__(self, capacity: int = INITIAL_CAPACITY) -> None:
        self._capacity = max(1, int(capacity))
        self._next_id = 0
        self._alloc(self._capacity)
        self._size = 0

    def _alloc(self, capacity: int) -> None:
        self._ids = np.zeros(capacity, dtype=np.int64)
        self._dir = np.zeros(capacity, dtype=np.int8)
        self._turn = np.zeros(capacity, dtype=np.int8)
        self._kind = np.zeros(capacity, dtype=np.int8)
        self._pos = np.zeros(capacity, dtype=np.float64)
        self._speed = np.zeros(capacity, dtype=np.float64)
        self._wait = np.zeros(capacity, dtype=np.int64)

    def _columns(self) -> List[np.ndarray]:
        return [self._ids, self._dir, self._turn, self._kind, self._pos, self._speed, self._wait]

    def _grow(self) -> None:
        old = self._columns()
        self._capacity *= 2
        self._alloc(self._capacity)
        for dst, src in zip(self._columns(), old):
            dst[: self._size] = src[: self._size]
        if self._capacity > GROWTH_WARN_CAPACITY:
            log.warning(
                "vehicle pool grew to %d rows (%d in flight); spawn rate outpaces green time",
                self._capacity, self._size,
            )

    # ── mutation ──────────────────────────────────────────────────────────

    def add(
        self,
        direction: Direction,
        turn_intent: TurnIntent = TurnIntent.STRAIGHT,
        kind: VehicleKind = VehicleKind.CAR,
        position: float = 0.0,
        speed: float = 1.0,
    ) -> int:
        """Append one vehicle and return its id."""
        if self._size == self._capacity:
            self._grow()
        i = self._size
        vid = self._next_id
        self._next_id += 1
        self._ids[i] = vid
        self._dir[i] = direction.index
        self._turn[i] = TURN_INTENTS.index(turn_intent)
        self._kind[i] = VEHICLE_KINDS.index(kind)
        self._pos[i] = max(0.0, float(position))
        self._speed[i] = float(speed)
        self._wait[i] = 0
        self._size += 1
        return vid

    def clear(self) -> None:
        self._size = 0

    def step(self, phases: Mapping[Direction, SignalPhase], policy: SignalPolicy) -> MotionResult:
        """Advance every vehicle one motion tick and drop those past the exit.

        A vehicle on a non-green approach that has not reached
        ``policy.approach_limit`` is held at ``policy.stop_line`` (it never
        moves forward, and one caught between the stop line and the
        approach limit is pulled back onto the line).  Everything else
        advances by its speed.
        """
        result = MotionResult()
        n = self._size
        if n == 0:
            return result

        green = np.array([phases[d] is SignalPhase.GREEN for d in ROTATION], dtype=bool)
        pos = self._pos[:n]
        dirs = self._dir[:n]

        blocked = ~green[dirs] & (pos < policy.approach_limit)
        pos[:] = np.where(blocked, np.minimum(pos, policy.stop_line), pos + self._speed[:n])
        self._wait[:n] += blocked
        result.blocked = int(blocked.sum())

        keep = pos < policy.exit_threshold
        gone = ~keep
        if gone.any():
            per_dir = np.bincount(dirs[gone], minlength=len(ROTATION))
            result.exited = {d: int(per_dir[d.index]) for d in ROTATION}
            result.exited_wait_ticks = int(self._wait[:n][gone].sum())
            kept = int(keep.sum())
            for col in self._columns():
                col[:kept] = col[:n][keep]
            self._size = kept
        return result

    # ── queries ───────────────────────────────────────────────────────────

    @property
    def size(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Vehicle]:
        return iter(self.vehicles())

    def __contains__(self, vehicle_id: object) -> bool:
        return bool(np.any(self._ids[: self._size] == vehicle_id))

    def waiting_counts(self, approach_limit: float) -> Dict[Direction, int]:
        """Demand counter: vehicles per direction still before *approach_limit*."""
        n = self._size
        queued = self._dir[:n][self._pos[:n] < approach_limit]
        per_dir = np.bincount(queued, minlength=len(ROTATION))
        return {d: int(per_dir[d.index]) for d in ROTATION}

    def count_by_direction(self) -> Dict[Direction, int]:
        per_dir = np.bincount(self._dir[: self._size], minlength=len(ROTATION))
        return {d: int(per_dir[d.index]) for d in ROTATION}

    def get(self, vehicle_id: int) -> Vehicle:
        hits = np.flatnonzero(self._ids[: self._size] == vehicle_id)
        if hits.size == 0:
            raise KeyError(vehicle_id)
        return self._row(int(hits[0]))

    def vehicles(self) -> List[Vehicle]:
        return [self._row(i) for i in range(self._size)]

    def _row(self, i: int) -> Vehicle:
        return Vehicle(
            id=int(self._ids[i]),
            direction=ROTATION[int(self._dir[i])],
            turn_intent=TURN_INTENTS[int(self._turn[i])],
            kind=VEHICLE_KINDS[int(self._kind[i])],
            position=float(self._pos[i]),
            speed=float(self._speed[i]),
            wait_ticks=int(self._wait[i]),
        )
