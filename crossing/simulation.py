"""
crossing/simulation.py
======================
State owner tying :mod:`crossing.controller`, :mod:`crossing.vehicles` and
:mod:`crossing.spawner` together behind one lock.  Three
:class:`~crossing.scheduler.PeriodicTask` threads drive the signal, spawn
and motion ticks; renderers and the HTTP surface poll
:meth:`IntersectionSim.get_snapshot` without blocking the ticks for long.

Public API
----------
* ``start(config=None)`` / ``stop()`` / ``is_running()`` → lifecycle
* ``get_snapshot()``                                 → ``dict``
* ``signal_tick()`` / ``spawn_tick()`` / ``motion_tick()`` → manual stepping
* ``reset()``                                        → ``None``
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Mapping, Union

from crossing.controller import SignalController
from crossing.decision import Decision
from crossing.entities import Direction, SignalPhase, TurnIntent
from crossing.metrics import SimMetrics
from crossing.scheduler import PeriodicTask
from crossing.signal_policy import SignalPolicy
from crossing.spawner import Spawner
from crossing.vehicles import MotionResult, VehiclePool

log = logging.getLogger("simulation")

PolicyLike = Union[SignalPolicy, Mapping[str, Any], None]


def as_policy(config: PolicyLike) -> SignalPolicy:
    """Accept a ready policy, a mapping of overrides, or *None* for defaults."""
    if isinstance(config, SignalPolicy):
        return config
    return SignalPolicy.from_mapping(config)


class IntersectionSim:
    """Single synchronised owner of the intersection state.

    Every tick acquires the lock, mutates, and releases before returning,
    so the demand counter's write and the decision engine's read of the
    waiting counts never interleave.

    Parameters
    ----------
    policy : SignalPolicy, mapping or None
        Tunable constants (see :class:`SignalPolicy`).
    """

    def __init__(self, policy: PolicyLike = None) -> None:
        self._lock = threading.Lock()
        # Guards start/stop only; never taken by a tick.
        self._lifecycle = threading.Lock()
        self._tasks: List[PeriodicTask] = []
        self._build(as_policy(policy))

    def _build(self, policy: SignalPolicy) -> None:
        self.policy = policy
        self._controller = SignalController(policy)
        self._pool = VehiclePool()
        self._spawner = Spawner(policy)
        self._metrics = SimMetrics()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self, config: PolicyLike = None) -> bool:
        """Start the three tick threads.

        When *config* is given the state is rebuilt from it first; an
        invalid configuration raises :class:`~crossing.errors.ConfigError`
        before any thread starts.

        Returns
        -------
        bool
            *False* when the simulation was already running (nothing changed).
        """
        with self._lifecycle:
            if self.is_running():
                log.warning("start ignored: simulation already running")
                return False
            if config is not None:
                policy = as_policy(config)
                with self._lock:
                    self._build(policy)
            self._tasks = [
                PeriodicTask("signal-tick", self.policy.signal_period_s, self.signal_tick),
                PeriodicTask("spawn-tick", self.policy.spawn_period_s, self.spawn_tick),
                PeriodicTask("motion-tick", self.policy.motion_period_s, self.motion_tick),
            ]
            for task in self._tasks:
                task.start()
        log.info("simulation started (seed=%s)", self.policy.seed)
        return True

    def stop(self) -> None:
        """Halt all tick threads; each finishes its current tick first."""
        with self._lifecycle:
            for task in self._tasks:
                task.stop()
            self._tasks = []
        log.info("simulation stopped")

    def is_running(self) -> bool:
        return any(task.running for task in self._tasks)

    def reset(self) -> None:
        """Re-initialise controller, pool and metrics with the current policy."""
        with self._lock:
            self._build(self.policy)
        log.info("simulation reset")

    # ── Ticks ─────────────────────────────────────────────────────────────────

    def _phases(self) -> Dict[Direction, SignalPhase]:
        return {d: st.phase for d, st in self._controller.table.items()}

    def signal_tick(self) -> Decision:
        with self._lock:
            decision = self._controller.tick()
            if decision.is_switch:
                self._metrics.record_switch(decision.rule)
        return decision

    def spawn_tick(self) -> List[int]:
        with self._lock:
            spawned = self._spawner.tick(self._pool, self._phases())
            self._metrics.spawned += len(spawned)
        return spawned

    def motion_tick(self) -> MotionResult:
        with self._lock:
            result = self._pool.step(self._phases(), self.policy)
            self._metrics.record_exits(result.exited, result.exited_wait_ticks)
            self._controller.update_waiting_counts(
                self._pool.waiting_counts(self.policy.approach_limit)
            )
        return result

    # ── Direct access (tests, headless runs) ─────────────────────────────────

    @property
    def controller(self) -> SignalController:
        return self._controller

    @property
    def pool(self) -> VehiclePool:
        return self._pool

    @property
    def metrics(self) -> SimMetrics:
        return self._metrics

    def add_vehicle(
        self,
        direction: Direction,
        position: float = 0.0,
        turn_intent: TurnIntent = TurnIntent.STRAIGHT,
    ) -> int:
        """Place a vehicle directly and refresh demand (fixtures, scripted scenarios)."""
        with self._lock:
            vid = self._pool.add(
                direction,
                turn_intent=turn_intent,
                position=position,
                speed=self.policy.vehicle_speed,
            )
            self._metrics.spawned += 1
            self._controller.update_waiting_counts(
                self._pool.waiting_counts(self.policy.approach_limit)
            )
        return vid

    # ── Observation surface ──────────────────────────────────────────────────

    def get_snapshot(self, include_vehicles: bool = True) -> Dict[str, Any]:
        """Consistent copy of everything a renderer needs."""
        with self._lock:
            snap = self._controller.snapshot()
            waiting = sum(self._controller.waiting_counts().values())
            elapsed_s = self._controller.ticks * self.policy.signal_period_s
            snap["tick"] = self._controller.ticks
            snap["total_vehicles"] = len(self._pool)
            snap["total_waiting"] = waiting
            snap["efficiency"] = SimMetrics.efficiency(waiting)
            metrics = self._metrics.report()
            metrics["throughput_per_min"] = round(self._metrics.throughput_per_min(elapsed_s), 2)
            snap["metrics"] = metrics
            if include_vehicles:
                snap["vehicles"] = [v.as_dict() for v in self._pool.vehicles()]
        snap["running"] = self.is_running()
        return snap

    def describe(self) -> str:
        """One-line status for console logging."""
        snap = self.get_snapshot(include_vehicles=False)
        parts = [
            f"{name[0].upper()}:{st['phase'][0].upper()}{st['countdown']:>2}/{st['waiting_count']}"
            for name, st in snap["directions"].items()
        ]
        return f"t={snap['tick']} active={snap['active_direction']} " + " ".join(parts)
