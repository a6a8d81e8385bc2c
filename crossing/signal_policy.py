#!/usr/bin/env python3
"""
crossing/signal_policy.py
=========================
Tunable decision, geometry, spawn and scheduling parameters for the
intersection.  Every constant lives in the frozen :class:`SignalPolicy`
dataclass so that experiments can swap policies without touching code.

The policy validates itself on construction: a bad value raises
:class:`~crossing.errors.ConfigError` at start-up instead of being clamped
into odd behaviour while the simulation runs.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from crossing.entities import Direction
from crossing.errors import ConfigError

_INT_FIELDS = frozenset({
    "emergency_threshold", "early_release_window_s", "demand_margin",
    "preempt_window_s", "seconds_per_vehicle", "min_green_s", "max_green_s",
    "yellow_s", "initial_green_s",
})
_FLOAT_FIELDS = frozenset({
    "approach_limit", "stop_line", "exit_threshold", "vehicle_speed",
    "spawn_north", "spawn_south", "spawn_east", "spawn_west",
    "red_spawn_bias", "turn_left_share", "turn_right_share",
    "signal_period_s", "spawn_period_s", "motion_period_s",
})


@dataclass(frozen=True)
class SignalPolicy:
    """Immutable bag of every tunable simulation parameter.

    Groups: decision engine, signal timing, geometry, spawner,
    scheduling, initial state.
    """

    # ── Decision engine ───────────────────────────────────────────────────
    emergency_threshold: int = 10
    """Waiting vehicles on a non-active approach that force an immediate switch."""

    early_release_window_s: int = 8
    """Countdown at or below which an empty active approach is released."""

    demand_margin: int = 3
    """Lead (in vehicles) another approach needs over the active one to preempt."""

    preempt_window_s: int = 10
    """Countdown at or below which high-demand preemption may fire."""

    seconds_per_vehicle: int = 2
    """Green seconds granted per waiting vehicle on the target approach."""

    # ── Signal timing ─────────────────────────────────────────────────────
    min_green_s: int = 12
    """Lower clamp on any granted green."""

    max_green_s: int = 50
    """Upper clamp on any granted green."""

    yellow_s: int = 2
    """Fixed yellow duration after a green runs out."""

    # ── Geometry (source units along the approach path) ───────────────────
    approach_limit: float = 45.0
    """Entry into the intersection footprint; vehicles before it count as waiting."""

    stop_line: float = 42.0
    """Where blocked vehicles are held on a non-green signal."""

    exit_threshold: float = 100.0
    """Vehicles at or beyond this position leave the pool."""

    vehicle_speed: float = 1.0
    """Advance per motion tick when unobstructed."""

    # ── Spawner ───────────────────────────────────────────────────────────
    spawn_north: float = 0.7
    spawn_south: float = 0.7
    spawn_east: float = 0.5
    spawn_west: float = 0.5

    red_spawn_bias: float = 1.5
    """Multiplier on the spawn probability while the approach is red (queue pressure)."""

    turn_left_share: float = 0.20
    turn_right_share: float = 0.15

    # ── Scheduling ────────────────────────────────────────────────────────
    signal_period_s: float = 0.8
    spawn_period_s: float = 1.2
    motion_period_s: float = 0.15

    # ── Initial state ─────────────────────────────────────────────────────
    initial_direction: Direction = Direction.NORTH
    initial_green_s: int = 20

    seed: Optional[int] = None
    """Spawner RNG seed; *None* draws from system entropy."""

    def __post_init__(self) -> None:
        if not isinstance(self.initial_direction, Direction):
            try:
                direction = Direction.parse(self.initial_direction)
            except ValueError as exc:
                raise ConfigError(str(exc)) from exc
            object.__setattr__(self, "initial_direction", direction)
        self.validate()

    # ── validation ────────────────────────────────────────────────────────

    def validate(self) -> None:
        """Raise :class:`ConfigError` for the first inconsistent value."""
        self._check_types()
        for name in ("emergency_threshold", "demand_margin", "seconds_per_vehicle",
                     "min_green_s", "yellow_s", "initial_green_s"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be >= 1, got {getattr(self, name)}")
        for name in ("early_release_window_s", "preempt_window_s"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.min_green_s > self.max_green_s:
            raise ConfigError(
                f"min_green_s ({self.min_green_s}) cannot exceed max_green_s ({self.max_green_s})"
            )
        if not 0.0 < self.stop_line < self.approach_limit < self.exit_threshold:
            raise ConfigError(
                "geometry must satisfy 0 < stop_line < approach_limit < exit_threshold, got "
                f"{self.stop_line} / {self.approach_limit} / {self.exit_threshold}"
            )
        if self.vehicle_speed <= 0.0:
            raise ConfigError(f"vehicle_speed must be > 0, got {self.vehicle_speed}")
        for direction in Direction:
            p = self.spawn_probability(direction)
            if not 0.0 <= p <= 1.0:
                raise ConfigError(f"spawn_{direction.value} must be within [0, 1], got {p}")
        if self.red_spawn_bias < 1.0:
            raise ConfigError(f"red_spawn_bias must be >= 1, got {self.red_spawn_bias}")
        if self.turn_left_share < 0.0 or self.turn_right_share < 0.0:
            raise ConfigError("turn shares must be non-negative")
        if self.turn_left_share + self.turn_right_share > 1.0:
            raise ConfigError("turn_left_share + turn_right_share must not exceed 1")
        for name in ("signal_period_s", "spawn_period_s", "motion_period_s"):
            if getattr(self, name) <= 0.0:
                raise ConfigError(f"{name} must be > 0, got {getattr(self, name)}")

    def _check_types(self) -> None:
        # bool is an int subclass but never a meaningful setting here
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if f.name in _INT_FIELDS:
                ok = isinstance(value, int) and not isinstance(value, bool)
                expected = "an integer"
            elif f.name in _FLOAT_FIELDS:
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
                ok = ok and math.isfinite(value)
                expected = "a finite number"
            elif f.name == "seed":
                ok = value is None or (isinstance(value, int) and not isinstance(value, bool))
                expected = "an integer or None"
            else:
                continue
            if not ok:
                raise ConfigError(f"{f.name} must be {expected}, got {value!r}")

    # ── helpers ───────────────────────────────────────────────────────────

    def spawn_probability(self, direction: Direction) -> float:
        """Base Bernoulli probability for *direction* per spawn tick."""
        return getattr(self, f"spawn_{direction.value}")

    def replace(self, **overrides: Any) -> "SignalPolicy":
        """Validated copy with *overrides* applied."""
        unknown = set(overrides) - {f.name for f in dataclasses.fields(self)}
        if unknown:
            raise ConfigError(f"unknown policy setting(s): {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **overrides)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "SignalPolicy":
        """Build a policy from a plain mapping, ignoring ``None`` values."""
        overrides = {k: v for k, v in (data or {}).items() if v is not None}
        return cls().replace(**overrides)

    def as_dict(self) -> dict:
        data = dataclasses.asdict(self)
        data["initial_direction"] = self.initial_direction.value
        return data
