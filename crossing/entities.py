"""
crossing/entities.py
====================
Enums and immutable records shared by every part of the intersection core.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Tuple


class Direction(Enum):
    """Approach arm of the intersection."""
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"

    @property
    def index(self) -> int:
        """Position in :data:`ROTATION` (also the arena's direction code)."""
        return ROTATION.index(self)

    def next(self) -> "Direction":
        """Rotation successor (N → E → S → W → N)."""
        return ROTATION[(self.index + 1) % len(ROTATION)]

    @classmethod
    def parse(cls, value: str) -> "Direction":
        """Accept ``'north'``, ``'NORTH'`` or ``'N'``."""
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value, member.value[0]):
                return member
        raise ValueError(f"unknown direction: {value!r}")


ROTATION: Tuple[Direction, ...] = (
    Direction.NORTH,
    Direction.EAST,
    Direction.SOUTH,
    Direction.WEST,
)


def rotation_after(direction: Direction) -> Tuple[Direction, ...]:
    """The three other directions in rotation order, starting after *direction*."""
    start = direction.index
    return tuple(ROTATION[(start + k) % len(ROTATION)] for k in range(1, len(ROTATION)))


class SignalPhase(Enum):
    """Colour shown to one approach."""
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"


class TurnIntent(Enum):
    """Intended manoeuvre; informational only (no turn-conflict modelling)."""
    STRAIGHT = "straight"
    LEFT = "left"
    RIGHT = "right"


TURN_INTENTS: Tuple[TurnIntent, ...] = tuple(TurnIntent)


class VehicleKind(Enum):
    """Body type, only used by renderers."""
    CAR = "car"
    SUV = "suv"
    VAN = "van"
    TRUCK = "truck"
    BUS = "bus"
    SPORTS = "sports"


VEHICLE_KINDS: Tuple[VehicleKind, ...] = tuple(VehicleKind)

# (lower bound, label); first match from the top wins
_DENSITY_LABELS: Tuple[Tuple[int, str], ...] = (
    (15, "Heavy"),
    (8, "Moderate"),
    (3, "Light"),
    (0, "Clear"),
)


def density_label(count: int) -> str:
    """Human-readable traffic density for a waiting count."""
    for lower, label in _DENSITY_LABELS:
        if count >= lower:
            return label
    return "Clear"


@dataclass(frozen=True)
class DirectionState:
    """Signal state of one approach.

    Attributes
    ----------
    phase : SignalPhase
        Current colour.
    countdown : int
        Seconds left in the phase (green → before yellow, yellow → before
        red, unused on red).
    waiting_count : int
        Vehicles inside the approach zone, written by the demand counter.
    """

    phase: SignalPhase = SignalPhase.RED
    countdown: int = 0
    waiting_count: int = 0

    @property
    def density(self) -> str:
        return density_label(self.waiting_count)

    def with_phase(self, phase: SignalPhase, countdown: int) -> "DirectionState":
        return replace(self, phase=phase, countdown=max(0, int(countdown)))

    def as_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "countdown": self.countdown,
            "waiting_count": self.waiting_count,
            "density": self.density,
        }


DirectionTable = Dict[Direction, DirectionState]
