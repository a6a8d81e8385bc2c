"""
crossing — Adaptive intersection core
=====================================

Modules
-------
entities
    :class:`Direction`, :class:`SignalPhase`, :class:`TurnIntent`,
    :class:`VehicleKind` enums and the immutable :class:`DirectionState`.
signal_policy
    :class:`SignalPolicy` tunable constants with start-up validation.
decision
    :func:`decide` pure switch policy and :func:`green_duration`.
controller
    :class:`SignalController` phase state machine (sole phase writer).
vehicles
    :class:`VehiclePool` arena, motion step and demand counter.
spawner
    :class:`Spawner` per-direction Bernoulli arrivals.
scheduler
    :class:`PeriodicTask` background tick threads.
simulation
    :class:`IntersectionSim` state owner and observation surface.
metrics
    :class:`SimMetrics` counter snapshot.
report
    Headless virtual-clock runs collected into a ``pandas.DataFrame``.
"""

from .errors import ConfigError, CrossingError, InvariantError
from .entities import Direction, DirectionState, SignalPhase, TurnIntent, VehicleKind
from .signal_policy import SignalPolicy
from .decision import Decision, DecisionRule, decide, green_duration
from .controller import SignalController
from .vehicles import VehiclePool
from .spawner import Spawner
from .metrics import SimMetrics
from .simulation import IntersectionSim

__all__ = [
    "ConfigError",
    "CrossingError",
    "InvariantError",
    "Direction",
    "DirectionState",
    "SignalPhase",
    "TurnIntent",
    "VehicleKind",
    "SignalPolicy",
    "Decision",
    "DecisionRule",
    "decide",
    "green_duration",
    "SignalController",
    "VehiclePool",
    "Spawner",
    "SimMetrics",
    "IntersectionSim",
]
