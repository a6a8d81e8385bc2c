#!/usr/bin/env python3
"""
crossing/controller.py
======================
Signal-phase state machine for the four approaches.

:class:`SignalController` is the only writer of phases.  Each mutation
builds a complete new direction table and publishes it with a single
reference swap (copy-then-publish), so a reader holding
:attr:`SignalController.table` always sees a consistent table: never two
greens, never a half-applied switch.
"""

from __future__ import annotations

import logging
from collections import deque
from types import MappingProxyType
from typing import Any, Deque, Dict, List, Mapping, Optional

from crossing.decision import Decision, decide
from crossing.entities import (
    ROTATION,
    Direction,
    DirectionState,
    DirectionTable,
    SignalPhase,
)
from crossing.errors import InvariantError
from crossing.signal_policy import SignalPolicy

log = logging.getLogger("controller")

DECISION_LOG_SIZE = 5


class SignalController:
    """Per-direction phase + countdown table driven once per signal tick.

    Parameters
    ----------
    policy : SignalPolicy or None
        Timing and decision constants; defaults when *None*.
    """

    def __init__(self, policy: Optional[SignalPolicy] = None) -> None:
        self.policy = policy or SignalPolicy()
        self._decisions: Deque[str] = deque(maxlen=DECISION_LOG_SIZE)
        self._table: Mapping[Direction, DirectionState] = MappingProxyType({})
        self._active: Direction = self.policy.initial_direction
        self._ticks = 0
        self.reset()

    # ── initialisation / reset ────────────────────────────────────────────

    def reset(self) -> None:
        """Seed green on the initial direction, red everywhere else."""
        seed = self.policy.initial_direction
        table: DirectionTable = {d: DirectionState() for d in ROTATION}
        table[seed] = DirectionState(SignalPhase.GREEN, self.policy.initial_green_s)
        self._active = seed
        self._ticks = 0
        self._decisions.clear()
        self._publish(table)
        log.info("controller reset: %s green for %ds", seed.value, self.policy.initial_green_s)

    # ── queries ───────────────────────────────────────────────────────────

    @property
    def table(self) -> Mapping[Direction, DirectionState]:
        """Read-only view of the currently published table."""
        return self._table

    @property
    def active_direction(self) -> Direction:
        return self._active

    @property
    def ticks(self) -> int:
        return self._ticks

    def state(self, direction: Direction) -> DirectionState:
        return self._table[direction]

    def phase(self, direction: Direction) -> SignalPhase:
        return self._table[direction].phase

    def green_direction(self) -> Optional[Direction]:
        for direction, st in self._table.items():
            if st.phase is SignalPhase.GREEN:
                return direction
        return None

    def waiting_counts(self) -> Dict[Direction, int]:
        return {d: st.waiting_count for d, st in self._table.items()}

    def recent_decisions(self) -> List[str]:
        """Decision log, most recent last."""
        return list(self._decisions)

    def snapshot(self) -> Dict[str, Any]:
        table = self._table
        return {
            "directions": {d.value: table[d].as_dict() for d in ROTATION},
            "active_direction": self._active.value,
            "recent_decisions": list(self._decisions),
        }

    # ── writers ───────────────────────────────────────────────────────────

    def update_waiting_counts(self, counts: Mapping[Direction, int]) -> None:
        """Publish fresh demand figures from the demand counter."""
        table = {
            d: DirectionState(st.phase, st.countdown, int(counts.get(d, 0)))
            for d, st in self._table.items()
        }
        self._publish(table)

    def tick(self) -> Decision:
        """Run one signal tick: switch decision first, else countdown."""
        self._ticks += 1
        current = self._table[self._active]
        decision = decide(
            self.waiting_counts(),
            self._active,
            current.phase,
            current.countdown,
            self.policy,
        )
        if decision.is_switch:
            self._apply_switch(decision)
        else:
            self._publish(self._counted_down(self._table))
        return decision

    # ── internals ─────────────────────────────────────────────────────────

    def _apply_switch(self, decision: Decision) -> None:
        target = decision.switch_to
        table: DirectionTable = {
            d: st.with_phase(SignalPhase.RED, 0) for d, st in self._table.items()
        }
        table[target] = table[target].with_phase(SignalPhase.GREEN, decision.green_duration)
        self._publish(table)
        self._active = target
        self._decisions.append(decision.reason)
        log.info(
            "switch rule=%s target=%s green=%ds | %s",
            decision.rule.value, target.value, decision.green_duration, decision.reason,
        )

    def _counted_down(self, table: Mapping[Direction, DirectionState]) -> DirectionTable:
        nxt: DirectionTable = {}
        for direction, st in table.items():
            if st.phase is SignalPhase.GREEN:
                if st.countdown > 0:
                    st = st.with_phase(SignalPhase.GREEN, st.countdown - 1)
                else:
                    st = st.with_phase(SignalPhase.YELLOW, self.policy.yellow_s)
                    log.debug("%s green expired -> yellow %ds", direction.value, self.policy.yellow_s)
            elif st.phase is SignalPhase.YELLOW:
                if st.countdown > 0:
                    st = st.with_phase(SignalPhase.YELLOW, st.countdown - 1)
                else:
                    st = st.with_phase(SignalPhase.RED, 0)
                    log.debug("%s yellow expired -> red", direction.value)
            nxt[direction] = st
        return nxt

    def _publish(self, table: DirectionTable) -> None:
        greens = [d.value for d, st in table.items() if st.phase is SignalPhase.GREEN]
        if len(greens) > 1:
            raise InvariantError(f"more than one green approach: {greens}")
        self._table = MappingProxyType(table)
