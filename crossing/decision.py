"""
crossing/decision.py
====================
Demand-sensitive switch policy.

:func:`decide` is a pure function of the per-direction waiting counts and
the active approach's phase/countdown.  It never touches controller state;
:class:`~crossing.controller.SignalController` applies the result.

Rules, first match wins:

1. emergency override
2. starvation release
3. high-demand preemption
4. natural cycle end
5. hold

Each switch carries a one-line reason for the decision log, formatted as
``"<why> | north->east (1->10 vehicles)"``: plain ASCII ``->`` arrows and
no source prefix, so log lines stay greppable and safe for any console
encoding.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Sequence

from crossing.entities import Direction, SignalPhase, rotation_after
from crossing.signal_policy import SignalPolicy


class DecisionRule(Enum):
    """Which rule produced a :class:`Decision`."""
    EMERGENCY = "emergency"
    STARVATION_RELEASE = "starvation_release"
    HIGH_DEMAND = "high_demand"
    CYCLE_END = "cycle_end"
    HOLD = "hold"


@dataclass(frozen=True)
class Decision:
    """Outcome of one policy evaluation.

    ``switch_to`` is *None* for :attr:`DecisionRule.HOLD`, in which case
    ``green_duration`` is 0.
    """

    switch_to: Optional[Direction]
    green_duration: int
    rule: DecisionRule
    reason: str = ""

    @property
    def is_switch(self) -> bool:
        return self.switch_to is not None


HOLD = Decision(switch_to=None, green_duration=0, rule=DecisionRule.HOLD)


def green_duration(target_count: int, policy: SignalPolicy) -> int:
    """Green seconds for an approach with *target_count* waiting vehicles."""
    raw = int(target_count) * policy.seconds_per_vehicle
    return max(policy.min_green_s, min(policy.max_green_s, raw))


def _pick(candidates: Sequence[Direction], counts: Mapping[Direction, int]) -> Direction:
    """Highest count wins; ties keep the earlier entry (rotation order)."""
    best = candidates[0]
    for direction in candidates[1:]:
        if counts[direction] > counts[best]:
            best = direction
    return best


def decide(
    counts: Mapping[Direction, int],
    active: Direction,
    phase: SignalPhase,
    countdown: int,
    policy: SignalPolicy,
) -> Decision:
    """Evaluate the switch rules for one signal tick.

    Parameters
    ----------
    counts : Mapping[Direction, int]
        Waiting vehicles per approach; missing directions count as 0.
    active : Direction
        Approach that last received a green.
    phase, countdown
        Current phase and remaining seconds of *active*.
    policy : SignalPolicy
        Thresholds, windows and green clamps.
    """
    counts = {d: max(0, int(counts.get(d, 0))) for d in Direction}
    active_count = counts[active]
    others = rotation_after(active)

    # Rules 1-3 are demand driven and stay silent on an empty intersection.
    if any(counts.values()):
        emergency = [d for d in others if counts[d] >= policy.emergency_threshold]
        if emergency:
            target = _pick(emergency, counts)
            return _switch(
                target, counts, active, DecisionRule.EMERGENCY,
                f"Emergency switch - {counts[target]} vehicles waiting", policy,
            )

        if active_count == 0 and countdown <= policy.early_release_window_s:
            return _switch(
                active.next(), counts, active, DecisionRule.STARVATION_RELEASE,
                "No vehicles in current direction", policy,
            )

        if countdown <= policy.preempt_window_s:
            demanding = [d for d in others if counts[d] >= active_count + policy.demand_margin]
            if demanding:
                target = _pick(demanding, counts)
                return _switch(
                    target, counts, active, DecisionRule.HIGH_DEMAND,
                    f"High demand - {counts[target]} vs {active_count} vehicles", policy,
                )

    if phase is SignalPhase.RED and countdown <= 0:
        return _switch(
            active.next(), counts, active, DecisionRule.CYCLE_END,
            "Natural cycle completion", policy,
        )

    return HOLD


def _switch(
    target: Direction,
    counts: Mapping[Direction, int],
    active: Direction,
    rule: DecisionRule,
    why: str,
    policy: SignalPolicy,
) -> Decision:
    reason = (
        f"{why} | {active.value}->{target.value} "
        f"({counts[active]}->{counts[target]} vehicles)"
    )
    return Decision(
        switch_to=target,
        green_duration=green_duration(counts[target], policy),
        rule=rule,
        reason=reason,
    )
