"""Deal phase graph.

Every phase change goes through `advance`, which only follows edges of the
graph below and records a `StateChanged` event.
"""

from __future__ import annotations

from .errors import ErrorCode, SpecError
from .types import EscrowState, Phase, StateChanged

TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.AWAITING_PAYMENT: frozenset({Phase.AWAITING_DELIVERY}),
    Phase.AWAITING_DELIVERY: frozenset({Phase.DELIVERED, Phase.DISPUTED}),
    Phase.DELIVERED: frozenset({Phase.RELEASED_TO_SELLER}),
    Phase.DISPUTED: frozenset({Phase.RELEASED_TO_SELLER, Phase.REFUND_TO_BUYER}),
    Phase.RELEASED_TO_SELLER: frozenset({Phase.COMPLETE}),
    Phase.REFUND_TO_BUYER: frozenset({Phase.COMPLETE}),
    Phase.COMPLETE: frozenset(),
}

TERMINAL = Phase.COMPLETE


def can_advance(current: Phase, target: Phase) -> bool:
    return target in TRANSITIONS[current]


def advance(state: EscrowState, target: Phase) -> None:
    current = state.deal.phase
    if not can_advance(current, target):
        raise SpecError(
            ErrorCode.INTERNAL_ERROR,
            f"illegal transition {current.name} -> {target.name}",
        )
    state.deal.phase = target
    state.events.append(StateChanged(target))


def is_forward_walk(phases: list[Phase], start: Phase = Phase.AWAITING_PAYMENT) -> bool:
    """True if `phases` is a path through the graph starting after `start`."""
    current = start
    for phase in phases:
        if not can_advance(current, phase):
            return False
        current = phase
    return True
