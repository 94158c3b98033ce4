"""Phase graph."""

from __future__ import annotations

import pytest

from escrow_spec.errors import ErrorCode, SpecError
from escrow_spec.phases import TERMINAL, TRANSITIONS, advance, can_advance, is_forward_walk
from escrow_spec.state_transition import create_deal
from escrow_spec.test_accounts import ARBITRATOR, BUYER, SELLER
from escrow_spec.types import Phase, StateChanged


def test_graph_covers_every_phase() -> None:
    assert set(TRANSITIONS) == set(Phase)
    assert TRANSITIONS[TERMINAL] == frozenset()


def test_graph_only_moves_forward() -> None:
    for current, targets in TRANSITIONS.items():
        for target in targets:
            assert target > current


@pytest.mark.parametrize(
    "current,target",
    [
        (Phase.AWAITING_PAYMENT, Phase.DELIVERED),
        (Phase.DELIVERED, Phase.DISPUTED),
        (Phase.DELIVERED, Phase.REFUND_TO_BUYER),
        (Phase.COMPLETE, Phase.AWAITING_PAYMENT),
        (Phase.AWAITING_DELIVERY, Phase.AWAITING_DELIVERY),
    ],
)
def test_illegal_edges(current: Phase, target: Phase) -> None:
    assert not can_advance(current, target)


def test_advance_records_event() -> None:
    state = create_deal(SELLER, BUYER, ARBITRATOR, 1)
    advance(state, Phase.AWAITING_DELIVERY)
    assert state.deal.phase == Phase.AWAITING_DELIVERY
    assert state.events == [StateChanged(Phase.AWAITING_DELIVERY)]


def test_advance_rejects_illegal_edge() -> None:
    state = create_deal(SELLER, BUYER, ARBITRATOR, 1)
    with pytest.raises(SpecError) as exc:
        advance(state, Phase.COMPLETE)
    assert exc.value.code == ErrorCode.INTERNAL_ERROR
    assert state.events == []


def test_is_forward_walk() -> None:
    assert is_forward_walk([Phase.AWAITING_DELIVERY, Phase.DISPUTED, Phase.REFUND_TO_BUYER])
    assert is_forward_walk([])
    assert not is_forward_walk([Phase.AWAITING_DELIVERY, Phase.AWAITING_DELIVERY])
    assert not is_forward_walk([Phase.DELIVERED])
