"""Dispute specs (call dispute, arbitrator resolution)."""

from __future__ import annotations

from typing import Mapping, Optional

from ..access import (
    require_arbitrator,
    require_arbitrator_set,
    require_buyer_or_seller,
    require_phase,
)
from ..assets import ReceiveHook
from ..errors import ErrorCode, SpecError
from ..phases import advance
from ..types import Call, EscrowState, Operation, Phase

_RESOLUTIONS = {
    Operation.UNLOCK_FUNDS: Phase.RELEASED_TO_SELLER,
    Operation.ABORT_DEAL: Phase.REFUND_TO_BUYER,
}


def verify(state: EscrowState, call: Call) -> None:
    deal = state.deal
    if call.op == Operation.CALL_DISPUTE:
        require_phase(deal, Phase.AWAITING_DELIVERY)
        require_arbitrator_set(deal)
        require_buyer_or_seller(deal, call.sender)
    elif call.op in _RESOLUTIONS:
        # DISPUTED is never entered without an arbitrator, so the phase check
        # also covers the unset case.
        require_phase(deal, Phase.DISPUTED)
        require_arbitrator(deal, call.sender)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported dispute op: {call.op}")


def apply(
    state: EscrowState,
    call: Call,
    hooks: Optional[Mapping[bytes, ReceiveHook]] = None,
) -> EscrowState:
    if call.op == Operation.CALL_DISPUTE:
        advance(state, Phase.DISPUTED)
    elif call.op in _RESOLUTIONS:
        advance(state, _RESOLUTIONS[call.op])
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported dispute op: {call.op}")
    return state
