"""Delivery specs (mark delivered / confirm delivery)."""

from __future__ import annotations

from typing import Mapping, Optional

from ..access import require_buyer, require_phase, require_seller
from ..assets import ReceiveHook
from ..errors import ErrorCode, SpecError
from ..phases import advance
from ..types import Call, EscrowState, Operation, Phase


def verify(state: EscrowState, call: Call) -> None:
    deal = state.deal
    if call.op == Operation.MARK_AS_DELIVERED:
        require_phase(deal, Phase.AWAITING_DELIVERY)
        require_seller(deal, call.sender)
    elif call.op == Operation.CONFIRM_DELIVERY:
        require_phase(deal, Phase.DELIVERED)
        require_buyer(deal, call.sender)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported delivery op: {call.op}")


def apply(
    state: EscrowState,
    call: Call,
    hooks: Optional[Mapping[bytes, ReceiveHook]] = None,
) -> EscrowState:
    if call.op == Operation.MARK_AS_DELIVERED:
        advance(state, Phase.DELIVERED)
    elif call.op == Operation.CONFIRM_DELIVERY:
        advance(state, Phase.RELEASED_TO_SELLER)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported delivery op: {call.op}")
    return state
