"""Claim spec: pay the custodied balance to the entitled party."""

from __future__ import annotations

from typing import Mapping, Optional

from ..access import entitled_party, require_entitled, require_phase
from ..assets import ReceiveHook, held_balance, settle
from ..errors import ErrorCode, SpecError
from ..phases import advance
from ..types import Call, EscrowState, Operation, Phase, Withdraw


def verify(state: EscrowState, call: Call) -> None:
    if call.op != Operation.CLAIM_FUNDS:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported claim op: {call.op}")
    deal = state.deal
    require_phase(deal, Phase.RELEASED_TO_SELLER, Phase.REFUND_TO_BUYER)
    require_entitled(deal, call.sender)


def apply(
    state: EscrowState,
    call: Call,
    hooks: Optional[Mapping[bytes, ReceiveHook]] = None,
) -> EscrowState:
    recipient = entitled_party(state.deal)
    if recipient is None:
        raise SpecError(ErrorCode.INCORRECT_PHASE, "nothing to claim")
    amount = held_balance(state)

    # Phase is final before any value leaves custody; a re-entrant claim from
    # the recipient's hook sees COMPLETE.
    advance(state, Phase.COMPLETE)
    settle(state, recipient, amount, hooks)
    state.events.append(Withdraw(recipient, amount))
    return state
