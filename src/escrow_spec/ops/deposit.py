"""Deposit specs (native coin and token)."""

from __future__ import annotations

from typing import Mapping, Optional

from ..access import require_phase
from ..assets import ReceiveHook, collect
from ..errors import ErrorCode, SpecError
from ..phases import advance
from ..types import Call, Deposit, EscrowState, NativeCoin, Operation, Phase, Token


def verify(state: EscrowState, call: Call) -> None:
    deal = state.deal
    require_phase(deal, Phase.AWAITING_PAYMENT)

    if call.op == Operation.DEPOSIT_NATIVE:
        if isinstance(deal.asset, Token):
            raise SpecError(
                ErrorCode.AWAITING_ERC20,
                "deal is paid in tokens",
                {"token": deal.asset.address.hex()},
            )
        if call.value != deal.price:
            raise SpecError(
                ErrorCode.ONLY_EXACT_AMOUNT,
                "deposit must equal the price exactly",
                {"expected": deal.price, "actual": call.value},
            )
    elif call.op == Operation.DEPOSIT_TOKEN:
        if isinstance(deal.asset, NativeCoin):
            raise SpecError(ErrorCode.AWAITING_ETH, "deal is paid in native coin")
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported deposit op: {call.op}")


def apply(
    state: EscrowState,
    call: Call,
    hooks: Optional[Mapping[bytes, ReceiveHook]] = None,
) -> EscrowState:
    price = state.deal.price
    state.events.append(Deposit(call.sender, price))
    advance(state, Phase.AWAITING_DELIVERY)
    collect(state, call.sender, price, call.value)
    return state
