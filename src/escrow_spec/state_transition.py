"""State transition entrypoints for the escrow spec."""

from __future__ import annotations

from copy import deepcopy
from typing import Mapping, Optional

from .assets import ReceiveHook
from .config import MAX_CALLS_PER_SEQUENCE, NATIVE_COIN_ADDRESS
from .errors import ErrorCode, SpecError
from .ops import claim as op_claim
from .ops import create as op_create
from .ops import delivery as op_delivery
from .ops import deposit as op_deposit
from .ops import dispute as op_dispute
from .types import PAYABLE_OPERATIONS, Call, EscrowState, LedgerState, Operation

_DEPOSIT_OPS = frozenset({
    Operation.DEPOSIT_NATIVE,
    Operation.DEPOSIT_TOKEN,
})

_DELIVERY_OPS = frozenset({
    Operation.MARK_AS_DELIVERED,
    Operation.CONFIRM_DELIVERY,
})

_DISPUTE_OPS = frozenset({
    Operation.CALL_DISPUTE,
    Operation.UNLOCK_FUNDS,
    Operation.ABORT_DEAL,
})

Hooks = Optional[Mapping[bytes, ReceiveHook]]


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(self, ok: bool, error: Optional[SpecError] = None):
        self.ok = ok
        self.error = error

    @classmethod
    def success(cls) -> "TransitionResult":
        return cls(True, None)

    @classmethod
    def failure(cls, error: SpecError) -> "TransitionResult":
        return cls(False, error)

    def __repr__(self) -> str:
        if self.ok:
            return "TransitionResult(ok)"
        return f"TransitionResult(error={self.error})"


def create_deal(
    seller: bytes,
    buyer: bytes,
    arbitrator: bytes,
    price: int,
    asset_address: bytes = NATIVE_COIN_ADDRESS,
    ledger: Optional[LedgerState] = None,
    salt: int = 0,
) -> EscrowState:
    """Validate construction parameters and build a fresh deal state."""
    op_create.verify(seller, buyer, arbitrator, price, asset_address, salt)
    return op_create.apply(seller, buyer, arbitrator, price, asset_address, ledger, salt)


def _dispatch_verify(state: EscrowState, call: Call) -> None:
    op = call.op
    if op in _DEPOSIT_OPS:
        return op_deposit.verify(state, call)
    if op in _DELIVERY_OPS:
        return op_delivery.verify(state, call)
    if op in _DISPUTE_OPS:
        return op_dispute.verify(state, call)
    if op == Operation.CLAIM_FUNDS:
        return op_claim.verify(state, call)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"verify not implemented for {op}")


def _dispatch_apply(state: EscrowState, call: Call, hooks: Hooks) -> EscrowState:
    op = call.op
    if op in _DEPOSIT_OPS:
        return op_deposit.apply(state, call, hooks)
    if op in _DELIVERY_OPS:
        return op_delivery.apply(state, call, hooks)
    if op in _DISPUTE_OPS:
        return op_dispute.apply(state, call, hooks)
    if op == Operation.CLAIM_FUNDS:
        return op_claim.apply(state, call, hooks)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"apply not implemented for {op}")


def _verify_common(state: EscrowState, call: Call) -> None:
    if not isinstance(call.op, Operation):
        raise SpecError(ErrorCode.INVALID_TYPE, f"unknown operation: {call.op!r}")
    if not isinstance(call.value, int) or call.value < 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "call value must be >= 0")
    if call.value and call.op not in PAYABLE_OPERATIONS:
        raise SpecError(ErrorCode.NOT_PAYABLE, f"{call.op.value} does not accept value")


def execute(state: EscrowState, call: Call, hooks: Hooks = None) -> EscrowState:
    """Verify and apply `call` in place.

    Raises on the first failure; the caller owns rollback of `state`.
    """
    _verify_common(state, call)
    _dispatch_verify(state, call)
    return _dispatch_apply(state, call, hooks)


def verify_call(state: EscrowState, call: Call) -> TransitionResult:
    """Check a call against the current state without applying it."""
    try:
        _verify_common(state, call)
        _dispatch_verify(state, call)
        return TransitionResult.success()
    except SpecError as exc:
        return TransitionResult.failure(exc)


def apply_call(
    state: EscrowState, call: Call, hooks: Hooks = None
) -> tuple[EscrowState, TransitionResult]:
    """Apply a call to a copy of `state`.

    On failure the input state is returned unchanged.
    """
    working = deepcopy(state)
    try:
        working = execute(working, call, hooks)
    except SpecError as exc:
        return state, TransitionResult.failure(exc)
    return working, TransitionResult.success()


def apply_calls(
    state: EscrowState, calls: list[Call], hooks: Hooks = None
) -> tuple[EscrowState, TransitionResult]:
    """Apply calls in order (sequence-atomic semantics).

    If any call fails, the whole sequence is rejected and the state is
    unchanged.
    """
    if len(calls) > MAX_CALLS_PER_SEQUENCE:
        return state, TransitionResult.failure(
            SpecError(ErrorCode.INVALID_PAYLOAD, "too many calls in sequence")
        )
    working = state
    for call in calls:
        working, result = apply_call(working, call, hooks)
        if not result.ok:
            return state, result
    return working, TransitionResult.success()
