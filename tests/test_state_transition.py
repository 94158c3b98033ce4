"""Functional entrypoints: verify_call, apply_call, apply_calls."""

from __future__ import annotations

from escrow_spec.config import MAX_CALLS_PER_SEQUENCE
from escrow_spec.errors import ErrorCode
from escrow_spec.state_transition import apply_call, apply_calls, create_deal, verify_call
from escrow_spec.test_accounts import ARBITRATOR, BUYER, SELLER, funded_ledger
from escrow_spec.types import Call, Operation, Phase

PRICE = 100


def _state():
    return create_deal(SELLER, BUYER, ARBITRATOR, PRICE, ledger=funded_ledger())


def test_verify_call_does_not_apply() -> None:
    state = _state()
    result = verify_call(state, Call(BUYER, Operation.DEPOSIT_NATIVE, PRICE))
    assert result.ok
    assert repr(result) == "TransitionResult(ok)"
    assert state.deal.phase == Phase.AWAITING_PAYMENT
    assert state.events == []


def test_verify_call_reports_error() -> None:
    result = verify_call(_state(), Call(SELLER, Operation.MARK_AS_DELIVERED))
    assert not result.ok
    assert result.error.code == ErrorCode.INCORRECT_PHASE
    assert "INCORRECT_PHASE" in repr(result)


def test_apply_call_returns_input_on_failure() -> None:
    state = _state()
    post, result = apply_call(state, Call(BUYER, Operation.DEPOSIT_NATIVE, PRICE - 1))
    assert not result.ok
    assert post is state


def test_apply_call_does_not_mutate_input() -> None:
    state = _state()
    post, result = apply_call(state, Call(BUYER, Operation.DEPOSIT_NATIVE, PRICE))
    assert result.ok
    assert post is not state
    assert state.ledger.native.get(state.deal.address, 0) == 0


def test_negative_value_rejected() -> None:
    _, result = apply_call(_state(), Call(BUYER, Operation.DEPOSIT_NATIVE, -1))
    assert result.error.code == ErrorCode.INVALID_AMOUNT


def test_unknown_operation_rejected() -> None:
    _, result = apply_call(_state(), Call(BUYER, "withdraw"))  # type: ignore[arg-type]
    assert result.error.code == ErrorCode.INVALID_TYPE


def test_sequence_is_atomic() -> None:
    state = _state()
    post, result = apply_calls(
        state,
        [
            Call(BUYER, Operation.DEPOSIT_NATIVE, PRICE),
            Call(SELLER, Operation.MARK_AS_DELIVERED),
            Call(SELLER, Operation.CONFIRM_DELIVERY),
        ],
    )
    assert result.error.code == ErrorCode.NOT_AUTHORIZED
    assert post is state
    assert post.deal.phase == Phase.AWAITING_PAYMENT


def test_sequence_length_limit() -> None:
    calls = [Call(SELLER, Operation.MARK_AS_DELIVERED)] * (MAX_CALLS_PER_SEQUENCE + 1)
    _, result = apply_calls(_state(), calls)
    assert result.error.code == ErrorCode.INVALID_PAYLOAD


def test_empty_sequence_is_ok() -> None:
    state = _state()
    post, result = apply_calls(state, [])
    assert result.ok
    assert post is state
