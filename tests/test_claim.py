"""Claim specs."""

from __future__ import annotations

import pytest

from escrow_spec.config import NATIVE_COIN_ADDRESS, NO_ARBITRATOR, TEST_NATIVE_GRANT
from escrow_spec.ledger import native_balance_of, token_approve, token_balance_of
from escrow_spec.state_transition import apply_call, apply_calls, create_deal
from escrow_spec.test_accounts import ARBITRATOR, BUYER, MALLORY, SELLER, TOKEN, funded_ledger
from escrow_spec.types import Call, EscrowState, Operation, Phase, StateChanged, Withdraw

PRICE = 100

_RELEASE_PATH = [
    Call(BUYER, Operation.DEPOSIT_NATIVE, PRICE),
    Call(SELLER, Operation.MARK_AS_DELIVERED),
    Call(BUYER, Operation.CONFIRM_DELIVERY),
]

_REFUND_PATH = [
    Call(BUYER, Operation.DEPOSIT_NATIVE, PRICE),
    Call(SELLER, Operation.CALL_DISPUTE),
    Call(ARBITRATOR, Operation.ABORT_DEAL),
]


def _state(calls: list[Call]) -> EscrowState:
    state = create_deal(SELLER, BUYER, ARBITRATOR, PRICE, NATIVE_COIN_ADDRESS, funded_ledger())
    state, result = apply_calls(state, calls)
    assert result.ok
    return state


def test_claim_released_to_seller(state_test_group) -> None:
    post, result = state_test_group(
        "escrow/claim_funds.json",
        "claim_released_to_seller",
        _state(_RELEASE_PATH),
        [Call(SELLER, Operation.CLAIM_FUNDS)],
    )
    assert result.ok
    assert post.deal.phase == Phase.COMPLETE
    assert post.events[-2:] == [StateChanged(Phase.COMPLETE), Withdraw(SELLER, PRICE)]
    assert native_balance_of(post.ledger, SELLER) == TEST_NATIVE_GRANT + PRICE
    assert native_balance_of(post.ledger, post.deal.address) == 0


def test_claim_refund_to_buyer(state_test_group) -> None:
    post, result = state_test_group(
        "escrow/claim_funds.json",
        "claim_refund_to_buyer",
        _state(_REFUND_PATH),
        [Call(BUYER, Operation.CLAIM_FUNDS)],
    )
    assert result.ok
    assert post.events[-1] == Withdraw(BUYER, PRICE)
    assert native_balance_of(post.ledger, BUYER) == TEST_NATIVE_GRANT
    assert native_balance_of(post.ledger, SELLER) == TEST_NATIVE_GRANT


def test_claim_after_unlock(state_test_group) -> None:
    post, result = state_test_group(
        "escrow/claim_funds.json",
        "claim_after_unlock",
        _state(_REFUND_PATH[:2] + [Call(ARBITRATOR, Operation.UNLOCK_FUNDS)]),
        [Call(SELLER, Operation.CLAIM_FUNDS)],
    )
    assert result.ok
    assert post.events[-1] == Withdraw(SELLER, PRICE)


@pytest.mark.parametrize("caller", [BUYER, ARBITRATOR, MALLORY])
def test_claim_released_by_non_seller(caller: bytes) -> None:
    post, result = apply_call(_state(_RELEASE_PATH), Call(caller, Operation.CLAIM_FUNDS))
    assert result.error.code.name == "NOT_AUTHORIZED"
    assert post.deal.phase == Phase.RELEASED_TO_SELLER


@pytest.mark.parametrize("caller", [SELLER, ARBITRATOR, MALLORY])
def test_claim_refund_by_non_buyer(caller: bytes) -> None:
    post, result = apply_call(_state(_REFUND_PATH), Call(caller, Operation.CLAIM_FUNDS))
    assert result.error.code.name == "NOT_AUTHORIZED"
    assert post.deal.phase == Phase.REFUND_TO_BUYER
    assert native_balance_of(post.ledger, post.deal.address) == PRICE


def test_claim_twice(state_test_group) -> None:
    _, result = state_test_group(
        "escrow/claim_funds.json",
        "claim_twice",
        _state(_RELEASE_PATH),
        [Call(SELLER, Operation.CLAIM_FUNDS), Call(SELLER, Operation.CLAIM_FUNDS)],
    )
    assert result.error.code.name == "INCORRECT_PHASE"
    assert result.error.details["phase"] == "COMPLETE"


@pytest.mark.parametrize(
    "calls",
    [[], _RELEASE_PATH[:1], _RELEASE_PATH[:2], _REFUND_PATH[:2]],
    ids=["awaiting_payment", "awaiting_delivery", "delivered", "disputed"],
)
def test_claim_in_wrong_phase(calls: list[Call]) -> None:
    for caller in (SELLER, BUYER):
        _, result = apply_call(_state(calls), Call(caller, Operation.CLAIM_FUNDS))
        assert result.error.code.name == "INCORRECT_PHASE"


def test_claim_pays_full_custody_balance(state_test_group) -> None:
    # Value force-fed to the deal address is paid out with the price.
    state = _state(_RELEASE_PATH)
    state.ledger.native[state.deal.address] += 7
    post, result = state_test_group(
        "escrow/claim_funds.json",
        "claim_pays_full_custody_balance",
        state,
        [Call(SELLER, Operation.CLAIM_FUNDS)],
    )
    assert result.ok
    assert post.events[-1] == Withdraw(SELLER, PRICE + 7)


def test_claim_token_withdrawal(state_test_group) -> None:
    state = create_deal(SELLER, BUYER, NO_ARBITRATOR, PRICE, TOKEN, funded_ledger())
    token_approve(state.ledger, TOKEN, BUYER, state.deal.address, 1000)
    state, result = apply_calls(
        state,
        [
            Call(BUYER, Operation.DEPOSIT_TOKEN),
            Call(SELLER, Operation.MARK_AS_DELIVERED),
            Call(BUYER, Operation.CONFIRM_DELIVERY),
        ],
    )
    assert result.ok
    post, result = state_test_group(
        "escrow/claim_funds.json",
        "claim_token_withdrawal",
        state,
        [Call(SELLER, Operation.CLAIM_FUNDS)],
    )
    assert result.ok
    assert token_balance_of(post.ledger, TOKEN, SELLER) == PRICE
    assert token_balance_of(post.ledger, TOKEN, post.deal.address) == 0
    # Native balances are not touched by a token deal.
    assert native_balance_of(post.ledger, SELLER) == TEST_NATIVE_GRANT
