"""Ledger primitives: native value transfers and a minimal fungible-token model.

These stand in for the execution environment the escrow runs on. Failures are
raised as ledger error codes and are never reclassified by the escrow layer.
"""

from __future__ import annotations

from .config import ADDRESS_LENGTH, U256_MAX, ZERO_ADDRESS
from .errors import ErrorCode, SpecError, err
from .types import LedgerState, TokenState


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise SpecError(ErrorCode.INVALID_AMOUNT, "amount must be an integer")
    if amount < 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "amount must be >= 0")
    if amount > U256_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "amount exceeds u256 max")


def _credit(balances: dict[bytes, int], address: bytes, amount: int) -> None:
    new_balance = balances.get(address, 0) + amount
    if new_balance > U256_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "receiver balance overflow")
    balances[address] = new_balance


def _debit(balances: dict[bytes, int], address: bytes, amount: int) -> None:
    balance = balances.get(address, 0)
    if balance < amount:
        raise err(
            ErrorCode.INSUFFICIENT_BALANCE,
            "insufficient balance",
            account=address.hex(),
            balance=balance,
            required=amount,
        )
    balances[address] = balance - amount


# --- native coin ---


def native_balance_of(ledger: LedgerState, address: bytes) -> int:
    return ledger.native.get(address, 0)


def mint_native(ledger: LedgerState, address: bytes, amount: int) -> None:
    """Credit native coin out of thin air (genesis/test funding)."""
    _check_amount(amount)
    _credit(ledger.native, address, amount)


def transfer_native(ledger: LedgerState, sender: bytes, recipient: bytes, amount: int) -> None:
    _check_amount(amount)
    _debit(ledger.native, sender, amount)
    _credit(ledger.native, recipient, amount)


# --- tokens ---


def deploy_token(
    ledger: LedgerState, address: bytes, symbol: str, holder: bytes, supply: int
) -> TokenState:
    if len(address) != ADDRESS_LENGTH or address == ZERO_ADDRESS:
        raise SpecError(ErrorCode.INVALID_ADDRESS, "invalid token address")
    if address in ledger.tokens:
        raise SpecError(ErrorCode.INVALID_ADDRESS, "token already deployed")
    _check_amount(supply)
    token = TokenState(address=address, symbol=symbol)
    _credit(token.balances, holder, supply)
    ledger.tokens[address] = token
    return token


def _token(ledger: LedgerState, token: bytes) -> TokenState:
    state = ledger.tokens.get(token)
    if state is None:
        raise err(ErrorCode.TOKEN_NOT_FOUND, "no token at address", token=token.hex())
    return state


def token_balance_of(ledger: LedgerState, token: bytes, owner: bytes) -> int:
    return _token(ledger, token).balances.get(owner, 0)


def token_allowance(ledger: LedgerState, token: bytes, owner: bytes, spender: bytes) -> int:
    return _token(ledger, token).allowances.get(owner, {}).get(spender, 0)


def token_approve(
    ledger: LedgerState, token: bytes, owner: bytes, spender: bytes, amount: int
) -> None:
    _check_amount(amount)
    _token(ledger, token).allowances.setdefault(owner, {})[spender] = amount


def token_transfer(
    ledger: LedgerState, token: bytes, sender: bytes, recipient: bytes, amount: int
) -> None:
    _check_amount(amount)
    state = _token(ledger, token)
    _debit(state.balances, sender, amount)
    _credit(state.balances, recipient, amount)


def token_transfer_from(
    ledger: LedgerState,
    token: bytes,
    spender: bytes,
    owner: bytes,
    recipient: bytes,
    amount: int,
) -> None:
    _check_amount(amount)
    state = _token(ledger, token)
    allowed = state.allowances.get(owner, {}).get(spender, 0)
    if allowed < amount:
        raise err(
            ErrorCode.INSUFFICIENT_ALLOWANCE,
            "insufficient allowance",
            owner=owner.hex(),
            spender=spender.hex(),
            allowance=allowed,
            required=amount,
        )
    _debit(state.balances, owner, amount)
    _credit(state.balances, recipient, amount)
    state.allowances.setdefault(owner, {})[spender] = allowed - amount
