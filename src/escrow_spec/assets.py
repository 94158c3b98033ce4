"""Payment asset adapter: collect into custody and settle out of it.

The deal is bound to exactly one `Asset` variant. Only these two leaf
operations differ between native coin and tokens; everything else in the
state machine is asset-agnostic.
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional

from .errors import ErrorCode, SpecError
from .ledger import (
    native_balance_of,
    token_balance_of,
    token_transfer,
    token_transfer_from,
    transfer_native,
)
from .types import Asset, EscrowState, NativeCoin, Token

# Called after value lands at a registered address: hook(asset, sender, amount).
# Returning False rejects the transfer; raising aborts it.
ReceiveHook = Callable[[Asset, bytes, int], Optional[bool]]


def held_balance(state: EscrowState) -> int:
    deal = state.deal
    if isinstance(deal.asset, NativeCoin):
        return native_balance_of(state.ledger, deal.address)
    # No token contract yet: nothing can be in custody.
    if deal.asset.address not in state.ledger.tokens:
        return 0
    return token_balance_of(state.ledger, deal.asset.address, deal.address)


def collect(state: EscrowState, payer: bytes, amount: int, value: int = 0) -> None:
    """Move `amount` from `payer` into the deal's custody.

    For native coin, `value` is what the caller attached and must equal
    `amount` exactly. For tokens, the deal pulls `amount` using the payer's
    existing allowance; `value` is ignored.
    """
    deal = state.deal
    asset = deal.asset
    if isinstance(asset, NativeCoin):
        if value != amount:
            raise SpecError(
                ErrorCode.ONLY_EXACT_AMOUNT,
                "deposit must equal the price exactly",
                {"expected": amount, "actual": value},
            )
        transfer_native(state.ledger, payer, deal.address, amount)
    elif isinstance(asset, Token):
        token_transfer_from(state.ledger, asset.address, deal.address, payer, deal.address, amount)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported asset: {asset!r}")


def settle(
    state: EscrowState,
    recipient: bytes,
    amount: int,
    hooks: Optional[Mapping[bytes, ReceiveHook]] = None,
) -> None:
    """Pay `amount` out of custody to `recipient`.

    The ledger move happens first, then the recipient's hook runs; it may call
    back into the deal. Any failure propagates so the caller can roll back.
    """
    deal = state.deal
    asset = deal.asset
    if isinstance(asset, NativeCoin):
        transfer_native(state.ledger, deal.address, recipient, amount)
    elif isinstance(asset, Token):
        token_transfer(state.ledger, asset.address, deal.address, recipient, amount)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported asset: {asset!r}")

    hook = hooks.get(recipient) if hooks else None
    if hook is not None and hook(asset, deal.address, amount) is False:
        raise SpecError(
            ErrorCode.TRANSFER_REJECTED,
            "recipient rejected the transfer",
            {"recipient": recipient.hex(), "amount": amount},
        )
