"""Core types for the escrow spec.

A deal is tracked as an `EscrowState`: the deal record itself, the ledger
holding every native and token balance the deal can touch, and the append-only
event log. Operations arrive as `Call` values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Union

from .config import NATIVE_COIN_ADDRESS


class Phase(IntEnum):
    AWAITING_PAYMENT = 0
    AWAITING_DELIVERY = 1
    DELIVERED = 2
    DISPUTED = 3
    RELEASED_TO_SELLER = 4
    REFUND_TO_BUYER = 5
    COMPLETE = 6


class Operation(Enum):
    DEPOSIT_NATIVE = "deposit_native"
    DEPOSIT_TOKEN = "deposit_token"
    MARK_AS_DELIVERED = "mark_as_delivered"
    CONFIRM_DELIVERY = "confirm_delivery"
    CALL_DISPUTE = "call_dispute"
    UNLOCK_FUNDS = "unlock_funds"
    ABORT_DEAL = "abort_deal"
    CLAIM_FUNDS = "claim_funds"


PAYABLE_OPERATIONS = frozenset({Operation.DEPOSIT_NATIVE})


# --- Payment asset (tagged union) ---


@dataclass(frozen=True)
class NativeCoin:
    @property
    def address(self) -> bytes:
        return NATIVE_COIN_ADDRESS


@dataclass(frozen=True)
class Token:
    address: bytes


Asset = Union[NativeCoin, Token]


def asset_from_address(address: bytes) -> Asset:
    if address == NATIVE_COIN_ADDRESS:
        return NativeCoin()
    return Token(address)


# --- Calls ---


@dataclass
class Call:
    sender: bytes
    op: Operation
    value: int = 0


# --- Events ---


@dataclass(frozen=True)
class Deposit:
    payer: bytes
    amount: int


@dataclass(frozen=True)
class StateChanged:
    phase: Phase


@dataclass(frozen=True)
class Withdraw:
    recipient: bytes
    amount: int


Event = Union[Deposit, StateChanged, Withdraw]


# --- Ledger ---


@dataclass
class TokenState:
    address: bytes
    symbol: str = ""
    balances: Dict[bytes, int] = field(default_factory=dict)
    # owner -> spender -> amount
    allowances: Dict[bytes, Dict[bytes, int]] = field(default_factory=dict)


@dataclass
class LedgerState:
    native: Dict[bytes, int] = field(default_factory=dict)
    tokens: Dict[bytes, TokenState] = field(default_factory=dict)


# --- Deal ---


@dataclass
class Deal:
    address: bytes
    seller: bytes
    buyer: bytes
    arbitrator: bytes
    price: int
    asset: Asset
    phase: Phase = Phase.AWAITING_PAYMENT


@dataclass
class EscrowState:
    deal: Deal
    ledger: LedgerState = field(default_factory=LedgerState)
    events: List[Event] = field(default_factory=list)
