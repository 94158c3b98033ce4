"""Deal construction: parameter validation and custody address derivation."""

from __future__ import annotations

from typing import Optional

from blake3 import blake3

from ..config import (
    ADDRESS_LENGTH,
    DEAL_ADDRESS_DOMAIN,
    MAX_PRICE,
    MIN_PRICE,
    NATIVE_COIN_ADDRESS,
    NO_ARBITRATOR,
    SALT_BYTES,
    ZERO_ADDRESS,
)
from ..errors import ErrorCode, SpecError
from ..types import Deal, EscrowState, LedgerState, asset_from_address


def _check_address(name: str, value: object) -> None:
    if not isinstance(value, bytes) or len(value) != ADDRESS_LENGTH:
        raise SpecError(ErrorCode.INVALID_ADDRESS, f"{name} must be {ADDRESS_LENGTH} bytes")


def deal_address(
    seller: bytes,
    buyer: bytes,
    arbitrator: bytes,
    price: int,
    asset_address: bytes,
    salt: int = 0,
) -> bytes:
    buf = bytearray(DEAL_ADDRESS_DOMAIN)
    buf += seller
    buf += buyer
    buf += arbitrator
    buf += price.to_bytes(32, "big")
    buf += asset_address
    buf += salt.to_bytes(SALT_BYTES, "big")
    return blake3(buf).digest()[:ADDRESS_LENGTH]


def verify(
    seller: bytes,
    buyer: bytes,
    arbitrator: bytes,
    price: int,
    asset_address: bytes,
    salt: int = 0,
) -> None:
    _check_address("seller", seller)
    _check_address("buyer", buyer)
    _check_address("arbitrator", arbitrator)
    _check_address("asset", asset_address)

    if seller == ZERO_ADDRESS or buyer == ZERO_ADDRESS:
        raise SpecError(ErrorCode.INVALID_ADDRESS, "seller and buyer must be set")
    if seller == buyer:
        raise SpecError(ErrorCode.SELF_OPERATION, "seller cannot be buyer")
    if arbitrator != NO_ARBITRATOR and arbitrator in (seller, buyer):
        raise SpecError(ErrorCode.SELF_OPERATION, "arbitrator must be a third party")
    if arbitrator == NATIVE_COIN_ADDRESS or NATIVE_COIN_ADDRESS in (seller, buyer):
        raise SpecError(ErrorCode.INVALID_ADDRESS, "native coin sentinel is not a party")
    if asset_address == ZERO_ADDRESS:
        raise SpecError(ErrorCode.INVALID_ADDRESS, "token address must be set")

    if not isinstance(price, int) or isinstance(price, bool):
        raise SpecError(ErrorCode.INVALID_AMOUNT, "price must be an integer")
    if price < MIN_PRICE:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "price must be > 0")
    if price > MAX_PRICE:
        raise SpecError(ErrorCode.OVERFLOW, "price exceeds u256 max")

    if not isinstance(salt, int) or salt < 0 or salt >= 1 << (8 * SALT_BYTES):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "salt out of range")


def apply(
    seller: bytes,
    buyer: bytes,
    arbitrator: bytes,
    price: int,
    asset_address: bytes,
    ledger: Optional[LedgerState] = None,
    salt: int = 0,
) -> EscrowState:
    deal = Deal(
        address=deal_address(seller, buyer, arbitrator, price, asset_address, salt),
        seller=seller,
        buyer=buyer,
        arbitrator=arbitrator,
        price=price,
        asset=asset_from_address(asset_address),
    )
    return EscrowState(deal=deal, ledger=ledger if ledger is not None else LedgerState())
