"""
Deployment configuration for a single escrow deal.

Construction is validated: seller, buyer and arbitrator must be distinct
addresses. A single-address deployment, with one account playing every role, is
rejected with SELF_OPERATION.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .config import ADDRESS_LENGTH, NATIVE_COIN_ADDRESS, NO_ARBITRATOR
from .deal import EscrowDeal
from .errors import ErrorCode, SpecError
from .types import LedgerState

logger = logging.getLogger(__name__)


def parse_address(value: str) -> bytes:
    """Parse a hex address; the 0x prefix and letter case are optional."""
    v = value.strip()
    v = v[2:] if v.startswith(("0x", "0X")) else v
    try:
        address = bytes.fromhex(v)
    except ValueError as exc:
        raise SpecError(ErrorCode.INVALID_ADDRESS, f"not a hex address: {value!r}") from exc
    if len(address) != ADDRESS_LENGTH:
        raise SpecError(
            ErrorCode.INVALID_ADDRESS,
            f"address must be {ADDRESS_LENGTH} bytes, got {len(address)}",
        )
    return address


def _parse_price(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise SpecError(ErrorCode.INVALID_AMOUNT, f"price is not an integer: {value!r}") from exc


@dataclass
class DeployConfig:
    """Constructor arguments for one deal."""
    seller: bytes
    buyer: bytes
    price: int
    arbitrator: bytes = NO_ARBITRATOR
    token: bytes = NATIVE_COIN_ADDRESS
    salt: int = 0

    @property
    def uses_native_coin(self) -> bool:
        return self.token == NATIVE_COIN_ADDRESS

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DeployConfig":
        """Load configuration from a mapping (e.g. a YAML document)."""
        missing = [k for k in ("seller", "buyer", "price") if data.get(k) in (None, "")]
        if missing:
            raise SpecError(ErrorCode.INVALID_PAYLOAD, f"missing deploy fields: {', '.join(missing)}")

        arbitrator = data.get("arbitrator")
        token = data.get("token")
        return cls(
            seller=parse_address(str(data["seller"])),
            buyer=parse_address(str(data["buyer"])),
            price=_parse_price(data["price"]),
            arbitrator=parse_address(str(arbitrator)) if arbitrator else NO_ARBITRATOR,
            token=parse_address(str(token)) if token else NATIVE_COIN_ADDRESS,
            salt=int(data.get("salt", 0) or 0),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DeployConfig":
        """Load configuration from ESCROW_* environment variables."""
        env = os.environ if environ is None else environ
        return cls.from_mapping(
            {
                "seller": env.get("ESCROW_SELLER"),
                "buyer": env.get("ESCROW_BUYER"),
                "price": env.get("ESCROW_PRICE"),
                "arbitrator": env.get("ESCROW_ARBITRATOR"),
                "token": env.get("ESCROW_TOKEN"),
                "salt": env.get("ESCROW_SALT"),
            }
        )


def deploy(config: DeployConfig, ledger: Optional[LedgerState] = None) -> EscrowDeal:
    """Construct the deal described by `config` on `ledger`."""
    deal = EscrowDeal(
        config.seller,
        config.buyer,
        config.arbitrator,
        config.price,
        config.token,
        ledger=ledger,
        salt=config.salt,
    )
    logger.info("Escrow deal deployed at address: %s", deal.address.hex())
    return deal
