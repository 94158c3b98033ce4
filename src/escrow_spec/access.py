"""Caller identity checks for escrow operations.

Roles are plain addresses fixed at construction; every check is an equality
test against the deal record.
"""

from __future__ import annotations

from typing import Optional

from .config import NO_ARBITRATOR
from .errors import ErrorCode, SpecError
from .types import Deal, Phase


def is_seller(deal: Deal, caller: bytes) -> bool:
    return caller == deal.seller


def is_buyer(deal: Deal, caller: bytes) -> bool:
    return caller == deal.buyer


def arbitrator_is_set(deal: Deal) -> bool:
    return deal.arbitrator != NO_ARBITRATOR


def is_arbitrator(deal: Deal, caller: bytes) -> bool:
    return arbitrator_is_set(deal) and caller == deal.arbitrator


def is_buyer_or_seller(deal: Deal, caller: bytes) -> bool:
    return is_buyer(deal, caller) or is_seller(deal, caller)


def entitled_party(deal: Deal) -> Optional[bytes]:
    """Return the only address allowed to claim in the current phase, if any."""
    if deal.phase == Phase.RELEASED_TO_SELLER:
        return deal.seller
    if deal.phase == Phase.REFUND_TO_BUYER:
        return deal.buyer
    return None


def _not_authorized(caller: bytes, role: str) -> SpecError:
    return SpecError(
        ErrorCode.NOT_AUTHORIZED,
        f"caller is not {role}",
        {"caller": caller.hex(), "role": role},
    )


def require_seller(deal: Deal, caller: bytes) -> None:
    if not is_seller(deal, caller):
        raise _not_authorized(caller, "seller")


def require_buyer(deal: Deal, caller: bytes) -> None:
    if not is_buyer(deal, caller):
        raise _not_authorized(caller, "buyer")


def require_arbitrator(deal: Deal, caller: bytes) -> None:
    if not is_arbitrator(deal, caller):
        raise _not_authorized(caller, "arbitrator")


def require_buyer_or_seller(deal: Deal, caller: bytes) -> None:
    if not is_buyer_or_seller(deal, caller):
        raise _not_authorized(caller, "buyer or seller")


def require_arbitrator_set(deal: Deal) -> None:
    # No arbitrator: the dispute branch is unreachable for this deal.
    if not arbitrator_is_set(deal):
        raise SpecError(
            ErrorCode.INCORRECT_PHASE,
            "no arbitrator configured",
            {"phase": deal.phase.name, "expected": [], "arbitrator": None},
        )


def require_entitled(deal: Deal, caller: bytes) -> bytes:
    recipient = entitled_party(deal)
    if recipient is None or caller != recipient:
        raise _not_authorized(caller, "entitled party")
    return recipient


def require_phase(deal: Deal, *expected: Phase) -> None:
    if deal.phase not in expected:
        raise SpecError(
            ErrorCode.INCORRECT_PHASE,
            f"operation not allowed in phase {deal.phase.name}",
            {"phase": deal.phase.name, "expected": [p.name for p in expected]},
        )
