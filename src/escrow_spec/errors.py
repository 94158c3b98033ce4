"""Escrow spec error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict


class ErrorCategory(IntEnum):
    SUCCESS = 0x00
    VALIDATION = 0x01
    AUTHORIZATION = 0x02
    RESOURCE = 0x03
    STATE = 0x04
    CONTRACT = 0x05
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Success
    SUCCESS = 0x0000

    # Validation
    INVALID_TYPE = 0x0102
    INVALID_AMOUNT = 0x0105
    INVALID_ADDRESS = 0x0106
    INVALID_PAYLOAD = 0x0107
    ONLY_EXACT_AMOUNT = 0x0120
    NOT_PAYABLE = 0x0121

    # Authorization
    NOT_AUTHORIZED = 0x0200

    # Resource
    INSUFFICIENT_BALANCE = 0x0300
    INSUFFICIENT_ALLOWANCE = 0x0301
    OVERFLOW = 0x0304

    # State
    INCORRECT_PHASE = 0x0403
    SELF_OPERATION = 0x0409
    AWAITING_ETH = 0x0410
    AWAITING_ERC20 = 0x0411

    # Contract / ledger
    TOKEN_NOT_FOUND = 0x0500
    TRANSFER_REJECTED = 0x0501

    # Internal
    INTERNAL_ERROR = 0xFF00
    NOT_IMPLEMENTED = 0xFF01

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self.value >> 8)


@dataclass(frozen=True)
class SpecError(Exception):
    code: ErrorCode
    message: str
    details: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen (Python 3.13 contextlib compat).
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__", "__notes__"))
_frozen_setattr = SpecError.__setattr__


def _spec_error_setattr(self: SpecError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


SpecError.__setattr__ = _spec_error_setattr  # type: ignore[method-assign]


def err(code: ErrorCode, message: str, **details: Any) -> SpecError:
    return SpecError(code=code, message=message, details=details)
