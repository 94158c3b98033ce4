"""Canonical escrow state digest (v1)."""
from __future__ import annotations

from typing import Any

from blake3 import blake3

from .config import ADDRESS_LENGTH

_EVENT_TAGS = {"Deposit": 0x01, "StateChanged": 0x02, "Withdraw": 0x03}


def _hex_to_bytes(value: str | None) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("hex value must be string")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    if v == "":
        return b""
    return bytes.fromhex(v)


def _address(value: str | None) -> bytes:
    addr = _hex_to_bytes(value)
    if len(addr) != ADDRESS_LENGTH:
        raise ValueError(f"address must be {ADDRESS_LENGTH} bytes, got {len(addr)}")
    return addr


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def _u256_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u256 must be non-negative")
    return int(value).to_bytes(32, "big", signed=False)


def _balances(entries: list[dict[str, Any]]) -> bytes:
    sortable = sorted((_address(e.get("address")), int(e.get("balance", 0))) for e in entries)
    buf = bytearray(_u64_be(len(sortable)))
    for addr, balance in sortable:
        buf += addr
        buf += _u256_be(balance)
    return bytes(buf)


def compute_state_digest(state: dict[str, Any]) -> str:
    """Compute state digest v1 from a serialized escrow state.

    Deal fields, ledger balances (sorted by address) and the event log are
    encoded in canonical order and hashed with BLAKE3-256.
    """
    deal = state.get("deal", {}) if isinstance(state, dict) else {}
    buf = bytearray()
    for field in ("address", "seller", "buyer", "arbitrator", "asset"):
        buf += _address(deal.get(field))
    buf += _u256_be(int(deal.get("price", 0)))
    buf += bytes([int(deal.get("phase", 0))])

    ledger = state.get("ledger", {}) if isinstance(state, dict) else {}
    buf += _balances(ledger.get("native", []))

    tokens = sorted(ledger.get("tokens", []), key=lambda t: _address(t.get("address")))
    buf += _u64_be(len(tokens))
    for token in tokens:
        buf += _address(token.get("address"))
        buf += _balances(token.get("balances", []))
        allowances = sorted(
            (_address(a.get("owner")), _address(a.get("spender")), int(a.get("amount", 0)))
            for a in token.get("allowances", [])
        )
        buf += _u64_be(len(allowances))
        for owner, spender, amount in allowances:
            buf += owner
            buf += spender
            buf += _u256_be(amount)

    events = state.get("events", []) if isinstance(state, dict) else []
    buf += _u64_be(len(events))
    for ev in events:
        name = ev.get("event")
        if name not in _EVENT_TAGS:
            raise ValueError(f"unknown event: {name}")
        buf += bytes([_EVENT_TAGS[name]])
        if name == "Deposit":
            buf += _address(ev.get("payer"))
            buf += _u256_be(int(ev.get("amount", 0)))
        elif name == "StateChanged":
            buf += bytes([int(ev.get("phase", 0))])
        else:
            buf += _address(ev.get("recipient"))
            buf += _u256_be(int(ev.get("amount", 0)))

    return blake3(buf).hexdigest()
