"""Helpers to serialize/deserialize escrow fixtures."""

from __future__ import annotations

from typing import Any

from escrow_spec.types import (
    Call,
    Deal,
    Deposit,
    EscrowState,
    Event,
    LedgerState,
    Operation,
    Phase,
    StateChanged,
    TokenState,
    Withdraw,
    asset_from_address,
)


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v[2:] if v.startswith(("0x", "0X")) else v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def _balances_to_json(balances: dict[bytes, int]) -> list[dict[str, Any]]:
    return [
        {"address": _bytes_to_hex(addr), "balance": bal}
        for addr, bal in sorted(balances.items())
        if bal
    ]


def event_to_json(event: Event) -> dict[str, Any]:
    if isinstance(event, Deposit):
        return {"event": "Deposit", "payer": _bytes_to_hex(event.payer), "amount": event.amount}
    if isinstance(event, StateChanged):
        return {"event": "StateChanged", "phase": int(event.phase)}
    if isinstance(event, Withdraw):
        return {
            "event": "Withdraw",
            "recipient": _bytes_to_hex(event.recipient),
            "amount": event.amount,
        }
    raise TypeError(f"unknown event: {event!r}")


def event_from_json(data: dict[str, Any]) -> Event:
    name = data["event"]
    if name == "Deposit":
        return Deposit(_hex_to_bytes(data["payer"]), data["amount"])
    if name == "StateChanged":
        return StateChanged(Phase(data["phase"]))
    if name == "Withdraw":
        return Withdraw(_hex_to_bytes(data["recipient"]), data["amount"])
    raise ValueError(f"unknown event: {name}")


def state_to_json(state: EscrowState) -> dict[str, Any]:
    deal = state.deal
    tokens_out: list[dict[str, Any]] = []
    for addr, token in sorted(state.ledger.tokens.items()):
        tokens_out.append(
            {
                "address": _bytes_to_hex(addr),
                "symbol": token.symbol,
                "balances": _balances_to_json(token.balances),
                "allowances": [
                    {
                        "owner": _bytes_to_hex(owner),
                        "spender": _bytes_to_hex(spender),
                        "amount": amount,
                    }
                    for owner, spenders in sorted(token.allowances.items())
                    for spender, amount in sorted(spenders.items())
                    if amount
                ],
            }
        )

    return {
        "deal": {
            "address": _bytes_to_hex(deal.address),
            "seller": _bytes_to_hex(deal.seller),
            "buyer": _bytes_to_hex(deal.buyer),
            "arbitrator": _bytes_to_hex(deal.arbitrator),
            "price": deal.price,
            "asset": _bytes_to_hex(deal.asset.address),
            "phase": int(deal.phase),
        },
        "ledger": {
            "native": _balances_to_json(state.ledger.native),
            "tokens": tokens_out,
        },
        "events": [event_to_json(e) for e in state.events],
    }


def state_from_json(data: dict[str, Any]) -> EscrowState:
    d = data["deal"]
    deal = Deal(
        address=_hex_to_bytes(d["address"]),
        seller=_hex_to_bytes(d["seller"]),
        buyer=_hex_to_bytes(d["buyer"]),
        arbitrator=_hex_to_bytes(d["arbitrator"]),
        price=d["price"],
        asset=asset_from_address(_hex_to_bytes(d["asset"])),
        phase=Phase(d.get("phase", 0)),
    )

    ledger_data = data.get("ledger", {})
    ledger = LedgerState()
    for entry in ledger_data.get("native", []):
        ledger.native[_hex_to_bytes(entry["address"])] = entry.get("balance", 0)
    for t in ledger_data.get("tokens", []):
        token = TokenState(address=_hex_to_bytes(t["address"]), symbol=t.get("symbol", ""))
        for entry in t.get("balances", []):
            token.balances[_hex_to_bytes(entry["address"])] = entry.get("balance", 0)
        for a in t.get("allowances", []):
            owner = _hex_to_bytes(a["owner"])
            token.allowances.setdefault(owner, {})[_hex_to_bytes(a["spender"])] = a["amount"]
        ledger.tokens[token.address] = token

    events = [event_from_json(e) for e in data.get("events", [])]
    return EscrowState(deal=deal, ledger=ledger, events=events)


def call_to_json(call: Call) -> dict[str, Any]:
    return {
        "sender": _bytes_to_hex(call.sender),
        "op": call.op.value,
        "value": call.value,
    }


def call_from_json(data: dict[str, Any]) -> Call:
    return Call(
        sender=_hex_to_bytes(data["sender"]),
        op=Operation(data["op"]),
        value=data.get("value", 0),
    )
