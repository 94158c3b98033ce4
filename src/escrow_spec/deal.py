"""EscrowDeal: the stateful, thread-safe face of a single escrow deal.

Deals are bound to the ledger they settle on, and every deal on one ledger
shares that ledger's re-entrant lock. Each operation runs under the lock
against a snapshot of the ledger and of every deal bound to it. On any
exception the snapshot is restored in place, so a failed operation leaves no
trace on any deal: no phase change, no value moved, no event. A receive hook
that calls back into this or another deal on the same ledger runs as a nested
operation with its own snapshot, and is undone with the outer one.
"""

from __future__ import annotations

import logging
import threading
import weakref
from copy import deepcopy
from dataclasses import fields
from typing import Dict, List, Optional, Tuple, Type

from . import ledger as ledger_ops
from .access import arbitrator_is_set
from .assets import ReceiveHook, held_balance
from .config import NATIVE_COIN_ADDRESS
from .errors import SpecError
from .state_transition import create_deal, execute
from .types import (
    Asset,
    Call,
    Deal,
    EscrowState,
    Event,
    LedgerState,
    NativeCoin,
    Operation,
    Phase,
    Withdraw,
)

logger = logging.getLogger(__name__)


class _LedgerBinding:
    """The lock and the live deals of one ledger."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.deals: "weakref.WeakSet[EscrowDeal]" = weakref.WeakSet()


# Keyed by id(ledger); the entry is dropped when the ledger is collected.
_BINDINGS: Dict[int, _LedgerBinding] = {}
_BINDINGS_LOCK = threading.Lock()


def _bind(ledger: LedgerState, deal: "EscrowDeal") -> _LedgerBinding:
    key = id(ledger)
    with _BINDINGS_LOCK:
        binding = _BINDINGS.get(key)
        if binding is None:
            binding = _BINDINGS[key] = _LedgerBinding()
            weakref.finalize(ledger, _BINDINGS.pop, key, None)
    with binding.lock:
        binding.deals.add(deal)
    return binding


_Snapshot = Tuple[LedgerState, List[Tuple[EscrowState, Deal, List[Event]]]]


def _restore_fields(target: object, source: object) -> None:
    for f in fields(target):
        setattr(target, f.name, getattr(source, f.name))


def _take_snapshot(ledger: LedgerState, binding: _LedgerBinding) -> _Snapshot:
    deals = [
        (d._state, deepcopy(d._state.deal), list(d._state.events)) for d in list(binding.deals)
    ]
    return deepcopy(ledger), deals


def _restore(ledger: LedgerState, snapshot: _Snapshot) -> None:
    # In place: ledger, deal records and event lists keep their identity so
    # outer operations, hooks and callers holding references stay current.
    ledger_copy, deals = snapshot
    _restore_fields(ledger, ledger_copy)
    for state, deal, events in deals:
        _restore_fields(state.deal, deal)
        state.events[:] = events


class EscrowDeal:
    """One seller/buyer(/arbitrator) deal over a fixed price and asset."""

    def __init__(
        self,
        seller: bytes,
        buyer: bytes,
        arbitrator: bytes,
        price: int,
        asset: bytes = NATIVE_COIN_ADDRESS,
        *,
        ledger: Optional[LedgerState] = None,
        salt: int = 0,
    ):
        self._state = create_deal(seller, buyer, arbitrator, price, asset, ledger, salt)
        self._hooks: Dict[bytes, ReceiveHook] = {}
        self._binding = _bind(self._state.ledger, self)
        self._lock = self._binding.lock
        logger.info(
            "Deployed deal %s: price=%d asset=%s arbitrator=%s",
            self.address.hex(),
            price,
            "native" if isinstance(self.asset, NativeCoin) else self.asset.address.hex(),
            "none" if not self.has_arbitrator else arbitrator.hex(),
        )

    # --- read-only accessors ---

    @property
    def address(self) -> bytes:
        return self._state.deal.address

    @property
    def seller(self) -> bytes:
        return self._state.deal.seller

    @property
    def buyer(self) -> bytes:
        return self._state.deal.buyer

    @property
    def arbitrator(self) -> bytes:
        return self._state.deal.arbitrator

    @property
    def has_arbitrator(self) -> bool:
        return arbitrator_is_set(self._state.deal)

    @property
    def price(self) -> int:
        return self._state.deal.price

    @property
    def asset(self) -> Asset:
        return self._state.deal.asset

    @property
    def phase(self) -> Phase:
        return self._state.deal.phase

    @property
    def held_balance(self) -> int:
        return held_balance(self._state)

    @property
    def ledger(self) -> LedgerState:
        return self._state.ledger

    @property
    def events(self) -> List[Event]:
        return list(self._state.events)

    def events_of(self, kind: Type[Event]) -> List[Event]:
        return [e for e in self._state.events if isinstance(e, kind)]

    def snapshot(self) -> EscrowState:
        with self._lock:
            return deepcopy(self._state)

    def native_balance_of(self, address: bytes) -> int:
        return ledger_ops.native_balance_of(self._state.ledger, address)

    def token_balance_of(self, token: bytes, address: bytes) -> int:
        return ledger_ops.token_balance_of(self._state.ledger, token, address)

    # --- receive hooks ---

    def register_receiver(self, address: bytes, hook: ReceiveHook) -> None:
        self._hooks[address] = hook

    def unregister_receiver(self, address: bytes) -> None:
        self._hooks.pop(address, None)

    # --- operations ---

    def deposit_native(self, caller: bytes, amount: int) -> None:
        self._execute(Call(caller, Operation.DEPOSIT_NATIVE, value=amount))

    def deposit_token(self, caller: bytes) -> None:
        self._execute(Call(caller, Operation.DEPOSIT_TOKEN))

    def mark_as_delivered(self, caller: bytes) -> None:
        self._execute(Call(caller, Operation.MARK_AS_DELIVERED))

    def confirm_delivery(self, caller: bytes) -> None:
        self._execute(Call(caller, Operation.CONFIRM_DELIVERY))

    def call_dispute(self, caller: bytes) -> None:
        self._execute(Call(caller, Operation.CALL_DISPUTE))

    def unlock_funds(self, caller: bytes) -> None:
        self._execute(Call(caller, Operation.UNLOCK_FUNDS))

    def abort_deal(self, caller: bytes) -> None:
        self._execute(Call(caller, Operation.ABORT_DEAL))

    def claim_funds(self, caller: bytes) -> None:
        self._execute(Call(caller, Operation.CLAIM_FUNDS))

    def submit(self, call: Call) -> None:
        """Run an arbitrary `Call` against this deal."""
        self._execute(call)

    def _execute(self, call: Call) -> None:
        with self._lock:
            snapshot = _take_snapshot(self._state.ledger, self._binding)
            before = self._state.deal.phase
            events_before = len(self._state.events)
            try:
                execute(self._state, call, self._hooks)
            except SpecError as exc:
                _restore(self._state.ledger, snapshot)
                logger.info(
                    "Rejected %s from %s in %s: %s",
                    call.op,
                    call.sender.hex(),
                    before.name,
                    exc.code.name,
                )
                raise
            except Exception:
                _restore(self._state.ledger, snapshot)
                logger.exception("Error executing %s on deal %s", call.op, self.address.hex())
                raise

            logger.debug(
                "%s by %s: %s -> %s",
                call.op.value,
                call.sender.hex(),
                before.name,
                self._state.deal.phase.name,
            )
            for event in self._state.events[events_before:]:
                if isinstance(event, Withdraw):
                    logger.info(
                        "Paid %d to %s from deal %s",
                        event.amount,
                        event.recipient.hex(),
                        self.address.hex(),
                    )
