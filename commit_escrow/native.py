from __future__ import annotations

"""
Native value bank
-----------------

Integer balances of the chain's native currency, keyed by 20-byte address.
The escrow ledger holds deposited value in its own account here and pays it
out at release time.

Some recipients refuse incoming value (think of a contract without a payable
fallback). `reject_incoming(addr)` marks such an account; transfers to it
fail without moving anything.

Concurrency: a coarse `threading.RLock` protects every mutation.
"""

import logging
from threading import RLock
from typing import Dict, Set

from .hashing import AddressLike, hex0x, to_address

log = logging.getLogger(__name__)


class NativeBankError(Exception):
    """Base error for native value movements."""


class InsufficientFunds(NativeBankError):
    """Raised when the source account cannot cover a transfer."""


class ValueRejected(NativeBankError):
    """Raised when the destination refuses incoming value."""


def _ensure_nonneg(x: int, name: str) -> None:
    if isinstance(x, bool) or not isinstance(x, int) or x < 0:
        raise NativeBankError(f"{name} must be a non-negative int, got {x!r}")


class NativeBank:
    def __init__(self) -> None:
        self._balances: Dict[bytes, int] = {}
        self._rejecting: Set[bytes] = set()
        self._lock = RLock()

    # --- introspection ---

    def balance_of(self, addr: AddressLike) -> int:
        return self._balances.get(to_address(addr), 0)

    def accepts_value(self, addr: AddressLike) -> bool:
        return to_address(addr) not in self._rejecting

    # --- account flags ---

    def reject_incoming(self, addr: AddressLike) -> None:
        with self._lock:
            self._rejecting.add(to_address(addr))

    def accept_incoming(self, addr: AddressLike) -> None:
        with self._lock:
            self._rejecting.discard(to_address(addr))

    # --- mutations (all locked) ---

    def credit(self, addr: AddressLike, amount: int) -> int:
        """Mint native value into `addr` (genesis/faucet funding). Returns the new balance."""
        _ensure_nonneg(amount, "amount")
        key = to_address(addr)
        with self._lock:
            self._balances[key] = self._balances.get(key, 0) + amount
            return self._balances[key]

    def transfer(self, src: AddressLike, dst: AddressLike, amount: int) -> None:
        """Move `amount` from `src` to `dst`; nothing moves if any check fails. Zero is a no-op."""
        _ensure_nonneg(amount, "amount")
        s, d = to_address(src), to_address(dst)
        if amount == 0:
            return
        with self._lock:
            if d in self._rejecting:
                raise ValueRejected(f"{hex0x(d)} does not accept native value")
            have = self._balances.get(s, 0)
            if have < amount:
                raise InsufficientFunds(f"insufficient balance: have {have}, need {amount}")
            self._balances[s] = have - amount
            self._balances[d] = self._balances.get(d, 0) + amount
        log.debug("native: %s -> %s value=%d", hex0x(s), hex0x(d), amount)


__all__ = ["NativeBankError", "InsufficientFunds", "ValueRejected", "NativeBank"]
