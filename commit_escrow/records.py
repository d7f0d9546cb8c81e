from __future__ import annotations

"""
Records kept by the escrow ledger.

- Deposit: the single per-depositor escrow record.
- LedgerEvent: journal entry appended on every successful mutation.

Both are immutable and carry explicit to_dict/from_dict helpers so snapshots
stay JSON-friendly (hex strings, plain ints).
"""

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from .hashing import ZERO_ADDRESS, ZERO_DIGEST, hex0x, to_address, to_digest

# Asset address of a native-value deposit.
NATIVE_ASSET = ZERO_ADDRESS

EventKind = Literal["deposit", "deposit_token", "release"]


@dataclass(frozen=True)
class Deposit:
    amount: int = 0
    hashed_beneficiary: bytes = ZERO_DIGEST
    asset_address: bytes = NATIVE_ASSET

    @staticmethod
    def empty() -> "Deposit":
        return Deposit()

    @property
    def is_native(self) -> bool:
        return self.asset_address == NATIVE_ASSET

    @property
    def is_active(self) -> bool:
        # amount == 0 together with a zero commitment is the cleared state
        return not (self.amount == 0 and self.hashed_beneficiary == ZERO_DIGEST)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "hashed_beneficiary": hex0x(self.hashed_beneficiary),
            "asset_address": hex0x(self.asset_address),
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "Deposit":
        return Deposit(
            amount=int(d["amount"]),
            hashed_beneficiary=to_digest(d["hashed_beneficiary"]),
            asset_address=to_address(d.get("asset_address") or NATIVE_ASSET),
        )


@dataclass(frozen=True)
class LedgerEvent:
    seq: int
    kind: EventKind
    depositor: bytes
    asset_address: bytes
    amount: int
    recipient: Optional[bytes] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "kind": self.kind,
            "depositor": hex0x(self.depositor),
            "asset_address": hex0x(self.asset_address),
            "amount": self.amount,
            "recipient": hex0x(self.recipient) if self.recipient is not None else None,
        }


__all__ = ["NATIVE_ASSET", "EventKind", "Deposit", "LedgerEvent"]
