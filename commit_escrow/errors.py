from __future__ import annotations
# commit_escrow/errors.py
"""
Error types for the commitment escrow. Every error carries a stable string
`code` plus a small `details` mapping so it can be surfaced over logs or a CLI
without leaking Python tracebacks.

Hierarchy:

    EscrowError
    ├── InvalidAddress
    ├── InvalidDepositParams
    ├── NoActiveDeposit
    ├── BeneficiaryMismatch
    ├── InvalidSignature
    ├── MalformedSignature
    └── TransferFailed
        ├── NativeTransferFailed
        └── TokenTransferFailed
            └── InsufficientAllowance

Release-path errors are raised before any ledger state is touched, so a
caller can fix the cause (e.g. grant an allowance) and retry.
"""


from typing import Any, Dict, Mapping, Optional
import json


class EscrowError(Exception):
    """Base class for escrow domain errors."""

    code: str = "ESCROW_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class InvalidAddress(EscrowError):
    """An identity could not be parsed as a 20-byte address."""
    code = "ESCROW_INVALID_ADDRESS"


class InvalidDepositParams(EscrowError):
    """Deposit arguments are malformed (digest length, negative amount, bad asset)."""
    code = "ESCROW_INVALID_DEPOSIT"


class NoActiveDeposit(EscrowError):
    """The depositor has no live deposit record (never deposited, or already released)."""
    code = "ESCROW_NO_ACTIVE_DEPOSIT"

    def __init__(
        self,
        *,
        depositor: str,
        message: str = "no active deposit",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.setdefault("depositor", depositor)
        super().__init__(message, details=d)


class BeneficiaryMismatch(EscrowError):
    """hash(claimed beneficiary) does not equal the stored commitment."""
    code = "ESCROW_BENEFICIARY_MISMATCH"

    def __init__(
        self,
        *,
        depositor: str,
        beneficiary: str,
        message: str = "claimed beneficiary does not match commitment",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"depositor": depositor, "beneficiary": beneficiary})
        super().__init__(message, details=d)


class InvalidSignature(EscrowError):
    """The signature recovers to someone other than the claimed beneficiary."""
    code = "ESCROW_INVALID_SIGNATURE"

    def __init__(
        self,
        *,
        expected: str,
        recovered: str,
        message: str = "signature not produced by beneficiary over recipient",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"expected": expected, "recovered": recovered})
        super().__init__(message, details=d)


class MalformedSignature(EscrowError):
    """Signature bytes are not a valid 65-byte (r, s, v) recoverable signature."""
    code = "ESCROW_MALFORMED_SIGNATURE"


class TransferFailed(EscrowError):
    """The payout step failed; the deposit record is left as it was."""
    code = "ESCROW_TRANSFER_FAILED"

    def __init__(
        self,
        message: str = "asset transfer failed",
        *,
        asset: Optional[str] = None,
        recipient: Optional[str] = None,
        amount: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if asset is not None:
            d["asset"] = asset
        if recipient is not None:
            d["recipient"] = recipient
        if amount is not None:
            d["amount"] = int(amount)
        super().__init__(message, details=d)


class NativeTransferFailed(TransferFailed):
    """Native value could not be delivered (recipient rejects value, custody shortfall)."""
    code = "ESCROW_NATIVE_TRANSFER_FAILED"


class TokenTransferFailed(TransferFailed):
    """The token's pull-transfer from the depositor failed."""
    code = "ESCROW_TOKEN_TRANSFER_FAILED"


class InsufficientAllowance(TokenTransferFailed):
    """The depositor has not approved the ledger for at least the escrowed amount."""
    code = "ESCROW_INSUFFICIENT_ALLOWANCE"


__all__ = [
    "EscrowError",
    "InvalidAddress",
    "InvalidDepositParams",
    "NoActiveDeposit",
    "BeneficiaryMismatch",
    "InvalidSignature",
    "MalformedSignature",
    "TransferFailed",
    "NativeTransferFailed",
    "TokenTransferFailed",
    "InsufficientAllowance",
]
