from __future__ import annotations

"""
Escrow ledger - commitment-bound deposits released by beneficiary signature
------------------------------------------------------------------------

Each depositor has at most one `Deposit`: an amount, the asset it is held in,
and `keccak256(beneficiary)` as a commitment to who may release it. A new
deposit by the same depositor overwrites the old record; there is no
accumulation and no refund path.

Release
~~~~~~~
`release_funds(depositor, beneficiary, recipient, signature)`:

1) the depositor must have an active record            -> NoActiveDeposit
2) keccak256(beneficiary) must equal the commitment    -> BeneficiaryMismatch
3) the signature over keccak256(recipient) must
   recover to `beneficiary`                            -> MalformedSignature / InvalidSignature
4) the adapter pays the amount to `recipient`          -> *TransferFailed
5) the record is zeroed

Anyone may submit a release; the signature is the authorization. The signed
payload carries no nonce or expiry, so a signature stays valid for every later
deposit made by the same depositor under the same beneficiary. The only replay
guard is that a released record is zeroed.

Token deposits only record intent: tokens stay with the depositor and are
pulled at release, so the depositor's allowance to the ledger address must
still cover the amount at that point.

Concurrency: one `threading.RLock` per ledger. Release holds it from the
record read through the payout to the clearing write, so a record is never
observed half-released and never paid twice.
"""

import logging
from threading import RLock
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .assets import AssetTransferAdapter
from .config import EscrowConfig
from .errors import (
    BeneficiaryMismatch,
    EscrowError,
    InvalidDepositParams,
    InvalidSignature,
    NoActiveDeposit,
)
from .hashing import (
    AddressLike,
    hex0x,
    keccak256,
    recipient_digest,
    to_address,
    to_digest,
)
from .native import NativeBank
from .records import NATIVE_ASSET, Deposit, EventKind, LedgerEvent
from .token import TokenLike
from .verifier import SignatureLike, SignatureVerifier

log = logging.getLogger(__name__)


def _require_amount(amount: int, name: str = "amount") -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidDepositParams(f"{name} must be a non-negative int", details={name: repr(amount)})
    return amount


class EscrowLedger:
    """
    In-memory escrow ledger. Storage-agnostic: `dump()` gives a JSON-friendly
    snapshot of live records and `load()` restores one.
    """

    def __init__(
        self,
        adapter: Optional[AssetTransferAdapter] = None,
        *,
        native: Optional[NativeBank] = None,
        tokens: Optional[Mapping[bytes, TokenLike]] = None,
        address: Optional[AddressLike] = None,
        config: Optional[EscrowConfig] = None,
        verifier: Optional[SignatureVerifier] = None,
    ) -> None:
        self.config = config or EscrowConfig()
        if adapter is None:
            custody = address if address is not None else self.config.ledger_address
            adapter = AssetTransferAdapter(custody=custody, native=native, tokens=tokens)
        elif native is not None or tokens is not None:
            raise ValueError("pass either an adapter or native/tokens, not both")
        self.adapter = adapter
        self.address = adapter.custody
        if address is not None and to_address(address) != self.address:
            raise ValueError("address must match the adapter's custody account")
        self.verifier = verifier or SignatureVerifier(self.config)

        self._deposits: Dict[bytes, Deposit] = {}
        self._journal: List[LedgerEvent] = []
        self._seq = 0
        self._lock = RLock()

    # --- load/save ---

    def dump(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "address": hex0x(self.address),
                "seq": self._seq,
                "deposits": {
                    hex0x(k): v.to_dict()
                    for k, v in sorted(self._deposits.items())
                    if v.is_active
                },
            }

    @classmethod
    def load(
        cls,
        data: Mapping[str, Any],
        adapter: AssetTransferAdapter,
        *,
        config: Optional[EscrowConfig] = None,
    ) -> "EscrowLedger":
        if "address" in data and to_address(data["address"]) != adapter.custody:
            raise ValueError("snapshot was taken for a different ledger address")
        led = cls(adapter, config=config)
        for k, v in data.get("deposits", {}).items():
            led._deposits[to_address(k)] = Deposit.from_dict(v)
        led._seq = int(data.get("seq", 0))
        return led

    # --- introspection ---

    def get_deposit(self, depositor: AddressLike) -> Deposit:
        """Current record for `depositor`; the zeroed record when there is none."""
        key = to_address(depositor)
        with self._lock:
            return self._deposits.get(key, Deposit.empty())

    def has_active_deposit(self, depositor: AddressLike) -> bool:
        return self.get_deposit(depositor).is_active

    def held_native(self) -> int:
        return self.adapter.native.balance_of(self.address)

    def journal(self) -> Iterable[LedgerEvent]:
        return tuple(self._journal)

    # --- mutations (all locked) ---

    def deposit(self, caller: AddressLike, hashed_beneficiary: bytes | str, value: int) -> Deposit:
        """
        Lock `value` of native currency for `caller` under `hashed_beneficiary`.
        Any previous record of `caller` is replaced; its funds stay in custody.
        """
        depositor = self._require_outside_depositor(caller)
        commitment = to_digest(hashed_beneficiary)
        _require_amount(value, "value")
        with self._lock:
            # value attachment; its InsufficientFunds is the caller's problem
            self.adapter.collect_native(depositor, value)
            rec = Deposit(amount=value, hashed_beneficiary=commitment, asset_address=NATIVE_ASSET)
            self._store(depositor, rec, "deposit")
        log.debug("ledger: native deposit depositor=%s value=%d", hex0x(depositor), value)
        return rec

    def deposit_token(
        self,
        caller: AddressLike,
        hashed_beneficiary: bytes | str,
        token_address: AddressLike,
        amount: int,
    ) -> Deposit:
        """
        Record a token deposit for `caller`. No tokens move here; they are
        pulled from `caller` at release time against an allowance granted to
        this ledger's address.
        """
        depositor = self._require_outside_depositor(caller)
        commitment = to_digest(hashed_beneficiary)
        asset = to_address(token_address)
        if asset == NATIVE_ASSET:
            raise InvalidDepositParams("token address must not be the native asset sentinel")
        _require_amount(amount)
        with self._lock:
            rec = Deposit(amount=amount, hashed_beneficiary=commitment, asset_address=asset)
            self._store(depositor, rec, "deposit_token")
        log.debug(
            "ledger: token deposit depositor=%s token=%s amount=%d",
            hex0x(depositor), hex0x(asset), amount,
        )
        return rec

    def release_funds(
        self,
        depositor: AddressLike,
        beneficiary: AddressLike,
        recipient: AddressLike,
        signature: SignatureLike,
    ) -> Deposit:
        """
        Pay the depositor's escrow to `recipient` if `beneficiary` matches the
        commitment and signed keccak256(recipient). Returns the consumed record.
        On any failure the record is left exactly as it was.
        """
        dep, ben, to = to_address(depositor), to_address(beneficiary), to_address(recipient)
        with self._lock:
            try:
                rec = self._deposits.get(dep, Deposit.empty())
                if not rec.is_active:
                    raise NoActiveDeposit(depositor=hex0x(dep))

                if keccak256(ben) != rec.hashed_beneficiary:
                    raise BeneficiaryMismatch(depositor=hex0x(dep), beneficiary=hex0x(ben))

                signer = self.verifier.recover_signer(recipient_digest(to), signature)
                if signer != ben:
                    raise InvalidSignature(expected=hex0x(ben), recovered=hex0x(signer))

                self.adapter.payout(rec.asset_address, to, rec.amount, depositor=dep)
            except EscrowError as e:
                log.warning("ledger: release rejected depositor=%s code=%s", hex0x(dep), e.code)
                raise

            self._deposits[dep] = Deposit.empty()
            self._append(
                "release", dep, rec.asset_address, rec.amount, recipient=to
            )
        log.info(
            "ledger: released depositor=%s asset=%s amount=%d recipient=%s",
            hex0x(dep), hex0x(rec.asset_address), rec.amount, hex0x(to),
        )
        return rec

    # --- internal helpers ---

    def _require_outside_depositor(self, caller: AddressLike) -> bytes:
        depositor = to_address(caller)
        if depositor == self.address:
            # custody cannot fund a record out of the pool it already holds
            raise InvalidDepositParams(
                "the ledger address cannot be a depositor", details={"depositor": hex0x(depositor)}
            )
        return depositor

    def _store(self, depositor: bytes, rec: Deposit, kind: EventKind) -> None:
        prev = self._deposits.get(depositor)
        if prev is not None and prev.is_active:
            log.debug(
                "ledger: overwriting active deposit depositor=%s prev_amount=%d",
                hex0x(depositor), prev.amount,
            )
        self._deposits[depositor] = rec
        self._append(kind, depositor, rec.asset_address, rec.amount)

    def _append(
        self,
        kind: EventKind,
        depositor: bytes,
        asset: bytes,
        amount: int,
        *,
        recipient: Optional[bytes] = None,
    ) -> None:
        self._seq += 1
        self._journal.append(
            LedgerEvent(
                seq=self._seq,
                kind=kind,
                depositor=depositor,
                asset_address=asset,
                amount=amount,
                recipient=recipient,
            )
        )


__all__ = ["EscrowLedger"]
