from __future__ import annotations

"""
commit_escrow.verifier - secp256k1 signer recovery for release authorizations.

The beneficiary authorizes a payout by signing `keccak256(recipient)` with a
wallet's personal-sign method. The wallet signs

    signed_message_hash(keccak256(recipient))

and returns 65 bytes: r (32) || s (32) || v (1), where v is 27/28 (or 0/1
from some signers). Recovery yields the uncompressed public key; the signer
address is the last 20 bytes of keccak256(pubkey[1:]).

The verifier is stateless. It has no notion of nonces or expiry: a signature
over a given recipient is valid for as long as the signer's key exists.
"""

import logging
from typing import Final, Optional, Union

from coincurve import PublicKey

from .config import EscrowConfig
from .errors import MalformedSignature
from .hashing import (
    AddressLike,
    hex0x,
    keccak256,
    recipient_digest,
    signed_message_hash,
    to_address,
)

log = logging.getLogger(__name__)

SIGNATURE_LEN: Final[int] = 65

# secp256k1 group order
SECP256K1_N: Final[int] = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N: Final[int] = SECP256K1_N // 2

SignatureLike = Union[bytes, bytearray, str]


def _signature_bytes(signature: SignatureLike) -> bytes:
    if isinstance(signature, str):
        s = signature.strip()
        if s[:2].lower() == "0x":
            s = s[2:]
        try:
            return bytes.fromhex(s)
        except ValueError as e:
            raise MalformedSignature("signature is not valid hex") from e
    if isinstance(signature, (bytes, bytearray)):
        return bytes(signature)
    raise MalformedSignature(f"unsupported signature type {type(signature).__name__}")


def split_signature(signature: SignatureLike) -> tuple[int, int, int]:
    """
    Parse a 65-byte signature into (r, s, recovery_id) with recovery_id in {0, 1}.
    Raises MalformedSignature on any structural problem.
    """
    sig = _signature_bytes(signature)
    if len(sig) != SIGNATURE_LEN:
        raise MalformedSignature(
            f"signature must be {SIGNATURE_LEN} bytes", details={"length": len(sig)}
        )
    r = int.from_bytes(sig[:32], "big")
    s = int.from_bytes(sig[32:64], "big")
    v = sig[64]
    if v in (27, 28):
        v -= 27
    if v not in (0, 1):
        raise MalformedSignature("invalid recovery id", details={"v": sig[64]})
    if not (0 < r < SECP256K1_N) or not (0 < s < SECP256K1_N):
        raise MalformedSignature("r/s out of range")
    return r, s, v


def public_key_to_address(pubkey: PublicKey) -> bytes:
    return keccak256(pubkey.format(compressed=False)[1:])[-20:]


class SignatureVerifier:
    """
    Recover and check personal-sign signatures.

    `reject_high_s` refuses signatures whose s is in the upper half of the
    curve order (the malleable twin of a canonical signature).

    `verify` is the yes/no predicate. The ledger calls `recover_signer` and
    compares the address itself so that `InvalidSignature` can report who
    actually signed; both paths accept exactly the same signatures.
    """

    def __init__(self, config: Optional[EscrowConfig] = None) -> None:
        cfg = config or EscrowConfig()
        self.prefix = cfg.message_prefix
        self.reject_high_s = cfg.reject_high_s

    def message_hash(self, message: bytes) -> bytes:
        return signed_message_hash(message, prefix=self.prefix)

    def recover_signer(self, message: bytes, signature: SignatureLike) -> bytes:
        """Return the 20-byte address that produced `signature` over `message`."""
        r, s, recid = split_signature(signature)
        if self.reject_high_s and s > SECP256K1_HALF_N:
            raise MalformedSignature("non-canonical (high s) signature")

        compact = r.to_bytes(32, "big") + s.to_bytes(32, "big") + bytes([recid])
        digest = self.message_hash(message)
        try:
            pub = PublicKey.from_signature_and_message(compact, digest, hasher=None)
        except ValueError as e:
            raise MalformedSignature("public key recovery failed") from e
        signer = public_key_to_address(pub)
        log.debug("verifier: recovered signer %s for message %s", hex0x(signer), hex0x(message))
        return signer

    def verify(self, expected_signer: AddressLike, message: bytes, signature: SignatureLike) -> bool:
        """True when `signature` over `message` was made by `expected_signer`."""
        return self.recover_signer(message, signature) == to_address(expected_signer)

    def recover_recipient_authorizer(self, recipient: AddressLike, signature: SignatureLike) -> bytes:
        """Who signed off on paying `recipient`."""
        return self.recover_signer(recipient_digest(recipient), signature)


__all__ = [
    "SIGNATURE_LEN",
    "SECP256K1_N",
    "SignatureLike",
    "SignatureVerifier",
    "split_signature",
    "public_key_to_address",
]
