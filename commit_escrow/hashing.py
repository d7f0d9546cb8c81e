"""
commit_escrow.hashing - Keccak-256 and the two digests the escrow relies on.

Goals
-----
- Strictly bytes-in, bytes-out for the hash primitives.
- Identities are 20-byte addresses; hex strings are accepted at the edges and
  normalized once via `to_address`.

Provided APIs
-------------
- keccak256(data) -> bytes
- to_address(value) -> bytes                      # 20 bytes
- to_digest(value) -> bytes                       # 32 bytes
- commitment_digest(beneficiary) -> bytes         # keccak256(address)
- recipient_digest(recipient) -> bytes            # same encoding, signed payload
- signed_message_hash(message, prefix=...) -> bytes
- to_checksum_address(addr) -> str                # EIP-55 display form

Digest formats
--------------
The commitment is `keccak256(addr)` over the raw 20 address bytes, which is
what Solidity's `keccak256(abi.encodePacked(address))` yields.

The signed-message hash follows the "personal sign" convention:

    keccak256(b"\\x19Ethereum Signed Message:\\n" || str(len(msg)) || msg)

so for a 32-byte digest the length segment is the ASCII text b"32".
"""

from __future__ import annotations

from typing import Final, Union

from Crypto.Hash import keccak as _keccak

from .errors import InvalidAddress, InvalidDepositParams

ADDRESS_LEN: Final[int] = 20
DIGEST_LEN: Final[int] = 32

ZERO_ADDRESS: Final[bytes] = b"\x00" * ADDRESS_LEN
ZERO_DIGEST: Final[bytes] = b"\x00" * DIGEST_LEN

PERSONAL_SIGN_PREFIX: Final[str] = "\x19Ethereum Signed Message:\n"

AddressLike = Union[bytes, bytearray, str]


def _ensure_bytes(buf: object, name: str) -> bytes:
    if isinstance(buf, (bytes, bytearray, memoryview)):
        return bytes(buf)
    raise TypeError(f"{name} must be bytes-like (got {type(buf).__name__})")


def _strip_hex(s: str) -> str:
    s = s.strip()
    return s[2:] if s[:2].lower() == "0x" else s


def keccak256(data: bytes | bytearray | memoryview) -> bytes:
    """Keccak-256 (pre-SHA3 padding) as used by Ethereum."""
    h = _keccak.new(digest_bits=256)
    h.update(_ensure_bytes(data, "data"))
    return h.digest()


def to_address(value: AddressLike) -> bytes:
    """
    Normalize an identity to its 20 raw bytes.

    Accepts raw bytes or a hex string with or without the 0x prefix. Checksum
    casing is not enforced; callers that want EIP-55 validation can compare
    against `to_checksum_address`.
    """
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        h = _strip_hex(value)
        if len(h) != ADDRESS_LEN * 2:
            raise InvalidAddress(f"address must be {ADDRESS_LEN * 2} hex digits", details={"value": value})
        try:
            raw = bytes.fromhex(h)
        except ValueError as e:
            raise InvalidAddress("address is not valid hex", details={"value": value}) from e
    else:
        raise InvalidAddress(f"unsupported address type {type(value).__name__}")

    if len(raw) != ADDRESS_LEN:
        raise InvalidAddress(
            f"address must be {ADDRESS_LEN} bytes", details={"length": len(raw)}
        )
    return raw


def to_digest(value: Union[bytes, bytearray, str]) -> bytes:
    """Normalize a 32-byte digest given as raw bytes or hex."""
    if isinstance(value, str):
        try:
            value = bytes.fromhex(_strip_hex(value))
        except ValueError as e:
            raise InvalidDepositParams("digest is not valid hex", details={"value": value}) from e
    if not isinstance(value, (bytes, bytearray)) or len(value) != DIGEST_LEN:
        raise InvalidDepositParams(f"digest must be {DIGEST_LEN} bytes")
    return bytes(value)


def commitment_digest(beneficiary: AddressLike) -> bytes:
    """The value a depositor stores to commit to `beneficiary`."""
    return keccak256(to_address(beneficiary))


def recipient_digest(recipient: AddressLike) -> bytes:
    """The payload a beneficiary signs to authorize payout to `recipient`."""
    return keccak256(to_address(recipient))


def signed_message_hash(message: bytes, prefix: str = PERSONAL_SIGN_PREFIX) -> bytes:
    """
    Hash `message` the way wallets do for personal-sign requests.
    The length segment is the decimal byte length of `message`.
    """
    msg = _ensure_bytes(message, "message")
    return keccak256(prefix.encode("utf-8") + str(len(msg)).encode("ascii") + msg)


def to_checksum_address(addr: AddressLike) -> str:
    """EIP-55 mixed-case hex rendering of an address."""
    lower = to_address(addr).hex()
    nibbles = keccak256(lower.encode("ascii")).hex()
    out = []
    for ch, nib in zip(lower, nibbles):
        out.append(ch.upper() if ch.isalpha() and int(nib, 16) >= 8 else ch)
    return "0x" + "".join(out)


def hex0x(b: bytes) -> str:
    return "0x" + b.hex()


__all__ = [
    "ADDRESS_LEN",
    "DIGEST_LEN",
    "ZERO_ADDRESS",
    "ZERO_DIGEST",
    "PERSONAL_SIGN_PREFIX",
    "AddressLike",
    "keccak256",
    "to_address",
    "to_digest",
    "commitment_digest",
    "recipient_digest",
    "signed_message_hash",
    "to_checksum_address",
    "hex0x",
]
