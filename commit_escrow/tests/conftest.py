from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import pytest
from coincurve import PrivateKey

from commit_escrow.config import EscrowConfig
from commit_escrow.hashing import recipient_digest, signed_message_hash, to_address
from commit_escrow.ledger import EscrowLedger
from commit_escrow.native import NativeBank
from commit_escrow.token import FungibleToken, TokenRegistry
from commit_escrow.verifier import public_key_to_address

# Secret 1/2/3/4 keypairs; their addresses are well-known Ethereum test vectors.
ADDR_KEY_1 = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"
ADDR_KEY_2 = "0x2B5AD5c4795c026514f8317c7a215E218DcCD6cF"
ADDR_KEY_3 = "0x6813Eb9362372EEF6200f3b1dbC3f819671cBA69"

LEDGER_ADDR = "0x00000000000000000000000000000000000e5c00"
TOKEN_ADMIN = "0x" + "ad" * 20


@dataclass(frozen=True)
class Party:
    key: PrivateKey
    address: bytes


def make_party(secret: int) -> Party:
    key = PrivateKey(secret.to_bytes(32, "big"))
    return Party(key=key, address=public_key_to_address(key.public_key))


def sign_recipient(signer: Party, recipient, *, v_base: int = 27) -> bytes:
    """What a wallet's personal_sign(keccak256(recipient)) returns."""
    digest = signed_message_hash(recipient_digest(recipient))
    sig = signer.key.sign_recoverable(digest, hasher=None)
    return sig[:64] + bytes([sig[64] + v_base])


@pytest.fixture
def depositor() -> Party:
    return make_party(1)


@pytest.fixture
def beneficiary() -> Party:
    return make_party(2)


@pytest.fixture
def other() -> Party:
    return make_party(3)


@pytest.fixture
def stranger() -> Party:
    return make_party(4)


@pytest.fixture
def signer() -> Callable[..., bytes]:
    return sign_recipient


@pytest.fixture
def bank(depositor: Party) -> NativeBank:
    b = NativeBank()
    b.credit(depositor.address, 1_000)
    return b


@pytest.fixture
def token() -> FungibleToken:
    return FungibleToken("Test Token", "tst", owner=TOKEN_ADMIN, decimals=18)


@pytest.fixture
def ledger(bank: NativeBank, token: FungibleToken) -> EscrowLedger:
    # fresh ledger per test
    return EscrowLedger(
        native=bank,
        tokens=TokenRegistry(token),
        config=EscrowConfig(ledger_address=LEDGER_ADDR),
    )


@pytest.fixture
def ledger_address() -> bytes:
    return to_address(LEDGER_ADDR)
