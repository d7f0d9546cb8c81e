from __future__ import annotations

import pytest

from commit_escrow.hashing import to_address
from commit_escrow.token import (
    AllowanceExceeded,
    BalanceExceeded,
    FungibleToken,
    NotOwner,
    TokenError,
    TokenLike,
    TokenRegistry,
)

from .conftest import TOKEN_ADMIN

ALICE = b"\xa1" * 20
BOB = b"\xb0" * 20
SPENDER = b"\x5e" * 20


def test_metadata_and_initial_supply():
    t = FungibleToken("Animal", "ani", owner=TOKEN_ADMIN, decimals=6, initial_supply=500)
    assert t.symbol == "ANI"
    assert t.decimals == 6
    assert t.total_supply == 500
    assert t.balance_of(TOKEN_ADMIN) == 500
    assert len(t.address) == 20
    assert isinstance(t, TokenLike)


def test_mint_is_owner_gated(token):
    token.mint(TOKEN_ADMIN, ALICE, 100)
    assert token.balance_of(ALICE) == 100
    assert token.total_supply == 100
    with pytest.raises(NotOwner):
        token.mint(ALICE, ALICE, 1)


def test_transfer_from_consumes_allowance(token):
    token.mint(TOKEN_ADMIN, ALICE, 100)
    token.approve(ALICE, SPENDER, 60)
    assert token.transfer_from(SPENDER, ALICE, BOB, 40) is True
    assert token.balance_of(ALICE) == 60
    assert token.balance_of(BOB) == 40
    assert token.allowance(ALICE, SPENDER) == 20


def test_transfer_from_allowance_low_moves_nothing(token):
    token.mint(TOKEN_ADMIN, ALICE, 100)
    token.approve(ALICE, SPENDER, 10)
    with pytest.raises(AllowanceExceeded) as ei:
        token.transfer_from(SPENDER, ALICE, BOB, 11)
    assert ei.value.have == 10 and ei.value.need == 11
    assert token.balance_of(ALICE) == 100
    assert token.allowance(ALICE, SPENDER) == 10


def test_transfer_from_balance_low_keeps_allowance(token):
    token.mint(TOKEN_ADMIN, ALICE, 5)
    token.approve(ALICE, SPENDER, 100)
    with pytest.raises(BalanceExceeded):
        token.transfer_from(SPENDER, ALICE, BOB, 50)
    assert token.allowance(ALICE, SPENDER) == 100
    assert token.balance_of(BOB) == 0


def test_zero_transfer_from_needs_no_allowance(token):
    assert token.transfer_from(SPENDER, ALICE, BOB, 0) is True


def test_allowance_adjustments(token):
    token.increase_allowance(ALICE, SPENDER, 7)
    token.increase_allowance(ALICE, SPENDER, 3)
    assert token.allowance(ALICE, SPENDER) == 10
    token.decrease_allowance(ALICE, SPENDER, 4)
    assert token.allowance(ALICE, SPENDER) == 6
    with pytest.raises(AllowanceExceeded):
        token.decrease_allowance(ALICE, SPENDER, 7)


@pytest.mark.parametrize("amount", [-1, 2**256, 1.5, True])
def test_bad_amounts(token, amount):
    with pytest.raises(TokenError):
        token.approve(ALICE, SPENDER, amount)


def test_registry_lookup(token):
    reg = TokenRegistry(token)
    assert reg[token.address] is token
    assert ("0x" + token.address.hex()) in reg
    assert "not-an-address" not in reg
    assert len(reg) == 1 and list(reg) == [token.address]
    with pytest.raises(KeyError):
        reg[to_address(b"\x99" * 20)]
