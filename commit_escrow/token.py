# -*- coding: utf-8 -*-
"""
ERC-20-like fungible token (in-process)
=======================================

The escrow treats the token as an external collaborator: it only ever calls
`transfer_from`, and tests/demos use `mint`, `approve` and `balance_of` to set
up scenarios. This module gives that collaborator a concrete, thread-safe,
integer-only implementation.

Highlights
----------
- Explicit `caller` parameters for mutating calls (no ambient msg.sender).
- All-or-nothing mutations: every check runs before any balance moves.
- Errors are raised, never signalled through a False return:
    - AllowanceExceeded   spender's allowance is below the amount
    - BalanceExceeded     owner's balance is below the amount
    - NotOwner            non-owner tried to mint
- Amounts are ints in [0, 2**256 - 1].

Public interface
----------------
name / symbol / decimals / total_supply / address
balance_of(addr) -> int
allowance(owner, spender) -> int
transfer(caller, to, amount) -> bool
approve(caller, spender, amount) -> bool
transfer_from(caller, owner, to, amount) -> bool
increase_allowance(caller, spender, added) -> bool
decrease_allowance(caller, spender, subtracted) -> bool
mint(caller, to, amount) -> bool           # owner only

`TokenRegistry` resolves token addresses to instances for the asset adapter.
"""

from __future__ import annotations

import logging
from threading import RLock
from typing import Dict, Final, Iterator, Mapping, Optional, Protocol, Tuple, runtime_checkable

from .errors import InvalidAddress
from .hashing import AddressLike, hex0x, keccak256, to_address

log = logging.getLogger(__name__)

U256_MAX: Final[int] = 2**256 - 1


class TokenError(Exception):
    """Base class for token-level failures."""


class AllowanceExceeded(TokenError):
    def __init__(self, owner: bytes, spender: bytes, have: int, need: int) -> None:
        self.owner, self.spender, self.have, self.need = owner, spender, have, need
        super().__init__(
            f"allowance too low: owner={hex0x(owner)} spender={hex0x(spender)} have={have} need={need}"
        )


class BalanceExceeded(TokenError):
    def __init__(self, owner: bytes, have: int, need: int) -> None:
        self.owner, self.have, self.need = owner, have, need
        super().__init__(f"insufficient balance: owner={hex0x(owner)} have={have} need={need}")


class NotOwner(TokenError):
    pass


def _require_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or not (0 <= amount <= U256_MAX):
        raise TokenError(f"amount must be an int in [0, 2**256-1], got {amount!r}")
    return amount


@runtime_checkable
class TokenLike(Protocol):
    """The slice of a token the escrow needs at release time."""

    def transfer_from(self, caller: AddressLike, owner: AddressLike, to: AddressLike, amount: int) -> bool:
        ...


class FungibleToken:
    def __init__(
        self,
        name: str,
        symbol: str,
        *,
        owner: AddressLike,
        decimals: int = 18,
        address: Optional[AddressLike] = None,
        initial_supply: int = 0,
    ) -> None:
        if not (0 <= decimals <= 36):
            raise TokenError(f"decimals out of range: {decimals}")
        self.name = name
        self.symbol = symbol.upper()
        self.decimals = decimals
        self.owner = to_address(owner)
        # Deterministic address when none is given: H(symbol || owner)[-20:].
        self.address = (
            to_address(address)
            if address is not None
            else keccak256(self.symbol.encode("utf-8") + self.owner)[-20:]
        )
        self._balances: Dict[bytes, int] = {}
        self._allowances: Dict[Tuple[bytes, bytes], int] = {}
        self._total = 0
        self._lock = RLock()
        if initial_supply:
            self._mint_to(self.owner, _require_amount(initial_supply))

    # ---- views -------------------------------------------------------------

    @property
    def total_supply(self) -> int:
        return self._total

    def balance_of(self, addr: AddressLike) -> int:
        return self._balances.get(to_address(addr), 0)

    def allowance(self, owner: AddressLike, spender: AddressLike) -> int:
        return self._allowances.get((to_address(owner), to_address(spender)), 0)

    # ---- mutations ---------------------------------------------------------

    def transfer(self, caller: AddressLike, to: AddressLike, amount: int) -> bool:
        src, dst = to_address(caller), to_address(to)
        _require_amount(amount)
        with self._lock:
            self._move(src, dst, amount)
        return True

    def approve(self, caller: AddressLike, spender: AddressLike, amount: int) -> bool:
        key = (to_address(caller), to_address(spender))
        with self._lock:
            self._allowances[key] = _require_amount(amount)
        log.debug("token %s: approve owner=%s spender=%s value=%d",
                  self.symbol, hex0x(key[0]), hex0x(key[1]), amount)
        return True

    def transfer_from(self, caller: AddressLike, owner: AddressLike, to: AddressLike, amount: int) -> bool:
        """
        Spender (`caller`) moves `amount` from `owner` to `to` using allowance.
        """
        spender, src, dst = to_address(caller), to_address(owner), to_address(to)
        _require_amount(amount)
        if amount == 0:
            return True
        with self._lock:
            key = (src, spender)
            current = self._allowances.get(key, 0)
            if current < amount:
                raise AllowanceExceeded(src, spender, current, amount)
            have = self._balances.get(src, 0)
            if have < amount:
                raise BalanceExceeded(src, have, amount)
            self._allowances[key] = current - amount
            self._move(src, dst, amount)
        return True

    def increase_allowance(self, caller: AddressLike, spender: AddressLike, added: int) -> bool:
        key = (to_address(caller), to_address(spender))
        _require_amount(added)
        with self._lock:
            self._allowances[key] = _require_amount(self._allowances.get(key, 0) + added)
        return True

    def decrease_allowance(self, caller: AddressLike, spender: AddressLike, subtracted: int) -> bool:
        key = (to_address(caller), to_address(spender))
        _require_amount(subtracted)
        with self._lock:
            cur = self._allowances.get(key, 0)
            if cur < subtracted:
                raise AllowanceExceeded(key[0], key[1], cur, subtracted)
            self._allowances[key] = cur - subtracted
        return True

    def mint(self, caller: AddressLike, to: AddressLike, amount: int) -> bool:
        if to_address(caller) != self.owner:
            raise NotOwner(f"only the owner may mint {self.symbol}")
        dst = to_address(to)
        _require_amount(amount)
        with self._lock:
            self._mint_to(dst, amount)
        return True

    # ---- internals ---------------------------------------------------------

    def _move(self, src: bytes, dst: bytes, amount: int) -> None:
        have = self._balances.get(src, 0)
        if have < amount:
            raise BalanceExceeded(src, have, amount)
        self._balances[src] = have - amount
        self._balances[dst] = self._balances.get(dst, 0) + amount

    def _mint_to(self, dst: bytes, amount: int) -> None:
        self._total = _require_amount(self._total + amount)
        self._balances[dst] = self._balances.get(dst, 0) + amount

    def __repr__(self) -> str:  # pragma: no cover - debug aid
        return f"FungibleToken({self.symbol!r}, address={hex0x(self.address)})"


class TokenRegistry(Mapping[bytes, TokenLike]):
    """Address -> token lookup used by the asset adapter."""

    def __init__(self, *tokens: FungibleToken) -> None:
        self._tokens: Dict[bytes, TokenLike] = {}
        for t in tokens:
            self.register(t)

    def register(self, token: TokenLike, address: Optional[AddressLike] = None) -> bytes:
        addr = to_address(address if address is not None else getattr(token, "address"))
        self._tokens[addr] = token
        return addr

    def __getitem__(self, key: bytes) -> TokenLike:
        return self._tokens[to_address(key)]

    def __contains__(self, key: object) -> bool:
        try:
            return to_address(key) in self._tokens  # type: ignore[arg-type]
        except InvalidAddress:
            return False

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._tokens)

    def __len__(self) -> int:
        return len(self._tokens)


__all__ = [
    "U256_MAX",
    "TokenError",
    "AllowanceExceeded",
    "BalanceExceeded",
    "NotOwner",
    "TokenLike",
    "FungibleToken",
    "TokenRegistry",
]
