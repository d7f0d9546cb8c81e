from __future__ import annotations

"""
Asset transfer adapter: one payout call for both escrowed asset kinds.

- Native value is paid out of the ledger's own custody account in the
  `NativeBank`.
- Tokens are *pulled* from the depositor at release time through
  `token.transfer_from(ledger, depositor, recipient, amount)`. The ledger never
  custodies tokens, so the depositor's allowance and balance must still cover
  the amount when the release happens.

Every failure is translated into the escrow error taxonomy and chained to the
underlying bank/token error. Both paths are all-or-nothing.
"""

import logging
from typing import Mapping, Optional

from .errors import InsufficientAllowance, NativeTransferFailed, TokenTransferFailed
from .hashing import AddressLike, hex0x, to_address
from .native import NativeBank, NativeBankError
from .records import NATIVE_ASSET
from .token import AllowanceExceeded, TokenError, TokenLike, TokenRegistry

log = logging.getLogger(__name__)


class AssetTransferAdapter:
    """
    Routes a payout to the native bank or to the token named by `asset_address`.

    `custody` is the ledger's address: the native account holding deposits and
    the spender the depositors approve on their tokens.
    """

    def __init__(
        self,
        *,
        custody: AddressLike,
        native: Optional[NativeBank] = None,
        tokens: Optional[Mapping[bytes, TokenLike]] = None,
    ) -> None:
        self.custody = to_address(custody)
        self.native = native if native is not None else NativeBank()
        self.tokens: Mapping[bytes, TokenLike] = tokens if tokens is not None else TokenRegistry()

    def payout(
        self,
        asset_address: AddressLike,
        recipient: AddressLike,
        amount: int,
        *,
        depositor: AddressLike,
    ) -> None:
        asset = to_address(asset_address)
        if asset == NATIVE_ASSET:
            self.pay_native(recipient, amount)
        else:
            self.pay_token(asset, depositor, recipient, amount)

    # ---- native ------------------------------------------------------------

    def collect_native(self, depositor: AddressLike, amount: int) -> None:
        """Attach `amount` of native value from `depositor` to the ledger's custody."""
        self.native.transfer(depositor, self.custody, amount)

    def pay_native(self, recipient: AddressLike, amount: int) -> None:
        to = to_address(recipient)
        try:
            self.native.transfer(self.custody, to, amount)
        except NativeBankError as e:
            raise NativeTransferFailed(
                str(e), asset=hex0x(NATIVE_ASSET), recipient=hex0x(to), amount=amount
            ) from e
        log.debug("assets: paid native value=%d to %s", amount, hex0x(to))

    # ---- tokens ------------------------------------------------------------

    def resolve_token(self, asset_address: AddressLike) -> TokenLike:
        asset = to_address(asset_address)
        try:
            return self.tokens[asset]
        except KeyError as e:
            raise TokenTransferFailed(
                "unknown token address", asset=hex0x(asset)
            ) from e

    def pay_token(
        self,
        asset_address: AddressLike,
        depositor: AddressLike,
        recipient: AddressLike,
        amount: int,
    ) -> None:
        asset, owner, to = to_address(asset_address), to_address(depositor), to_address(recipient)
        token = self.resolve_token(asset)
        ctx = {"asset": hex0x(asset), "recipient": hex0x(to), "amount": amount}
        try:
            ok = token.transfer_from(self.custody, owner, to, amount)
        except AllowanceExceeded as e:
            raise InsufficientAllowance(
                str(e), details={"depositor": hex0x(owner), "allowance": e.have}, **ctx
            ) from e
        except TokenError as e:
            raise TokenTransferFailed(str(e), details={"depositor": hex0x(owner)}, **ctx) from e
        if ok is False:
            raise TokenTransferFailed("token reported transfer failure", **ctx)
        log.debug("assets: pulled %d of %s from %s to %s", amount, hex0x(asset), hex0x(owner), hex0x(to))


__all__ = ["AssetTransferAdapter"]
