from __future__ import annotations
"""
commit_escrow - conditional-release escrow bound to a hashed beneficiary.

A depositor locks native value or a token amount under keccak256(beneficiary).
The beneficiary later signs keccak256(recipient); anyone holding that
signature can release the escrow to the recipient, exactly once.

Public surface (lazily loaded):
- EscrowLedger, Deposit, SignatureVerifier, AssetTransferAdapter
- NativeBank, FungibleToken, TokenRegistry, EscrowConfig
- submodules: config, errors, hashing, records, verifier, native, token,
  assets, ledger, cli
"""


from typing import Dict, List

from .version import __version__

_lazy_modules = {
    "config",
    "errors",
    "hashing",
    "records",
    "verifier",
    "native",
    "token",
    "assets",
    "ledger",
    "cli",
}

_lazy_attrs: Dict[str, str] = {
    "EscrowLedger": "ledger",
    "Deposit": "records",
    "LedgerEvent": "records",
    "NATIVE_ASSET": "records",
    "SignatureVerifier": "verifier",
    "AssetTransferAdapter": "assets",
    "NativeBank": "native",
    "FungibleToken": "token",
    "TokenRegistry": "token",
    "EscrowConfig": "config",
    "commitment_digest": "hashing",
    "recipient_digest": "hashing",
}

__all__: List[str] = ["__version__", *sorted(_lazy_attrs), *sorted(_lazy_modules)]

# --- Lazy module loader (PEP 562) -------------------------------------------------
import importlib


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    if name in _lazy_attrs:
        mod = importlib.import_module(f".{_lazy_attrs[name]}", __name__)
        return getattr(mod, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules | set(_lazy_attrs))


def get_version() -> str:
    """Return the package version string."""
    return __version__
