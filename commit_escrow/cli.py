from __future__ import annotations

"""
commit_escrow.cli
-----------------

Offline helpers for preparing and checking escrow releases:
- commit:   the commitment digest a depositor stores for a beneficiary
- digest:   the payload (and its personal-sign hash) a beneficiary signs
- recover:  who signed off on paying a recipient
- verify:   whether a signature authorizes release by a given beneficiary
- config:   print the effective configuration

Examples
--------
python -m commit_escrow.cli commit 0x2B5AD5c4795c026514f8317c7a215E218DcCD6cF
python -m commit_escrow.cli digest 0x6813Eb9362372EEF6200f3b1dbC3f819671cBA69 --json
python -m commit_escrow.cli verify <beneficiary> <recipient> 0x<65-byte signature>

Escrow errors are printed as JSON ({"code", "message", "details"}) and exit 2.
`verify` exits 1 when the signature is well-formed but from someone else.
"""

import json
from typing import Any, Dict

import typer

from . import config as config_mod
from .errors import EscrowError
from .hashing import (
    commitment_digest,
    hex0x,
    recipient_digest,
    to_address,
    to_checksum_address,
)
from .verifier import SignatureVerifier

app = typer.Typer(
    name="commit-escrow",
    add_completion=False,
    no_args_is_help=True,
    help="Compute commitments and check release signatures for the commitment escrow.",
)

# -------------------- utils --------------------


def _emit(obj: Dict[str, Any], json_out: bool) -> None:
    if json_out:
        typer.echo(json.dumps(obj, indent=2, sort_keys=True))
        return
    for k, v in obj.items():
        typer.echo(f"{k}: {v}")


def _fail(e: EscrowError) -> None:
    typer.echo(json.dumps(e.to_dict(), sort_keys=True), err=True)
    raise typer.Exit(2)


def _verifier() -> SignatureVerifier:
    return SignatureVerifier(config_mod.load())


# -------------------- commands --------------------


@app.command("commit")
def cmd_commit(
    beneficiary: str = typer.Argument(..., help="Beneficiary address (hex)."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Print keccak256(beneficiary), the value to pass as hashed_beneficiary."""
    try:
        _emit(
            {
                "beneficiary": to_checksum_address(beneficiary),
                "commitment": hex0x(commitment_digest(beneficiary)),
            },
            json_out,
        )
    except EscrowError as e:
        _fail(e)


@app.command("digest")
def cmd_digest(
    recipient: str = typer.Argument(..., help="Recipient address (hex)."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Print the recipient digest and the personal-sign hash wallets actually sign."""
    try:
        digest = recipient_digest(recipient)
        _emit(
            {
                "recipient": to_checksum_address(recipient),
                "message": hex0x(digest),
                "signed_message_hash": hex0x(_verifier().message_hash(digest)),
            },
            json_out,
        )
    except EscrowError as e:
        _fail(e)


@app.command("recover")
def cmd_recover(
    recipient: str = typer.Argument(..., help="Recipient address the signature authorizes."),
    signature: str = typer.Argument(..., help="65-byte signature, hex."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Print the address that signed off on paying `recipient`."""
    try:
        signer = _verifier().recover_recipient_authorizer(recipient, signature)
        _emit({"recipient": to_checksum_address(recipient), "signer": to_checksum_address(signer)}, json_out)
    except EscrowError as e:
        _fail(e)


@app.command("verify")
def cmd_verify(
    beneficiary: str = typer.Argument(..., help="Claimed beneficiary address."),
    recipient: str = typer.Argument(..., help="Recipient address."),
    signature: str = typer.Argument(..., help="65-byte signature, hex."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Exit 0 if `beneficiary` signed keccak256(recipient), 1 otherwise."""
    try:
        signer = _verifier().recover_recipient_authorizer(recipient, signature)
        ok = signer == to_address(beneficiary)
    except EscrowError as e:
        _fail(e)
        return
    _emit(
        {
            "valid": ok,
            "beneficiary": to_checksum_address(beneficiary),
            "signer": to_checksum_address(signer),
            "commitment": hex0x(commitment_digest(beneficiary)),
        },
        json_out,
    )
    if not ok:
        raise typer.Exit(1)


@app.command("config")
def cmd_config() -> None:
    """Print the effective configuration (defaults < $ESCROW_CONFIG_FILE < ESCROW_* env)."""
    typer.echo(config_mod.pretty())


@app.callback()
def main() -> None:
    """
    Commitment escrow tooling.
    """
    config_mod.configure_logging()


def get_app() -> typer.Typer:
    return app


if __name__ == "__main__":
    app()
