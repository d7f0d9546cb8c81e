from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from commit_escrow.cli import app
from commit_escrow.hashing import commitment_digest, recipient_digest, signed_message_hash

from .conftest import ADDR_KEY_2, ADDR_KEY_3

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for k in ("ESCROW_CONFIG_FILE", "ESCROW_MESSAGE_PREFIX", "ESCROW_REJECT_HIGH_S", "ESCROW_LOG_LEVEL"):
        monkeypatch.delenv(k, raising=False)


def test_commit_json():
    r = runner.invoke(app, ["commit", ADDR_KEY_2.lower(), "--json"])
    assert r.exit_code == 0, r.output
    out = json.loads(r.stdout)
    assert out["beneficiary"] == ADDR_KEY_2
    assert out["commitment"] == "0x" + commitment_digest(ADDR_KEY_2).hex()


def test_digest_plain():
    r = runner.invoke(app, ["digest", ADDR_KEY_3])
    assert r.exit_code == 0, r.output
    msg = recipient_digest(ADDR_KEY_3)
    assert f"message: 0x{msg.hex()}" in r.stdout
    assert f"signed_message_hash: 0x{signed_message_hash(msg).hex()}" in r.stdout


def test_recover_and_verify(beneficiary, other, stranger, signer):
    sig = "0x" + signer(beneficiary, other.address).hex()

    r = runner.invoke(app, ["recover", ADDR_KEY_3, sig, "--json"])
    assert r.exit_code == 0, r.output
    assert json.loads(r.stdout)["signer"] == ADDR_KEY_2

    r = runner.invoke(app, ["verify", ADDR_KEY_2, ADDR_KEY_3, sig, "--json"])
    assert r.exit_code == 0, r.output
    assert json.loads(r.stdout)["valid"] is True

    r = runner.invoke(app, ["verify", "0x" + stranger.address.hex(), ADDR_KEY_3, sig])
    assert r.exit_code == 1


def test_errors_exit_2():
    assert runner.invoke(app, ["commit", "0x1234"]).exit_code == 2
    assert runner.invoke(app, ["recover", ADDR_KEY_3, "0xdead"]).exit_code == 2


def test_config_command():
    r = runner.invoke(app, ["config"])
    assert r.exit_code == 0, r.output
    assert json.loads(r.stdout)["log_level"] == "WARNING"
