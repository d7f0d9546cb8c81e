from __future__ import annotations

import commit_escrow


def test_lazy_surface():
    assert commit_escrow.EscrowLedger is commit_escrow.ledger.EscrowLedger
    assert commit_escrow.Deposit.empty().is_active is False
    assert isinstance(commit_escrow.get_version(), str)
    assert "EscrowLedger" in dir(commit_escrow)
