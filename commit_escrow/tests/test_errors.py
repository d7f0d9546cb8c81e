from __future__ import annotations

import pytest

from commit_escrow import errors


def test_taxonomy():
    assert issubclass(errors.InsufficientAllowance, errors.TokenTransferFailed)
    assert issubclass(errors.TokenTransferFailed, errors.TransferFailed)
    assert issubclass(errors.NativeTransferFailed, errors.TransferFailed)
    for name in errors.__all__:
        assert issubclass(getattr(errors, name), errors.EscrowError)


def test_codes_are_unique():
    codes = [getattr(errors, n).code for n in errors.__all__]
    assert len(codes) == len(set(codes))


def test_to_dict_and_str():
    e = errors.BeneficiaryMismatch(depositor="0xaa", beneficiary="0xbb")
    d = e.to_dict()
    assert d["code"] == "ESCROW_BENEFICIARY_MISMATCH"
    assert d["details"] == {"depositor": "0xaa", "beneficiary": "0xbb"}
    assert str(e).startswith("ESCROW_BENEFICIARY_MISMATCH: ")


def test_transfer_failed_context():
    e = errors.InsufficientAllowance("low", asset="0x01", recipient="0x02", amount=5, details={"allowance": 1})
    assert e.details == {"allowance": 1, "asset": "0x01", "recipient": "0x02", "amount": 5}
    with pytest.raises(errors.TransferFailed):
        raise e
