import pytest

from feereceiver.access import AccessGate, Ownership
from feereceiver.errors import (AuthorizationError, ExternalCallFailure,
                                StateError, ValidationError)
from feereceiver.types import ZERO_ADDRESS


class _Stakes:
    def __init__(self, balances):
        self.balances = balances

    def balance_of(self, holder):
        return self.balances.get(holder, 0)


class _BrokenStakes:
    def balance_of(self, holder):
        raise RuntimeError("node unreachable")


def test_owner_checks(addrs):
    own = Ownership(addrs["deployer"])
    assert own.owner == addrs["deployer"]
    assert own.require_owner(addrs["deployer"]) == addrs["deployer"]
    with pytest.raises(AuthorizationError) as ei:
        own.require_owner(addrs["alice"])
    assert ei.value.reason == "NOT_OWNER"
    assert ei.value.message == "Ownable: caller is not the owner"


def test_garbage_caller_is_not_owner(addrs):
    own = Ownership(addrs["deployer"])
    assert own.is_owner("nonsense") is False
    with pytest.raises(AuthorizationError):
        own.require_owner("nonsense")


def test_zero_owner_rejected():
    with pytest.raises(ValidationError):
        Ownership(ZERO_ADDRESS)


def test_transfer_and_renounce(addrs):
    own = Ownership(addrs["deployer"])
    prev = own.transfer_ownership(addrs["deployer"], addrs["alice"])
    assert prev == addrs["deployer"]
    assert own.owner == addrs["alice"]
    with pytest.raises(AuthorizationError):
        own.transfer_ownership(addrs["deployer"], addrs["bob"])
    with pytest.raises(ValidationError):
        own.transfer_ownership(addrs["alice"], ZERO_ADDRESS)

    own.renounce_ownership(addrs["alice"])
    assert own.owner is None
    with pytest.raises(AuthorizationError):
        own.require_owner(addrs["alice"])


def test_gate_inactive_passes_everyone(addrs):
    AccessGate.check_access(addrs["alice"], active=False, threshold=10**9, stake_ledger=None)


def test_gate_threshold_boundary(addrs):
    stakes = _Stakes({addrs["account1"]: 100, addrs["account2"]: 500})
    gate = dict(active=True, threshold=500, stake_ledger=stakes)

    AccessGate.check_access(addrs["account2"], **gate)
    for who in ("account1", "deployer"):
        with pytest.raises(AuthorizationError) as ei:
            AccessGate.check_access(addrs[who], **gate)
        assert ei.value.reason == "INSUFFICIENT_STAKE"
        assert ei.value.message == "Not enough staked tokens"

    with pytest.raises(AuthorizationError):
        AccessGate.check_access(addrs["account2"], active=True, threshold=501, stake_ledger=stakes)


def test_gate_zero_threshold_admits_unstaked(addrs):
    AccessGate.check_access(addrs["bob"], active=True, threshold=0, stake_ledger=_Stakes({}))


def test_gate_without_ledger(addrs):
    with pytest.raises(StateError) as ei:
        AccessGate.check_access(addrs["bob"], active=True, threshold=1, stake_ledger=None)
    assert ei.value.reason == "STAKE_LEDGER_UNSET"


def test_gate_wraps_ledger_failure(addrs):
    with pytest.raises(ExternalCallFailure) as ei:
        AccessGate.check_access(addrs["bob"], active=True, threshold=1, stake_ledger=_BrokenStakes())
    assert ei.value.reason == "STAKE_QUERY_FAILED"
    assert isinstance(ei.value.__cause__, RuntimeError)
