import pytest
from hypothesis import given, settings, strategies as st

from feereceiver.distribution import (DistributionEngine, plan_distribution,
                                      validate_fee_percent)
from feereceiver.devnet import DevnetRevert, LocalChain, LocalToken
from feereceiver.errors import ExternalCallFailure, StateError, ValidationError
from feereceiver.ledger import ShareLedger
from feereceiver.types import Payee

A = "0x" + "aa" * 20
B = "0x" + "bb" * 20
C = "0x" + "cc" * 20
D = "0x" + "dd" * 20


def test_single_payee_reference_split():
    plan = plan_distribution(22_665, 1, [Payee(A, 1)])
    assert plan.trigger_cut == 226
    assert plan.remainder == 22_439
    assert plan.payouts == ((A, 22_439),)
    assert plan.retained == 0


def test_four_equal_payees_three_hop_figures():
    plan = plan_distribution(20_723, 1, [Payee(p, 1) for p in (A, B, C, D)])
    assert plan.trigger_cut == 207
    assert [amt for _, amt in plan.payouts] == [5_129] * 4
    assert plan.retained == 20_516 - 4 * 5_129


def test_uneven_shares_follow_floor_rule():
    payees = [Payee(A, 10), Payee(B, 1), Payee(C, 5), Payee(D, 3)]
    plan = plan_distribution(22_665, 1, payees)
    for p in payees:
        assert plan.payout_of(p.address) == 22_439 * p.shares // 19
    assert plan.retained < 19


def test_zero_fee_pays_everything_to_payees():
    plan = plan_distribution(22_665, 0, [Payee(A, 1)])
    assert plan.trigger_cut == 0
    assert plan.payout_of(A) == 22_665


def test_full_fee_pays_everything_to_caller():
    plan = plan_distribution(1_000, 100, [Payee(A, 1)])
    assert plan.trigger_cut == 1_000
    assert plan.payout_of(A) == 0


def test_no_shares_is_state_error():
    with pytest.raises(StateError) as ei:
        plan_distribution(100, 1, [])
    assert ei.value.reason == "NO_PAYEES"
    assert ei.value.message == "No payees are set"


@pytest.mark.parametrize(
    "shares,reason",
    [((10, -5), "BAD_SHARES"), ((10, 0), "ZERO_SHARES"), ((10, 2.5), "BAD_SHARES"), ((True,), "BAD_SHARES")],
)
def test_plan_rejects_non_positive_shares(shares, reason):
    payees = [Payee(addr, s) for addr, s in zip((A, B), shares)]
    with pytest.raises(ValidationError) as ei:
        plan_distribution(100, 0, payees)
    assert ei.value.reason == reason


@pytest.mark.parametrize("fee,reason", [(101, "FEE_TOO_HIGH"), (-1, "BAD_FEE"), (True, "BAD_FEE"), (1.0, "BAD_FEE")])
def test_fee_validation(fee, reason):
    with pytest.raises(ValidationError) as ei:
        validate_fee_percent(fee)
    assert ei.value.reason == reason


@settings(max_examples=300, deadline=None)
@given(
    total=st.integers(min_value=0, max_value=10**30),
    fee=st.integers(min_value=0, max_value=100),
    shares=st.lists(st.integers(min_value=1, max_value=10**6), min_size=1, max_size=12),
)
def test_conservation_and_leakage_bound(total, fee, shares):
    payees = [Payee("0x%040x" % (i + 1), s) for i, s in enumerate(shares)]
    plan = plan_distribution(total, fee, payees)
    total_shares = sum(shares)

    assert plan.trigger_cut == total * fee // 100
    assert plan.trigger_cut + plan.distributed <= total
    assert 0 <= plan.retained < total_shares
    for (addr, amt), p in zip(plan.payouts, payees):
        assert addr == p.address
        assert amt == (total - plan.trigger_cut) * p.shares // total_shares


# ---------------------------------------------------------------- engine


@pytest.fixture
def chain_and_token():
    chain = LocalChain(seed="distribution")
    tok = chain.deploy_token("SETTLE")
    return chain, tok


def test_engine_transfers_plan(chain_and_token):
    chain, tok = chain_and_token
    holder = chain.account("holder")
    caller = chain.account("caller")
    tok.mint(holder, 1_003)
    ledger = ShareLedger([A, B], [1, 1])

    plan = DistributionEngine(chain).distribute(
        holder=holder, settlement_token=tok.address, amount=1_003, caller=caller, ledger=ledger, fee_percent=0
    )
    assert tok.balance_of(A) == 501
    assert tok.balance_of(B) == 501
    assert tok.balance_of(caller) == 0
    assert tok.balance_of(holder) == plan.retained == 1


def test_engine_refuses_underfunded_holder(chain_and_token):
    chain, tok = chain_and_token
    holder = chain.account("holder")
    tok.mint(holder, 10)
    ledger = ShareLedger([A, B], [1, 1])

    with pytest.raises(StateError) as ei:
        DistributionEngine(chain).distribute(
            holder=holder, settlement_token=tok.address, amount=1_000, caller=C, ledger=ledger, fee_percent=1
        )
    assert ei.value.reason == "INSUFFICIENT_BALANCE"
    assert ei.value.details == {"balance": 10, "amount": 1_000}
    # nothing moved, so a host without checkpoints is left untouched too
    assert tok.balance_of(holder) == 10
    assert tok.balance_of(A) == tok.balance_of(B) == tok.balance_of(C) == 0


class _RefusingToken(LocalToken):
    refuse = None

    def transfer(self, sender, to, amount):
        if to == self.refuse:
            raise DevnetRevert("refused")
        return super().transfer(sender, to, amount)


def test_engine_wraps_transfer_failure(chain_and_token):
    chain, _ = chain_and_token
    tok = chain.deploy(lambda c, a: _RefusingToken(c, a, symbol="REFUSE"), label="token:REFUSE")
    tok.refuse = B
    holder = chain.account("holder")
    tok.mint(holder, 1_000)
    ledger = ShareLedger([A, B], [1, 1])

    with pytest.raises(ExternalCallFailure) as ei:
        DistributionEngine(chain).distribute(
            holder=holder, settlement_token=tok.address, amount=1_000, caller=C, ledger=ledger, fee_percent=0
        )
    assert ei.value.reason == "TRANSFER_FAILED"
    assert ei.value.details["to"] == B
    assert isinstance(ei.value.__cause__, DevnetRevert)


def test_engine_rejects_false_transfer(chain_and_token):
    chain, tok = chain_and_token

    class _FalseToken:
        def balance_of(self, holder):
            return 100

        def transfer(self, sender, to, amount):
            return False

    class _Host:
        def token(self, addr):
            return _FalseToken()

    with pytest.raises(ExternalCallFailure) as ei:
        DistributionEngine(_Host()).distribute(
            holder=A, settlement_token=tok.address, amount=100, caller=B, ledger=ShareLedger([C], [1]), fee_percent=0
        )
    assert ei.value.reason == "TRANSFER_FAILED"
