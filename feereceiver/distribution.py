"""
feereceiver.distribution — trigger incentive and pro-rata payout of proceeds.

Split rules (integer floor arithmetic, no floats):

    trigger_cut = total * fee_percent // 100          -> paid to the caller
    remainder   = total - trigger_cut
    payout(p)   = remainder * shares(p) // total_shares  -> paid to each payee, ledger order

The rounding leftover ``total - trigger_cut - sum(payouts)`` is *not*
redistributed. It stays in the receiver's settlement-token balance, and the
next cycle does not sweep it in, because proceeds are always the router's
reported output of that cycle's swap. The leftover is always smaller than
`total_shares`.

The whole plan is computed before the first transfer, from the swap's reported
output and a snapshot of the ledger.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from .errors import ExternalCallFailure, StateError, ValidationError
from .interfaces import Host
from .ledger import ShareLedger, ensure_shares
from .types import (Address, AddressLike, Amount, DistributionPlan, Payee,
                    require_uint, to_address)

log = logging.getLogger(__name__)

MAX_FEE_PERCENT = 100


def validate_fee_percent(fee_percent: int) -> int:
    fee = require_uint(fee_percent, "trigger fee", reason="BAD_FEE")
    if fee > MAX_FEE_PERCENT:
        raise ValidationError(
            "Cannot set trigger fee above 100", reason="FEE_TOO_HIGH", details={"fee": fee}
        )
    return fee


def plan_distribution(total: Amount, fee_percent: int, payees: Sequence[Payee]) -> DistributionPlan:
    """
    Compute the split of `total` among the trigger caller and `payees`.

    Every payee must hold a positive integer share (ZERO_SHARES / BAD_SHARES).
    Raises StateError("NO_PAYEES") when there are no payees.
    """
    total = require_uint(total, "total", reason="BAD_AMOUNT")
    fee = validate_fee_percent(fee_percent)
    total_shares = sum(ensure_shares(p.shares) for p in payees)
    if total_shares == 0:
        raise StateError("No payees are set", reason="NO_PAYEES")

    trigger_cut = total * fee // 100
    remainder = total - trigger_cut
    payouts: List[Tuple[Address, Amount]] = [
        (p.address, remainder * p.shares // total_shares) for p in payees
    ]
    plan = DistributionPlan(
        total=total,
        fee_percent=fee,
        trigger_cut=trigger_cut,
        remainder=remainder,
        total_shares=total_shares,
        payouts=tuple(payouts),
    )
    # floor rounding can only ever under-pay, by less than one unit per payee
    assert 0 <= plan.retained < max(total_shares, 1)
    return plan


class DistributionEngine:
    """Pays out a plan in settlement tokens from the holder's balance."""

    def __init__(self, host: Host) -> None:
        self._host = host

    def _transfer(self, token: Address, sender: Address, to: Address, amount: Amount) -> None:
        try:
            ok = self._host.token(token).transfer(sender, to, amount)
        except Exception as exc:
            raise ExternalCallFailure(
                f"transfer to {to} failed: {exc}",
                reason="TRANSFER_FAILED",
                target=token,
                details={"to": to, "amount": amount},
            ) from exc
        if ok is False:
            raise ExternalCallFailure(
                f"transfer to {to} returned false",
                reason="TRANSFER_FAILED",
                target=token,
                details={"to": to, "amount": amount},
            )

    def distribute(
        self,
        *,
        holder: AddressLike,
        settlement_token: AddressLike,
        amount: Amount,
        caller: AddressLike,
        ledger: ShareLedger,
        fee_percent: int,
    ) -> DistributionPlan:
        """
        Plan, then transfer the trigger cut to `caller` and each payout to its payee.

        The holder must already own `amount`; nothing is transferred otherwise.
        """
        plan = plan_distribution(amount, fee_percent, ledger.items())
        who = to_address(holder)
        token = to_address(settlement_token)
        trigger = to_address(caller)

        try:
            balance = self._host.token(token).balance_of(who)
        except Exception as exc:
            raise ExternalCallFailure(
                f"balance query failed: {exc}", reason="BALANCE_QUERY_FAILED", target=token
            ) from exc
        if balance < plan.total:
            raise StateError(
                "settlement balance below distribution amount",
                reason="INSUFFICIENT_BALANCE",
                details={"balance": balance, "amount": plan.total},
            )

        if plan.trigger_cut:
            self._transfer(token, who, trigger, plan.trigger_cut)
        for payee, payout in plan.payouts:
            if payout:
                self._transfer(token, who, payee, payout)
                log.debug("payout payee=%s amount=%d", payee, payout)

        log.info(
            "distributed total=%d trigger_cut=%d payees=%d retained=%d",
            plan.total, plan.trigger_cut, len(plan.payouts), plan.retained,
        )
        return plan


__all__ = ["DistributionEngine", "plan_distribution", "validate_fee_percent", "MAX_FEE_PERCENT"]
