"""
feereceiver.types — value types shared by the fee receiver components.

Conventions
-----------
* Addresses are `str` in canonical form: ``0x`` followed by 40 lowercase hex
  digits. Inputs may be any hex case, with or without the ``0x`` prefix, or 20
  raw bytes. `to_address()` normalizes them.
* Amounts are integers in the token's smallest unit. There are no floats.
* Records are frozen dataclasses. Anything handed to an event or a report is a
  snapshot (tuples), never a live reference into the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple, Union

from .errors import ValidationError

Address = str
Amount = int
AddressLike = Union[str, bytes, bytearray]

ADDRESS_BYTES = 20
ZERO_ADDRESS: Address = "0x" + "00" * ADDRESS_BYTES

_HEX_DIGITS = frozenset("0123456789abcdef")


def to_address(value: AddressLike) -> Address:
    """
    Normalize an address-like value to ``0x`` + 40 lowercase hex digits.

    Raises ValidationError("BAD_ADDRESS") for anything else.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != ADDRESS_BYTES:
            raise ValidationError(
                f"address must be {ADDRESS_BYTES} bytes, got {len(value)}",
                reason="BAD_ADDRESS",
            )
        return "0x" + bytes(value).hex()
    if not isinstance(value, str):
        raise ValidationError(
            f"address must be a hex string or bytes, got {type(value).__name__}",
            reason="BAD_ADDRESS",
        )
    s = value.strip().lower()
    if s.startswith("0x"):
        s = s[2:]
    if len(s) != ADDRESS_BYTES * 2 or not set(s) <= _HEX_DIGITS:
        raise ValidationError(f"invalid address: {value!r}", reason="BAD_ADDRESS")
    return "0x" + s


def require_nonzero_address(value: AddressLike, what: str = "address") -> Address:
    """Normalize `value` and reject the null address."""
    addr = to_address(value)
    if addr == ZERO_ADDRESS:
        raise ValidationError(
            "cannot set to zero address", reason="ZERO_ADDRESS", details={"field": what}
        )
    return addr


def require_uint(value: Any, what: str, *, reason: str) -> int:
    """Accept a non-negative int (bools are rejected)."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValidationError(
            f"{what} must be a non-negative integer, got {value!r}", reason=reason
        )
    return value


@dataclass(frozen=True)
class Payee:
    """A payee and its share weight."""

    address: Address
    shares: int

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "shares": self.shares}


@dataclass(frozen=True)
class ConversionResult:
    """
    Outcome of one swap through the router.

    `amount_out` is the last element of the router's reported `amounts`. It is
    never re-derived from a balance read.
    """

    token_in: Address
    token_out: Address
    amount_in: Amount
    amount_out: Amount
    path: Tuple[Address, ...]
    amounts: Tuple[Amount, ...]
    deadline: int


@dataclass(frozen=True)
class DistributionPlan:
    """
    Integer split of `total` proceeds.

    trigger_cut = total * fee_percent // 100
    remainder   = total - trigger_cut
    payout(p)   = remainder * shares(p) // total_shares

    `retained` is the rounding leftover that stays with the receiver.
    """

    total: Amount
    fee_percent: int
    trigger_cut: Amount
    remainder: Amount
    total_shares: int
    payouts: Tuple[Tuple[Address, Amount], ...] = field(default_factory=tuple)

    @property
    def distributed(self) -> Amount:
        return sum(amount for _, amount in self.payouts)

    @property
    def retained(self) -> Amount:
        return self.total - self.trigger_cut - self.distributed

    def payout_of(self, address: AddressLike) -> Amount:
        addr = to_address(address)
        for payee, amount in self.payouts:
            if payee == addr:
                return amount
        return 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "fee_percent": self.fee_percent,
            "trigger_cut": self.trigger_cut,
            "remainder": self.remainder,
            "total_shares": self.total_shares,
            "payouts": [{"address": a, "amount": n} for a, n in self.payouts],
            "distributed": self.distributed,
            "retained": self.retained,
        }


@dataclass(frozen=True)
class DistributionReport:
    """Result of a successful `convert_and_transfer`."""

    caller: Address
    conversion: ConversionResult
    plan: DistributionPlan

    @property
    def payees(self) -> Tuple[Address, ...]:
        return tuple(a for a, _ in self.plan.payouts)

    def event_args(self) -> Dict[str, Any]:
        """Arguments of the ConvertAndTransfer event."""
        return {
            "caller": self.caller,
            "token_in": self.conversion.token_in,
            "settlement_token": self.conversion.token_out,
            "amount_in": self.conversion.amount_in,
            "amount_out": self.conversion.amount_out,
            "payees": self.payees,
            "trigger_cut": self.plan.trigger_cut,
            "payouts": self.plan.payouts,
            "retained": self.plan.retained,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "caller": self.caller,
            "conversion": {
                "token_in": self.conversion.token_in,
                "token_out": self.conversion.token_out,
                "amount_in": self.conversion.amount_in,
                "amount_out": self.conversion.amount_out,
                "path": list(self.conversion.path),
                "amounts": list(self.conversion.amounts),
                "deadline": self.conversion.deadline,
            },
            "plan": self.plan.to_dict(),
        }


__all__ = [
    "Address",
    "Amount",
    "AddressLike",
    "ADDRESS_BYTES",
    "ZERO_ADDRESS",
    "to_address",
    "require_nonzero_address",
    "require_uint",
    "Payee",
    "ConversionResult",
    "DistributionPlan",
    "DistributionReport",
]
