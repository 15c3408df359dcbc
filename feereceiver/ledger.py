"""
feereceiver.ledger
==================

Ordered registry of payees and their integer share weights. Pure bookkeeping:
no external calls, no events, no access control (the receiver enforces
ownership before delegating here).

Layout
------
- ``_payees``   : flat list of addresses; the list position is the index
                  callers pass to `remove_payee` and `payee`.
- ``_shares``   : address -> shares (> 0 for every listed address)
- ``_index``    : address -> position in ``_payees`` (reverse index)
- ``_total``    : running sum of all shares

Invariants
----------
- ``_total == sum(_shares.values())``
- ``set(_payees) == set(_shares) == set(_index)``, no duplicates
- ``_payees[_index[a]] == a`` for every listed ``a``

Removal is O(1) swap-with-last-and-pop. The relative order of the remaining
payees is not preserved, so an index is only valid until the next mutation.
Re-read `payee(i)` (or use `index_of`) after any removal.

Failure reasons
---------------
- ZERO_SHARES / BAD_SHARES / ZERO_ADDRESS / BAD_ADDRESS (ValidationError)
- ALREADY_HAS_SHARES (StateError)
- NO_PAYEES (StateError)
- INDEX_OUT_OF_RANGE / INDEX_MISMATCH (ValidationError)
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .errors import StateError, ValidationError
from .types import Address, AddressLike, Payee, ZERO_ADDRESS, to_address


def ensure_shares(shares: Any) -> int:
    if not isinstance(shares, int) or isinstance(shares, bool):
        raise ValidationError(f"shares must be an integer, got {shares!r}", reason="BAD_SHARES")
    if shares == 0:
        raise ValidationError("shares are 0", reason="ZERO_SHARES")
    if shares < 0:
        raise ValidationError(f"shares must be positive, got {shares}", reason="BAD_SHARES")
    return shares


def _ensure_index(i: Any) -> int:
    if not isinstance(i, int) or isinstance(i, bool):
        raise ValidationError(f"index must be an integer, got {i!r}", reason="INDEX_OUT_OF_RANGE")
    return i


class ShareLedger:
    """
    Payee registry with swap-remove semantics.

    >>> ledger = ShareLedger()
    >>> _ = ledger.add_payee("0x" + "aa" * 20, 10)
    >>> ledger.total_shares
    10
    """

    def __init__(self, payees: Sequence[AddressLike] = (), shares: Sequence[int] = ()) -> None:
        self._payees: List[Address] = []
        self._shares: Dict[Address, int] = {}
        self._index: Dict[Address, int] = {}
        self._total: int = 0
        if len(payees) != len(shares):
            raise ValidationError(
                f"payees and shares length mismatch: {len(payees)} != {len(shares)}",
                reason="PAYEES_SHARES_MISMATCH",
            )
        for addr, s in zip(payees, shares):
            self.add_payee(addr, s)

    # ------------------------------------------------------------------ views

    @property
    def total_shares(self) -> int:
        return self._total

    @property
    def payee_count(self) -> int:
        return len(self._payees)

    def __len__(self) -> int:
        return len(self._payees)

    def __contains__(self, address: object) -> bool:
        try:
            return to_address(address) in self._shares  # type: ignore[arg-type]
        except ValidationError:
            return False

    def __iter__(self) -> Iterator[Payee]:
        return iter(self.items())

    def payee(self, i: int) -> Address:
        """Address at position `i` of the current order."""
        i = _ensure_index(i)
        if not self._payees:
            raise StateError("There are no payees", reason="NO_PAYEES")
        if i < 0 or i >= len(self._payees):
            raise ValidationError(
                "index not in payee array",
                reason="INDEX_OUT_OF_RANGE",
                details={"index": i, "count": len(self._payees)},
            )
        return self._payees[i]

    def shares(self, address: AddressLike) -> int:
        """Shares held by `address`; 0 for unknown addresses."""
        try:
            addr = to_address(address)
        except ValidationError:
            return 0
        return self._shares.get(addr, 0)

    def index_of(self, address: AddressLike) -> Optional[int]:
        """Current index of `address`, or None if it holds no shares."""
        try:
            addr = to_address(address)
        except ValidationError:
            return None
        return self._index.get(addr)

    def payees(self) -> Tuple[Address, ...]:
        """Snapshot of the payee order."""
        return tuple(self._payees)

    def items(self) -> Tuple[Payee, ...]:
        """Snapshot of (address, shares) records in ledger order."""
        return tuple(Payee(a, self._shares[a]) for a in self._payees)

    # -------------------------------------------------------------- mutations

    def add_payee(self, address: AddressLike, shares: int) -> Payee:
        """Append a new payee. Fails if `shares` is zero or the payee already holds shares."""
        s = ensure_shares(shares)
        addr = to_address(address)
        if addr == ZERO_ADDRESS:
            raise ValidationError("account is the zero address", reason="ZERO_ADDRESS")
        if self._shares.get(addr, 0) > 0:
            raise StateError(
                "account already has shares",
                reason="ALREADY_HAS_SHARES",
                details={"address": addr},
            )
        self._index[addr] = len(self._payees)
        self._payees.append(addr)
        self._shares[addr] = s
        self._total += s
        return Payee(addr, s)

    def remove_payee(self, address: AddressLike, index: int) -> Payee:
        """
        Remove `address`, which must currently sit at `index`.

        The last payee is moved into the freed slot. The ledger is unchanged
        when this raises.
        """
        index = _ensure_index(index)
        if not self._payees:
            raise StateError("There are no payees", reason="NO_PAYEES")
        if index < 0 or index >= len(self._payees):
            raise ValidationError(
                "index not in payee array",
                reason="INDEX_OUT_OF_RANGE",
                details={"index": index, "count": len(self._payees)},
            )
        addr = to_address(address)
        if self._payees[index] != addr:
            raise ValidationError(
                "account does not match payee array index",
                reason="INDEX_MISMATCH",
                details={"index": index, "address": addr},
            )

        removed = self._shares.pop(addr)
        self._total -= removed
        del self._index[addr]

        last = self._payees.pop()
        if last != addr:
            self._payees[index] = last
            self._index[last] = index
        return Payee(addr, removed)

    # ------------------------------------------------------- snapshot/restore

    def dump(self) -> Dict[str, Any]:
        """JSON-friendly snapshot (order preserved)."""
        return {
            "payees": [{"address": a, "shares": self._shares[a]} for a in self._payees],
            "total_shares": self._total,
        }

    @classmethod
    def load(cls, data: Mapping[str, Any]) -> "ShareLedger":
        entries = list(data.get("payees", []))
        ledger = cls(
            [e["address"] for e in entries],
            [int(e["shares"]) for e in entries],
        )
        expected = data.get("total_shares")
        if expected is not None and int(expected) != ledger.total_shares:
            raise StateError(
                f"snapshot total_shares {expected} != sum of shares {ledger.total_shares}",
                reason="CORRUPT_SNAPSHOT",
            )
        return ledger

    def restore(self, data: Mapping[str, Any]) -> None:
        """Replace this ledger's contents with a `dump()` snapshot, in place."""
        other = type(self).load(data)
        self._payees = other._payees
        self._shares = other._shares
        self._index = other._index
        self._total = other._total

    def check_invariants(self) -> None:
        """Raise StateError if the internal bookkeeping is inconsistent."""
        if self._total != sum(self._shares.values()):
            raise StateError("total_shares does not match sum of shares", reason="INVARIANT")
        if len(set(self._payees)) != len(self._payees):
            raise StateError("duplicate payee in order list", reason="INVARIANT")
        if set(self._payees) != set(self._shares) or set(self._shares) != set(self._index):
            raise StateError("payee list and share map disagree", reason="INVARIANT")
        for i, a in enumerate(self._payees):
            if self._index[a] != i or self._shares[a] <= 0:
                raise StateError(f"bad entry at index {i}", reason="INVARIANT")

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"ShareLedger(payees={len(self._payees)}, total_shares={self._total})"


__all__ = ["ShareLedger", "ensure_shares"]
