"""
feereceiver.interfaces — protocols for the collaborators the core calls out to.

The fee receiver never owns token balances, pools or stakes. It reaches them
through these narrow, duck-typed protocols. Python has no implicit message
sender, so every state-changing collaborator call names the acting account
explicitly (`owner`, `sender`, `caller`).

A `Host` resolves configured addresses to collaborator objects and provides
the current time. A host may also be `Checkpointable`. In that case the
receiver wraps every distribution in a host checkpoint and a failed call
rolls back every balance change it made.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from .types import Address, Amount


@runtime_checkable
class TokenLedger(Protocol):
    """Fungible token ledger (ERC-20-like)."""

    def balance_of(self, holder: Address) -> Amount: ...

    def approve(self, owner: Address, spender: Address, amount: Amount) -> bool: ...

    def transfer(self, sender: Address, to: Address, amount: Amount) -> bool: ...


@runtime_checkable
class Router(Protocol):
    """Multi-hop swap router. The last element of the result is the amount received."""

    def swap_exact_tokens_for_tokens(
        self,
        caller: Address,
        amount_in: Amount,
        amount_out_min: Amount,
        path: Sequence[Address],
        recipient: Address,
        deadline: int,
    ) -> Sequence[Amount]: ...


@runtime_checkable
class StakeLedger(Protocol):
    def balance_of(self, holder: Address) -> Amount: ...


@runtime_checkable
class Host(Protocol):
    """Resolves addresses to collaborators and supplies the clock."""

    def token(self, address: Address) -> TokenLedger: ...

    def router(self, address: Address) -> Router: ...

    def stake_ledger(self, address: Address) -> StakeLedger: ...

    def now(self) -> int: ...


@runtime_checkable
class Checkpointable(Protocol):
    """
    Nested checkpoints over external state.

    checkpoint() returns a marker; commit_to(marker) keeps everything written
    since the marker; revert_to(marker) discards it.
    """

    def checkpoint(self) -> int: ...

    def commit_to(self, marker: int) -> None: ...

    def revert_to(self, marker: int) -> None: ...


__all__ = ["TokenLedger", "Router", "StakeLedger", "Host", "Checkpointable"]
