"""
feereceiver.access
==================

Two access-control pieces:

Ownership
    Single-owner capability check (the "authorized mutator"). Every owner-only
    entry point of the receiver calls `require_owner(caller)` explicitly as its
    first statement. Ownership can be transferred to a non-zero address or
    renounced, which leaves every owner-only operation permanently closed.

AccessGate
    Stateless stake-threshold policy for `convert_and_transfer`. When gating is
    active the caller's staked balance is read from the stake ledger on every
    call, with no caching, and must be at least the threshold.
"""

from __future__ import annotations

import logging
from typing import Optional

from .errors import (AuthorizationError, ExternalCallFailure, StateError,
                     ValidationError)
from .interfaces import StakeLedger
from .types import Address, AddressLike, ZERO_ADDRESS, to_address

log = logging.getLogger(__name__)


class Ownership:
    """Holds the owner address. `None` means ownership was renounced."""

    def __init__(self, owner: AddressLike) -> None:
        addr = to_address(owner)
        if addr == ZERO_ADDRESS:
            raise ValidationError("owner cannot be the zero address", reason="ZERO_ADDRESS")
        self._owner: Optional[Address] = addr

    @property
    def owner(self) -> Optional[Address]:
        return self._owner

    def is_owner(self, caller: AddressLike) -> bool:
        try:
            return self._owner is not None and to_address(caller) == self._owner
        except ValidationError:
            return False

    def require_owner(self, caller: AddressLike) -> Address:
        """Return the normalized caller, or raise AuthorizationError("NOT_OWNER")."""
        if not self.is_owner(caller):
            raise AuthorizationError(
                "Ownable: caller is not the owner",
                reason="NOT_OWNER",
                details={"caller": str(caller)},
            )
        return self._owner  # type: ignore[return-value]

    def transfer_ownership(self, caller: AddressLike, new_owner: AddressLike) -> Address:
        """Owner-only: hand ownership to `new_owner` (must be non-zero). Returns the previous owner."""
        previous = self.require_owner(caller)
        addr = to_address(new_owner)
        if addr == ZERO_ADDRESS:
            raise ValidationError("new owner is the zero address", reason="ZERO_ADDRESS")
        self._owner = addr
        log.info("ownership transferred previous=%s new=%s", previous, addr)
        return previous

    def renounce_ownership(self, caller: AddressLike) -> Address:
        """Owner-only: leave the receiver without an owner."""
        previous = self.require_owner(caller)
        self._owner = None
        log.info("ownership renounced previous=%s", previous)
        return previous

    # used by the receiver's transaction snapshot
    def _restore(self, owner: Optional[Address]) -> None:
        self._owner = owner


class AccessGate:
    """Stake-threshold gate. Holds no state of its own."""

    @staticmethod
    def check_access(
        caller: AddressLike,
        *,
        active: bool,
        threshold: int,
        stake_ledger: Optional[StakeLedger],
    ) -> None:
        """
        Pass silently, or raise.

        - active=False: always passes.
        - active=True and no stake ledger: StateError("STAKE_LEDGER_UNSET").
        - stake ledger query fails: ExternalCallFailure("STAKE_QUERY_FAILED").
        - staked balance < threshold: AuthorizationError("INSUFFICIENT_STAKE").
        """
        if not active:
            return
        who = to_address(caller)
        if stake_ledger is None:
            raise StateError(
                "stake gating is active but no stake ledger is configured",
                reason="STAKE_LEDGER_UNSET",
            )
        try:
            staked = stake_ledger.balance_of(who)
        except Exception as exc:
            raise ExternalCallFailure(
                f"stake ledger balance query failed: {exc}",
                reason="STAKE_QUERY_FAILED",
            ) from exc
        if not isinstance(staked, int) or isinstance(staked, bool):
            raise ExternalCallFailure(
                f"stake ledger returned a non-integer balance: {staked!r}",
                reason="STAKE_QUERY_FAILED",
            )
        if staked < threshold:
            log.debug("stake gate rejected caller=%s staked=%d threshold=%d", who, staked, threshold)
            raise AuthorizationError(
                "Not enough staked tokens",
                reason="INSUFFICIENT_STAKE",
                details={"caller": who, "staked": staked, "threshold": threshold},
            )


__all__ = ["Ownership", "AccessGate"]
