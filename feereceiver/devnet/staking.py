"""Stake ledger backed by a LocalToken: staked tokens are held at the staking address."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from ..types import Address, AddressLike, to_address
from .errors import DevnetRevert

if TYPE_CHECKING:  # pragma: no cover
    from .chain import LocalChain


class LocalStaking:
    def __init__(self, chain: "LocalChain", address: Address, *, stake_token: Address) -> None:
        self.chain = chain
        self.address = address
        self.stake_token = stake_token
        self._stakes: Dict[Address, int] = {}

    def stake(self, staker: AddressLike, amount: int) -> int:
        """Pull `amount` from `staker` (approval required). Returns the new stake."""
        who = to_address(staker)
        if amount <= 0:
            raise DevnetRevert("Cannot stake 0")
        self.chain.token(self.stake_token).transfer_from(self.address, who, self.address, amount)
        self._stakes[who] = self._stakes.get(who, 0) + amount
        return self._stakes[who]

    def unstake(self, staker: AddressLike, amount: int) -> int:
        who = to_address(staker)
        have = self._stakes.get(who, 0)
        if amount <= 0 or amount > have:
            raise DevnetRevert("Not enough staked tokens")
        self._stakes[who] = have - amount
        self.chain.token(self.stake_token).transfer(self.address, who, amount)
        return self._stakes[who]

    def balance_of(self, holder: AddressLike) -> int:
        return self._stakes.get(to_address(holder), 0)

    def snapshot(self) -> Dict[Address, int]:
        return dict(self._stakes)

    def restore(self, state: Dict[Address, int]) -> None:
        self._stakes = dict(state)


__all__ = ["LocalStaking"]
