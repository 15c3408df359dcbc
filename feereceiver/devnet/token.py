"""
In-memory fungible token with ERC-20 semantics.

The acting account is always passed explicitly (`owner`, `sender`,
`spender`). Failures raise DevnetRevert with the familiar revert strings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Tuple

from ..types import Address, AddressLike, to_address
from .errors import DevnetRevert

if TYPE_CHECKING:  # pragma: no cover
    from .chain import LocalChain


def _amount(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise DevnetRevert(f"invalid amount: {value!r}")
    return value


class LocalToken:
    def __init__(self, chain: "LocalChain", address: Address, *, symbol: str, decimals: int = 18) -> None:
        self.chain = chain
        self.address = address
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self._balances: Dict[Address, int] = {}
        self._allowances: Dict[Tuple[Address, Address], int] = {}

    def mint(self, to: AddressLike, amount: int) -> None:
        dst = to_address(to)
        amount = _amount(amount)
        self._balances[dst] = self._balances.get(dst, 0) + amount
        self.total_supply += amount

    def balance_of(self, holder: AddressLike) -> int:
        return self._balances.get(to_address(holder), 0)

    def allowance(self, owner: AddressLike, spender: AddressLike) -> int:
        return self._allowances.get((to_address(owner), to_address(spender)), 0)

    def approve(self, owner: AddressLike, spender: AddressLike, amount: int) -> bool:
        self._allowances[(to_address(owner), to_address(spender))] = _amount(amount)
        return True

    def _move(self, src: Address, dst: Address, amount: int) -> None:
        have = self._balances.get(src, 0)
        if have < amount:
            raise DevnetRevert("ERC20: transfer amount exceeds balance")
        self._balances[src] = have - amount
        self._balances[dst] = self._balances.get(dst, 0) + amount

    def transfer(self, sender: AddressLike, to: AddressLike, amount: int) -> bool:
        self._move(to_address(sender), to_address(to), _amount(amount))
        return True

    def transfer_from(self, spender: AddressLike, owner: AddressLike, to: AddressLike, amount: int) -> bool:
        key = (to_address(owner), to_address(spender))
        amount = _amount(amount)
        allowed = self._allowances.get(key, 0)
        if allowed < amount:
            raise DevnetRevert("ERC20: insufficient allowance")
        self._move(key[0], to_address(to), amount)
        self._allowances[key] = allowed - amount
        return True

    # checkpoint support
    def snapshot(self) -> Tuple[int, Dict[Address, int], Dict[Tuple[Address, Address], int]]:
        return self.total_supply, dict(self._balances), dict(self._allowances)

    def restore(self, state: Tuple[int, Dict[Address, int], Dict[Tuple[Address, Address], int]]) -> None:
        supply, balances, allowances = state
        self.total_supply = supply
        self._balances = dict(balances)
        self._allowances = dict(allowances)

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"LocalToken({self.symbol}@{self.address})"


__all__ = ["LocalToken"]
