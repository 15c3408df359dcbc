"""
Constant-product swap router (x * y = k) with a 0.3% input fee.

For one hop with reserves (r_in, r_out):

    amount_out = amount_in * 997 * r_out // (r_in * 1000 + amount_in * 997)

Multi-hop paths chain this hop by hop. The router holds every pool's tokens
at its own address; reserves are tracked per pool.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple

from ..types import Address, AddressLike, to_address
from .errors import DevnetRevert

if TYPE_CHECKING:  # pragma: no cover
    from .chain import LocalChain

log = logging.getLogger(__name__)

FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    if amount_in <= 0:
        raise DevnetRevert("UniswapV2Library: INSUFFICIENT_INPUT_AMOUNT")
    if reserve_in <= 0 or reserve_out <= 0:
        raise DevnetRevert("UniswapV2Library: INSUFFICIENT_LIQUIDITY")
    with_fee = amount_in * FEE_NUMERATOR
    return with_fee * reserve_out // (reserve_in * FEE_DENOMINATOR + with_fee)


def _pair(a: Address, b: Address) -> Tuple[Address, Address]:
    if a == b:
        raise DevnetRevert("UniswapV2Library: IDENTICAL_ADDRESSES")
    return (a, b) if a < b else (b, a)


class ConstantProductRouter:
    def __init__(self, chain: "LocalChain", address: Address) -> None:
        self.chain = chain
        self.address = address
        self._reserves: Dict[Tuple[Address, Address], Tuple[int, int]] = {}

    def add_liquidity(
        self, provider: AddressLike, token_a: AddressLike, token_b: AddressLike, amount_a: int, amount_b: int
    ) -> Tuple[int, int]:
        """Pull both amounts from `provider` (who must have approved the router) into the pool."""
        a, b = to_address(token_a), to_address(token_b)
        who = to_address(provider)
        self.chain.token(a).transfer_from(self.address, who, self.address, amount_a)
        self.chain.token(b).transfer_from(self.address, who, self.address, amount_b)
        ra, rb = self.get_reserves(a, b)
        self._set_reserves(a, b, ra + amount_a, rb + amount_b)
        log.debug("liquidity added pair=%s/%s amounts=%d/%d", a, b, amount_a, amount_b)
        return self.get_reserves(a, b)

    def get_reserves(self, token_a: AddressLike, token_b: AddressLike) -> Tuple[int, int]:
        a, b = to_address(token_a), to_address(token_b)
        key = _pair(a, b)
        r0, r1 = self._reserves.get(key, (0, 0))
        return (r0, r1) if key[0] == a else (r1, r0)

    def _set_reserves(self, a: Address, b: Address, ra: int, rb: int) -> None:
        key = _pair(a, b)
        self._reserves[key] = (ra, rb) if key[0] == a else (rb, ra)

    def get_amounts_out(self, amount_in: int, path: Sequence[AddressLike]) -> List[int]:
        if len(path) < 2:
            raise DevnetRevert("UniswapV2Library: INVALID_PATH")
        hops = [to_address(p) for p in path]
        amounts = [int(amount_in)]
        for i in range(len(hops) - 1):
            r_in, r_out = self.get_reserves(hops[i], hops[i + 1])
            amounts.append(get_amount_out(amounts[-1], r_in, r_out))
        return amounts

    def swap_exact_tokens_for_tokens(
        self,
        caller: AddressLike,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[AddressLike],
        recipient: AddressLike,
        deadline: int,
    ) -> List[int]:
        if self.chain.now() > deadline:
            raise DevnetRevert("UniswapV2Router: EXPIRED")
        hops = [to_address(p) for p in path]
        amounts = self.get_amounts_out(amount_in, hops)
        if amounts[-1] < amount_out_min:
            raise DevnetRevert("UniswapV2Router: INSUFFICIENT_OUTPUT_AMOUNT")

        self.chain.token(hops[0]).transfer_from(self.address, to_address(caller), self.address, amounts[0])
        for i in range(len(hops) - 1):
            a, b = hops[i], hops[i + 1]
            ra, rb = self.get_reserves(a, b)
            self._set_reserves(a, b, ra + amounts[i], rb - amounts[i + 1])
        self.chain.token(hops[-1]).transfer(self.address, to_address(recipient), amounts[-1])
        log.debug("swap path=%s amounts=%s", hops, amounts)
        return amounts

    # checkpoint support
    def snapshot(self) -> Dict[Tuple[Address, Address], Tuple[int, int]]:
        return dict(self._reserves)

    def restore(self, state: Dict[Tuple[Address, Address], Tuple[int, int]]) -> None:
        self._reserves = dict(state)


__all__ = ["ConstantProductRouter", "get_amount_out", "FEE_NUMERATOR", "FEE_DENOMINATOR"]
