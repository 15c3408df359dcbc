"""
feereceiver.devnet.chain — an in-memory stand-in for the chain.

LocalChain plays the `Host` role for a FeeReceiver: it resolves addresses to
the collaborators deployed on it (tokens, routers, staking ledgers) and keeps
a manual clock. It is also `Checkpointable`: each checkpoint snapshots every
deployed contract's state onto a stack, so a failed receiver call can revert
balances, allowances, pool reserves and stakes in one step.

Addresses are deterministic: ``sha3_256(f"{seed}:{label}")[:20]``. The same
seed and deployment order always yield the same addresses.

    chain = LocalChain()
    usdc = chain.deploy_token("USDC")
    router = chain.deploy_router()
    m = chain.checkpoint()
    usdc.mint(chain.account("alice"), 10)
    chain.revert_to(m)            # alice's mint is gone
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from ..types import Address, AddressLike, to_address
from .errors import DevnetRevert
from .router import ConstantProductRouter
from .staking import LocalStaking
from .token import LocalToken

log = logging.getLogger(__name__)

DEFAULT_START_TIME = 1_700_000_000

T = TypeVar("T")


def det_address(tag: str) -> Address:
    """Stable 20-byte address (0x...) derived from a tag."""
    return "0x" + hashlib.sha3_256(tag.encode("utf-8")).hexdigest()[:40]


class LocalChain:
    def __init__(self, *, seed: str = "devnet", start_time: int = DEFAULT_START_TIME) -> None:
        self.seed = seed
        self._time = int(start_time)
        self._nonce = 0
        self._contracts: Dict[Address, Any] = {}
        self._checkpoints: List[Dict[Address, Tuple[Any, Any]]] = []

    # ------------------------------------------------------------------ accounts

    def account(self, label: str) -> Address:
        """Deterministic externally-owned account address for `label`."""
        return det_address(f"{self.seed}:account:{label}")

    def deploy(self, factory: Callable[["LocalChain", Address], T], *, label: Optional[str] = None) -> T:
        """Create a contract at the next deterministic address and register it."""
        tag = label or f"contract:{self._nonce}"
        self._nonce += 1
        addr = det_address(f"{self.seed}:{tag}")
        if addr in self._contracts:
            raise DevnetRevert(f"address already in use: {addr}")
        obj = factory(self, addr)
        self._contracts[addr] = obj
        log.debug("deployed %s at %s", type(obj).__name__, addr)
        return obj

    def deploy_token(self, symbol: str, decimals: int = 18) -> LocalToken:
        return self.deploy(lambda c, a: LocalToken(c, a, symbol=symbol, decimals=decimals), label=f"token:{symbol}")

    def deploy_router(self, label: str = "router") -> ConstantProductRouter:
        return self.deploy(lambda c, a: ConstantProductRouter(c, a), label=label)

    def deploy_staking(self, stake_token: AddressLike, label: str = "staking") -> LocalStaking:
        token = to_address(stake_token)
        return self.deploy(lambda c, a: LocalStaking(c, a, stake_token=token), label=label)

    def contract(self, address: AddressLike) -> Any:
        addr = to_address(address)
        try:
            return self._contracts[addr]
        except KeyError:
            raise DevnetRevert(f"no contract at {addr}") from None

    def _typed(self, address: AddressLike, kind: Type[T]) -> T:
        obj = self.contract(address)
        if not isinstance(obj, kind):
            raise DevnetRevert(f"{to_address(address)} is a {type(obj).__name__}, not a {kind.__name__}")
        return obj

    # ------------------------------------------------------------------ Host

    def token(self, address: AddressLike) -> LocalToken:
        return self._typed(address, LocalToken)

    def router(self, address: AddressLike) -> ConstantProductRouter:
        return self._typed(address, ConstantProductRouter)

    def stake_ledger(self, address: AddressLike) -> LocalStaking:
        return self._typed(address, LocalStaking)

    def now(self) -> int:
        return self._time

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        self._time += int(seconds)
        return self._time

    # ------------------------------------------------------------------ Checkpointable

    def checkpoint(self) -> int:
        snap = {addr: (obj, obj.snapshot()) for addr, obj in self._contracts.items()}
        self._checkpoints.append(snap)
        return len(self._checkpoints) - 1

    def _check_marker(self, marker: int) -> None:
        if not 0 <= marker < len(self._checkpoints):
            raise DevnetRevert(f"unknown checkpoint {marker}")

    def commit_to(self, marker: int) -> None:
        """Keep every change since `marker` and drop it and all later checkpoints."""
        self._check_marker(marker)
        del self._checkpoints[marker:]

    def revert_to(self, marker: int) -> None:
        """Restore all contracts to their state at `marker`."""
        self._check_marker(marker)
        snap = self._checkpoints[marker]
        for addr in list(self._contracts):
            if addr not in snap:
                del self._contracts[addr]
        for addr, (obj, state) in snap.items():
            obj.restore(state)
            self._contracts[addr] = obj
        del self._checkpoints[marker:]
        log.debug("reverted to checkpoint %d", marker)

    @property
    def depth(self) -> int:
        return len(self._checkpoints)


__all__ = ["LocalChain", "det_address", "DEFAULT_START_TIME"]
