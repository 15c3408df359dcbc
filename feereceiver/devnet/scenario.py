"""
A ready-made devnet: fee token, settlement token, an intermediate token for
multi-hop paths, a constant-product router with fresh pools, a staking ledger
and a funded FeeReceiver.

Pools (each seeded with `liquidity` of both sides):

    FEE/SETTLE   2-token path   FEE -> SETTLE
    FEE/MID      3-token path   FEE -> MID -> SETTLE
    MID/SETTLE

With the defaults (250_000 liquidity, 25_000 FEE held by the receiver) a
2-token swap yields 22_665 SETTLE and a 3-token swap yields 20_723.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..config import ReceiverConfig
from ..receiver import FeeReceiver
from ..types import Address
from .chain import LocalChain
from .router import ConstantProductRouter
from .staking import LocalStaking
from .token import LocalToken

DEFAULT_LIQUIDITY = 250_000
DEFAULT_FEE_AMOUNT = 25_000


@dataclass
class Scenario:
    chain: LocalChain
    receiver: FeeReceiver
    fee_token: LocalToken
    mid_token: LocalToken
    settlement: LocalToken
    stake_token: LocalToken
    router: ConstantProductRouter
    staking: LocalStaking
    owner: Address
    payees: Tuple[Address, ...]

    def path(self, hops: int = 2) -> Tuple[Address, ...]:
        """Swap path from the fee token to the settlement token with 2 or 3 tokens."""
        if hops == 2:
            return (self.fee_token.address, self.settlement.address)
        if hops == 3:
            return (self.fee_token.address, self.mid_token.address, self.settlement.address)
        raise ValueError(f"unsupported path length {hops}")

    def stake(self, account: Address, amount: int) -> int:
        """Mint `amount` stake tokens to `account` and stake them."""
        self.stake_token.mint(account, amount)
        self.stake_token.approve(account, self.staking.address, amount)
        return self.staking.stake(account, amount)

    def balances(self, token: Optional[LocalToken] = None) -> dict:
        tok = token or self.settlement
        accounts = {"receiver": self.receiver.address, "owner": self.owner}
        accounts.update({f"payee{i}": p for i, p in enumerate(self.payees)})
        return {name: tok.balance_of(addr) for name, addr in accounts.items()}


def _seed_pool(chain: LocalChain, router: ConstantProductRouter, a: LocalToken, b: LocalToken, amount: int) -> None:
    lp = chain.account("liquidity")
    for tok in (a, b):
        tok.mint(lp, amount)
        tok.approve(lp, router.address, amount)
    router.add_liquidity(lp, a.address, b.address, amount, amount)


def build_scenario(
    *,
    shares: Sequence[int] = (1,),
    trigger_fee: int = 1,
    fee_amount: int = DEFAULT_FEE_AMOUNT,
    liquidity: int = DEFAULT_LIQUIDITY,
    stake_threshold: int = 0,
    stake_active: bool = False,
    seed: str = "devnet",
) -> Scenario:
    """One payee per entry in `shares`; the receiver starts holding `fee_amount` FEE."""
    chain = LocalChain(seed=seed)
    owner = chain.account("deployer")

    fee = chain.deploy_token("FEE")
    mid = chain.deploy_token("MID")
    settle = chain.deploy_token("SETTLE")
    stk = chain.deploy_token("STAKE")
    router = chain.deploy_router()
    staking = chain.deploy_staking(stk.address)

    _seed_pool(chain, router, fee, settle, liquidity)
    _seed_pool(chain, router, fee, mid, liquidity)
    _seed_pool(chain, router, mid, settle, liquidity)

    payees = tuple(chain.account(f"payee{i}") for i in range(len(shares)))
    cfg = ReceiverConfig(
        owner=owner,
        settlement_token=settle.address,
        router=router.address,
        trigger_fee_percent=trigger_fee,
        stake_ledger=staking.address,
        stake_threshold=stake_threshold,
        stake_active=stake_active,
    )
    receiver = FeeReceiver(cfg, chain, address=chain.account("fee-receiver"), payees=payees, shares=list(shares))
    if fee_amount:
        fee.mint(receiver.address, fee_amount)

    return Scenario(
        chain=chain,
        receiver=receiver,
        fee_token=fee,
        mid_token=mid,
        settlement=settle,
        stake_token=stk,
        router=router,
        staking=staking,
        owner=owner,
        payees=payees,
    )


__all__ = ["Scenario", "build_scenario", "DEFAULT_LIQUIDITY", "DEFAULT_FEE_AMOUNT"]
