"""
feereceiver.devnet — in-memory collaborators for tests and simulations.

- LocalChain: Host + Checkpointable (deterministic addresses, manual clock)
- LocalToken: ERC-20-like token
- ConstantProductRouter: x*y=k pools with a 0.3% fee
- LocalStaking: stake ledger holding a LocalToken
- build_scenario: tokens, seeded pools, staking and a funded FeeReceiver
"""

from __future__ import annotations

from .chain import LocalChain, det_address
from .errors import DevnetRevert
from .router import ConstantProductRouter, get_amount_out
from .scenario import Scenario, build_scenario
from .staking import LocalStaking
from .token import LocalToken

__all__ = [
    "LocalChain",
    "LocalToken",
    "ConstantProductRouter",
    "LocalStaking",
    "DevnetRevert",
    "Scenario",
    "build_scenario",
    "det_address",
    "get_amount_out",
]
