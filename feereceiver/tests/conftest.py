from __future__ import annotations

import hashlib
from typing import Dict

import pytest

from feereceiver.devnet import Scenario, build_scenario


def _det_address(tag: str) -> str:
    """
    Produce a stable 20-byte hex address (0x...) from a tag.
    Tests treat it as an externally-owned account.
    """
    h = hashlib.sha3_256(tag.encode("utf-8")).hexdigest()[:40]
    return "0x" + h


@pytest.fixture(scope="session")
def addrs() -> Dict[str, str]:
    """Named accounts: deployer, account1..account4, alice, bob."""
    names = ("deployer", "account1", "account2", "account3", "account4", "alice", "bob")
    return {n: _det_address(n) for n in names}


@pytest.fixture
def scenario() -> Scenario:
    """Single payee, 1% trigger fee, receiver holding 25_000 FEE, 250_000/250_000 pools."""
    return build_scenario()


@pytest.fixture
def four_payees() -> Scenario:
    return build_scenario(shares=(1, 1, 1, 1))


@pytest.fixture
def trigger(scenario: Scenario) -> str:
    return scenario.chain.account("trigger")
