"""
feereceiver — autonomous fee collection, conversion and distribution.

A FeeReceiver holds token balances, converts them into a settlement token
through an external swap router and pays the proceeds out to a set of payees
in proportion to their shares. Distribution can be gated on the caller holding
a minimum stake in an external staking ledger.

Public surface:
- FeeReceiver (facade), ReceiverConfig
- ShareLedger, AccessGate, ConversionEngine, DistributionEngine
- error taxonomy (AuthorizationError, ValidationError, StateError, ExternalCallFailure)
- devnet: in-memory collaborators for tests and simulations
"""

from __future__ import annotations

from typing import List

from .access import AccessGate, Ownership
from .config import ReceiverConfig
from .conversion import ConversionEngine
from .distribution import DistributionEngine, plan_distribution
from .errors import (AuthorizationError, ExternalCallFailure, FeeReceiverError,
                     StateError, ValidationError)
from .events import Event, EventLog
from .ledger import ShareLedger
from .receiver import FeeReceiver
from .types import ZERO_ADDRESS, Payee, to_address
from .version import __version__

__all__: List[str] = [
    "__version__",
    "FeeReceiver",
    "ReceiverConfig",
    "ShareLedger",
    "AccessGate",
    "Ownership",
    "ConversionEngine",
    "DistributionEngine",
    "plan_distribution",
    "Event",
    "EventLog",
    "Payee",
    "ZERO_ADDRESS",
    "to_address",
    "FeeReceiverError",
    "AuthorizationError",
    "ValidationError",
    "StateError",
    "ExternalCallFailure",
]
