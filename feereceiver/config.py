"""
feereceiver.config — configuration for a fee receiver deployment.

Covers:
- ReceiverConfig: the receiver's tunables (owner, settlement token, router,
  trigger fee, optional stake gate, swap deadline window)
- DeployConfig: a ReceiverConfig plus the receiver's own address and the
  initial payee set

Environment overrides (all optional; addresses are 0x-prefixed hex):

  FEERECEIVER_ADDRESS=0x...              # the receiver's own account
  FEERECEIVER_OWNER=0x...
  FEERECEIVER_SETTLEMENT_TOKEN=0x...
  FEERECEIVER_ROUTER=0x...
  FEERECEIVER_TRIGGER_FEE_PERCENT=1      # 0..100
  FEERECEIVER_STAKE_LEDGER=0x...         # empty = unset
  FEERECEIVER_STAKE_THRESHOLD=500
  FEERECEIVER_STAKE_ACTIVE=false
  FEERECEIVER_DEADLINE_WINDOW_SECS=300
  FEERECEIVER_PAYEES=0xaa..:10,0xbb..:5

You can also load from a JSON or YAML file via
`FEERECEIVER_CONFIG_FILE=/path/to/config.(json|yaml|yml)`. File values override
defaults and the environment overrides the file.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .conversion import DEFAULT_DEADLINE_WINDOW_SECS
from .distribution import validate_fee_percent
from .errors import ValidationError
from .ledger import ensure_shares
from .types import (ZERO_ADDRESS, Address, Payee, require_nonzero_address,
                    require_uint, to_address)

ENV_PREFIX = "FEERECEIVER_"

_BOOL_TRUE = {"1", "true", "t", "yes", "y", "on"}
_BOOL_FALSE = {"0", "false", "f", "no", "n", "off"}


# -------------------------- Data classes --------------------------


@dataclass
class ReceiverConfig:
    """Tunables of one receiver. Mutated at runtime only through the owner-only setters."""

    owner: Address = ZERO_ADDRESS
    settlement_token: Address = ZERO_ADDRESS
    router: Address = ZERO_ADDRESS
    trigger_fee_percent: int = 0
    stake_ledger: Optional[Address] = None
    stake_threshold: int = 0
    stake_active: bool = False
    deadline_window_secs: int = DEFAULT_DEADLINE_WINDOW_SECS

    def validate(self) -> "ReceiverConfig":
        """Normalize addresses in place and check ranges. Returns self."""
        self.owner = require_nonzero_address(self.owner, "owner")
        self.settlement_token = require_nonzero_address(self.settlement_token, "settlement_token")
        self.router = require_nonzero_address(self.router, "router")
        if self.stake_ledger is not None:
            self.stake_ledger = require_nonzero_address(self.stake_ledger, "stake_ledger")
        self.trigger_fee_percent = validate_fee_percent(self.trigger_fee_percent)
        self.stake_threshold = require_uint(self.stake_threshold, "stake threshold", reason="BAD_THRESHOLD")
        if not isinstance(self.stake_active, bool):
            raise ValidationError("stake_active must be a boolean", reason="BAD_FLAG")
        if not isinstance(self.deadline_window_secs, int) or self.deadline_window_secs <= 0:
            raise ValidationError("deadline_window_secs must be a positive integer", reason="BAD_DEADLINE")
        return self

    def copy(self) -> "ReceiverConfig":
        return replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DeployConfig:
    """Everything needed to stand up a receiver."""

    address: Address = ZERO_ADDRESS
    receiver: ReceiverConfig = field(default_factory=ReceiverConfig)
    payees: Tuple[Payee, ...] = ()

    def validate(self) -> "DeployConfig":
        self.address = require_nonzero_address(self.address, "address")
        self.receiver.validate()
        seen = set()
        for p in self.payees:
            ensure_shares(p.shares)
            if p.address in seen:
                raise ValidationError(f"duplicate payee {p.address}", reason="DUPLICATE_PAYEE")
            seen.add(p.address)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "receiver": self.receiver.to_dict(),
            "payees": [p.to_dict() for p in self.payees],
        }


# -------------------------- Parsers --------------------------


def parse_bool(value: str) -> bool:
    v = value.strip().lower()
    if v in _BOOL_TRUE:
        return True
    if v in _BOOL_FALSE:
        return False
    raise ValidationError(f"invalid boolean: {value!r}", reason="BAD_FLAG")


def parse_int(name: str, value: str) -> int:
    try:
        return int(str(value).replace("_", ""))
    except ValueError as e:
        raise ValidationError(f"invalid int for {name}: {value!r}", reason="BAD_CONFIG") from e


def parse_payees(spec: str) -> List[Payee]:
    """
    Parse ``"0xaa..:10,0xbb..:5"`` into Payee records.

    Whitespace around entries is ignored; an empty string yields no payees.
    """
    out: List[Payee] = []
    for raw in spec.split(","):
        item = raw.strip()
        if not item:
            continue
        addr, sep, shares = item.rpartition(":")
        if not sep or not addr:
            raise ValidationError(f"payee entry must be ADDRESS:SHARES, got {item!r}", reason="BAD_CONFIG")
        out.append(Payee(to_address(addr), parse_int("shares", shares)))
    return out


def _payees_from_data(items: Any) -> Tuple[Payee, ...]:
    if items is None:
        return ()
    if isinstance(items, str):
        return tuple(parse_payees(items))
    if not isinstance(items, (list, tuple)):
        raise ValidationError("payees must be a list or an ADDRESS:SHARES string", reason="BAD_CONFIG")
    out: List[Payee] = []
    for item in items:
        try:
            if isinstance(item, Mapping):
                addr, shares = item["address"], item["shares"]
            else:
                addr, shares = item
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(
                f"payee entry must have an address and shares, got {item!r}", reason="BAD_CONFIG"
            ) from e
        out.append(Payee(to_address(addr), parse_int("shares", shares)))
    return tuple(out)


# -------------------------- Loaders --------------------------


def from_env(
    base: Optional[DeployConfig] = None,
    prefix: str = ENV_PREFIX,
    env: Optional[Mapping[str, str]] = None,
) -> DeployConfig:
    """
    Build a DeployConfig from environment variables, layered on top of `base`.
    Unset or empty variables keep the base value.
    """
    e = os.environ if env is None else env
    cfg = base or DeployConfig()
    rc = cfg.receiver.copy()

    def get(name: str) -> Optional[str]:
        v = e.get(prefix + name)
        return None if v is None or v.strip() == "" else v.strip()

    address = get("ADDRESS") or cfg.address
    if get("OWNER"):
        rc.owner = get("OWNER")  # type: ignore[assignment]
    if get("SETTLEMENT_TOKEN"):
        rc.settlement_token = get("SETTLEMENT_TOKEN")  # type: ignore[assignment]
    if get("ROUTER"):
        rc.router = get("ROUTER")  # type: ignore[assignment]
    if get("TRIGGER_FEE_PERCENT"):
        rc.trigger_fee_percent = parse_int("TRIGGER_FEE_PERCENT", get("TRIGGER_FEE_PERCENT"))  # type: ignore[arg-type]
    if get("STAKE_LEDGER"):
        rc.stake_ledger = get("STAKE_LEDGER")
    if get("STAKE_THRESHOLD"):
        rc.stake_threshold = parse_int("STAKE_THRESHOLD", get("STAKE_THRESHOLD"))  # type: ignore[arg-type]
    if get("STAKE_ACTIVE"):
        rc.stake_active = parse_bool(get("STAKE_ACTIVE"))  # type: ignore[arg-type]
    if get("DEADLINE_WINDOW_SECS"):
        rc.deadline_window_secs = parse_int("DEADLINE_WINDOW_SECS", get("DEADLINE_WINDOW_SECS"))  # type: ignore[arg-type]

    payees = cfg.payees
    if get("PAYEES"):
        payees = tuple(parse_payees(get("PAYEES")))  # type: ignore[arg-type]

    return DeployConfig(address=address, receiver=rc, payees=payees)


def from_mapping(data: Mapping[str, Any]) -> DeployConfig:
    """Build a DeployConfig from a parsed JSON/YAML document."""
    rdata = data.get("receiver") or {}
    if not isinstance(rdata, Mapping):
        raise ValidationError("receiver section must be a mapping", reason="BAD_CONFIG")
    defaults = ReceiverConfig()
    rc = ReceiverConfig(
        owner=rdata.get("owner", defaults.owner),
        settlement_token=rdata.get("settlement_token", defaults.settlement_token),
        router=rdata.get("router", defaults.router),
        trigger_fee_percent=rdata.get("trigger_fee_percent", defaults.trigger_fee_percent),
        stake_ledger=rdata.get("stake_ledger", defaults.stake_ledger),
        stake_threshold=rdata.get("stake_threshold", defaults.stake_threshold),
        stake_active=rdata.get("stake_active", defaults.stake_active),
        deadline_window_secs=rdata.get("deadline_window_secs", defaults.deadline_window_secs),
    )
    return DeployConfig(
        address=data.get("address", ZERO_ADDRESS),
        receiver=rc,
        payees=_payees_from_data(data.get("payees")),
    )


def from_file(path: str | os.PathLike[str]) -> DeployConfig:
    """Load a (not yet validated) DeployConfig from a JSON or YAML file."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ValidationError(f"cannot read config file {p}: {e}", reason="BAD_CONFIG") from e
    try:
        if p.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text or "{}")
    except (yaml.YAMLError, ValueError) as e:
        raise ValidationError(f"cannot parse config file {p}: {e}", reason="BAD_CONFIG") from e
    if not isinstance(data, Mapping):
        raise ValidationError(f"config file {p} must contain a mapping", reason="BAD_CONFIG")
    return from_mapping(data)


def load(env: Optional[Mapping[str, str]] = None) -> DeployConfig:
    """
    Load configuration using the following precedence:
      1) File at $FEERECEIVER_CONFIG_FILE (JSON/YAML)
      2) Environment variables (FEERECEIVER_*) on top of defaults or file values
    The result is validated.
    """
    e = os.environ if env is None else env
    file_path = e.get(ENV_PREFIX + "CONFIG_FILE")
    base = from_file(file_path) if file_path else DeployConfig()
    return from_env(base=base, env=e).validate()


def pretty(cfg: DeployConfig) -> str:
    """Return a human-readable JSON string of a config."""
    return json.dumps(cfg.to_dict(), indent=2, sort_keys=True)


__all__ = [
    "ENV_PREFIX",
    "ReceiverConfig",
    "DeployConfig",
    "parse_bool",
    "parse_int",
    "parse_payees",
    "from_env",
    "from_mapping",
    "from_file",
    "load",
    "pretty",
]
