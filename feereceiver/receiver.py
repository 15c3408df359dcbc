"""
feereceiver.receiver — the FeeReceiver facade.

A FeeReceiver is the single entry point tying together the share ledger, the
owner/stake access checks, the swap and the payout. It owns no balances of
its own. The tokens it converts and pays out sit at `address` on the host's
token ledgers.

Call flow of `convert_and_transfer`
-----------------------------------
    reentrancy guard
      └─ transaction (receiver snapshot + host checkpoint, if supported)
           ├─ stake gate (when active)
           ├─ NO_PAYEES check (before any external call)
           ├─ ConversionEngine.convert   -> amount received from the router
           ├─ DistributionEngine.distribute
           └─ emit ConvertAndTransfer
    any exception: host reverted, receiver state restored, exception re-raised

Admin entry points (`add_payee`, `remove_payee`, `set_*`, ownership changes)
take the caller as their first argument and check ownership before touching
anything. They validate fully before mutating, so no rollback is needed for
them. They are non-reentrant as well.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple

from . import metrics
from .access import AccessGate, Ownership
from .config import DeployConfig, ReceiverConfig
from .conversion import ConversionEngine
from .distribution import DistributionEngine, validate_fee_percent
from .errors import ExternalCallFailure, StateError, ValidationError
from .events import EventLog
from .interfaces import Checkpointable, Host, StakeLedger
from .ledger import ShareLedger
from .types import (ZERO_ADDRESS, Address, AddressLike, DistributionReport,
                    Payee, require_nonzero_address, require_uint, to_address)

log = logging.getLogger(__name__)


class FeeReceiver:
    """
    Collects fees, swaps them into the settlement token and splits the proceeds.

    Parameters
    ----------
    config:
        Initial tunables. Copied and validated; later changes go through the
        owner-only setters.
    host:
        Resolves token/router/stake-ledger addresses and provides the clock.
    address:
        The account holding the receiver's balances.
    payees, shares:
        Initial payee set (parallel sequences).
    events:
        Event sink; a fresh EventLog by default.
    """

    def __init__(
        self,
        config: ReceiverConfig,
        host: Host,
        *,
        address: AddressLike,
        payees: Sequence[AddressLike] = (),
        shares: Sequence[int] = (),
        events: Optional[EventLog] = None,
    ) -> None:
        cfg = config.copy().validate()
        self._address = require_nonzero_address(address, "address")
        self._host = host
        self._ownership = Ownership(cfg.owner)
        self._config = cfg
        self._ledger = ShareLedger(payees, shares)
        self._events = events if events is not None else EventLog()
        self._converter = ConversionEngine(host, deadline_window=cfg.deadline_window_secs)
        self._distributor = DistributionEngine(host)
        self._busy: Optional[str] = None
        if not isinstance(host, Checkpointable):
            log.warning(
                "host %s cannot checkpoint: transfers already made by a failed call are not undone",
                type(host).__name__,
            )
        log.info(
            "fee receiver ready address=%s owner=%s payees=%d total_shares=%d",
            self._address, cfg.owner, self._ledger.payee_count, self._ledger.total_shares,
        )

    @classmethod
    def from_deploy(cls, deploy: DeployConfig, host: Host, *, events: Optional[EventLog] = None) -> "FeeReceiver":
        deploy.validate()
        return cls(
            deploy.receiver,
            host,
            address=deploy.address,
            payees=[p.address for p in deploy.payees],
            shares=[p.shares for p in deploy.payees],
            events=events,
        )

    # ------------------------------------------------------------------ guards

    @contextmanager
    def _non_reentrant(self, op: str) -> Iterator[None]:
        if self._busy is not None:
            raise StateError(
                f"{op} called while {self._busy} is in progress",
                reason="REENTRANT_CALL",
                details={"op": op, "in_progress": self._busy},
            )
        self._busy = op
        try:
            yield
        finally:
            self._busy = None

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        ledger_snap = self._ledger.dump()
        config_snap = self._config.copy()
        owner_snap = self._ownership.owner
        event_mark = self._events.mark()
        marker = self._host.checkpoint() if isinstance(self._host, Checkpointable) else None
        try:
            yield
        except BaseException as exc:
            if marker is not None:
                self._host.revert_to(marker)  # type: ignore[attr-defined]
            self._ledger.restore(ledger_snap)
            self._config = config_snap
            self._ownership._restore(owner_snap)
            self._events.truncate(event_mark)
            log.warning("transaction rolled back: %s", exc)
            raise
        if marker is not None:
            self._host.commit_to(marker)  # type: ignore[attr-defined]

    # ------------------------------------------------------------------ core

    def convert_and_transfer(
        self,
        caller: AddressLike,
        token: AddressLike,
        min_out: int,
        path: Sequence[AddressLike],
        *,
        deadline: Optional[int] = None,
    ) -> DistributionReport:
        """
        Swap the receiver's whole balance of `token` along `path` into the
        settlement token, pay `trigger_fee`% of the output to `caller` and split
        the rest among the payees by shares.

        Open to any caller unless stake gating is active. All-or-nothing.
        """
        with self._non_reentrant("convert_and_transfer"), metrics.timer():
            try:
                with self._transaction():
                    report = self._convert_and_transfer(caller, token, min_out, path, deadline)
            except Exception as exc:
                metrics.record_failure(exc)
                raise
        plan = report.plan
        metrics.record_distribution(
            distributed=plan.distributed,
            trigger_cut=plan.trigger_cut,
            retained=plan.retained,
            transfers=sum(1 for _, amount in plan.payouts if amount),
        )
        return report

    def _convert_and_transfer(
        self,
        caller: AddressLike,
        token: AddressLike,
        min_out: int,
        path: Sequence[AddressLike],
        deadline: Optional[int],
    ) -> DistributionReport:
        who = to_address(caller)
        cfg = self._config

        AccessGate.check_access(
            who,
            active=cfg.stake_active,
            threshold=cfg.stake_threshold,
            stake_ledger=self._resolve_stake_ledger() if cfg.stake_active else None,
        )
        if self._ledger.total_shares == 0:
            raise StateError("No payees are set", reason="NO_PAYEES")

        conversion = self._converter.convert(
            holder=self._address,
            token=token,
            min_out=min_out,
            path=path,
            settlement_token=cfg.settlement_token,
            router=cfg.router,
            deadline=deadline,
        )
        plan = self._distributor.distribute(
            holder=self._address,
            settlement_token=cfg.settlement_token,
            amount=conversion.amount_out,
            caller=who,
            ledger=self._ledger,
            fee_percent=cfg.trigger_fee_percent,
        )
        report = DistributionReport(caller=who, conversion=conversion, plan=plan)
        self._events.emit("ConvertAndTransfer", report.event_args())
        log.info(
            "convert_and_transfer caller=%s token=%s amount_in=%d amount_out=%d trigger_cut=%d retained=%d",
            who, conversion.token_in, conversion.amount_in, conversion.amount_out,
            plan.trigger_cut, plan.retained,
        )
        return report

    def _resolve_stake_ledger(self) -> Optional[StakeLedger]:
        addr = self._config.stake_ledger
        if addr is None:
            return None
        try:
            return self._host.stake_ledger(addr)
        except Exception as exc:
            raise ExternalCallFailure(
                f"cannot resolve stake ledger: {exc}", reason="STAKE_QUERY_FAILED", target=addr
            ) from exc

    # ------------------------------------------------------------------ payees

    def add_payee(self, caller: AddressLike, address: AddressLike, shares: int) -> Payee:
        with self._non_reentrant("add_payee"):
            self._ownership.require_owner(caller)
            payee = self._ledger.add_payee(address, shares)
            self._events.emit("PayeeAdded", {"account": payee.address, "shares": payee.shares})
            log.info(
                "payee added account=%s shares=%d total_shares=%d",
                payee.address, payee.shares, self._ledger.total_shares,
            )
            return payee

    def remove_payee(self, caller: AddressLike, address: AddressLike, index: int) -> Payee:
        """Remove `address`, which must currently sit at position `index`."""
        with self._non_reentrant("remove_payee"):
            self._ownership.require_owner(caller)
            payee = self._ledger.remove_payee(address, index)
            self._events.emit("PayeeRemoved", {"account": payee.address, "shares": payee.shares})
            log.info(
                "payee removed account=%s shares=%d total_shares=%d",
                payee.address, payee.shares, self._ledger.total_shares,
            )
            return payee

    # ------------------------------------------------------------------ admin

    def _set(self, op: str, caller: AddressLike, field: str, validate: Any, value: Any) -> None:
        with self._non_reentrant(op):
            self._ownership.require_owner(caller)
            new = validate(value)
            old = getattr(self._config, field)
            setattr(self._config, field, new)
            self._events.emit("ConfigChanged", {"field": field, "old": old, "new": new})
            log.info("config changed field=%s old=%s new=%s", field, old, new)

    def set_swap_token(self, caller: AddressLike, address: AddressLike) -> None:
        """Change the settlement token every conversion must end in."""
        self._set(
            "set_swap_token", caller, "settlement_token",
            lambda v: require_nonzero_address(v, "settlement_token"), address,
        )

    def set_router(self, caller: AddressLike, address: AddressLike) -> None:
        self._set("set_router", caller, "router", lambda v: require_nonzero_address(v, "router"), address)

    def set_stake_address(self, caller: AddressLike, address: AddressLike) -> None:
        self._set(
            "set_stake_address", caller, "stake_ledger",
            lambda v: require_nonzero_address(v, "stake_ledger"), address,
        )

    def set_trigger_fee(self, caller: AddressLike, percent: int) -> None:
        self._set("set_trigger_fee", caller, "trigger_fee_percent", validate_fee_percent, percent)

    def set_stake_threshold(self, caller: AddressLike, threshold: int) -> None:
        self._set(
            "set_stake_threshold", caller, "stake_threshold",
            lambda v: require_uint(v, "stake threshold", reason="BAD_THRESHOLD"), threshold,
        )

    def set_stake_active(self, caller: AddressLike, active: bool) -> None:
        self._set("set_stake_active", caller, "stake_active", _require_bool, active)

    # ------------------------------------------------------------------ ownership

    def transfer_ownership(self, caller: AddressLike, new_owner: AddressLike) -> None:
        with self._non_reentrant("transfer_ownership"):
            previous = self._ownership.transfer_ownership(caller, new_owner)
            self._config.owner = self._ownership.owner  # type: ignore[assignment]
            self._events.emit("OwnershipTransferred", {"previous": previous, "new": self._ownership.owner})

    def renounce_ownership(self, caller: AddressLike) -> None:
        """Leave the receiver ownerless. Every owner-only call fails afterwards."""
        with self._non_reentrant("renounce_ownership"):
            previous = self._ownership.renounce_ownership(caller)
            self._config.owner = ZERO_ADDRESS
            self._events.emit("OwnershipTransferred", {"previous": previous, "new": ZERO_ADDRESS})

    # ------------------------------------------------------------------ views

    @property
    def address(self) -> Address:
        return self._address

    @property
    def host(self) -> Host:
        return self._host

    @property
    def events(self) -> EventLog:
        return self._events

    @property
    def owner(self) -> Optional[Address]:
        return self._ownership.owner

    @property
    def settlement_token(self) -> Address:
        return self._config.settlement_token

    @property
    def router(self) -> Address:
        return self._config.router

    @property
    def trigger_fee(self) -> int:
        return self._config.trigger_fee_percent

    @property
    def stake_address(self) -> Optional[Address]:
        return self._config.stake_ledger

    @property
    def stake_threshold(self) -> int:
        return self._config.stake_threshold

    @property
    def stake_active(self) -> bool:
        return self._config.stake_active

    @property
    def config(self) -> ReceiverConfig:
        return self._config.copy()

    @property
    def total_shares(self) -> int:
        return self._ledger.total_shares

    @property
    def payee_count(self) -> int:
        return self._ledger.payee_count

    def payee(self, index: int) -> Address:
        return self._ledger.payee(index)

    def shares(self, address: AddressLike) -> int:
        return self._ledger.shares(address)

    def payees(self) -> Tuple[Address, ...]:
        return self._ledger.payees()

    def state(self) -> Dict[str, Any]:
        """JSON-friendly dump of the receiver's own state (no balances)."""
        return {
            "address": self._address,
            "owner": self._ownership.owner,
            "config": self._config.to_dict(),
            "ledger": self._ledger.dump(),
        }

    def __repr__(self) -> str:  # pragma: no cover - cosmetic
        return f"FeeReceiver(address={self._address}, payees={self._ledger.payee_count})"


def _require_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"expected a boolean, got {value!r}", reason="BAD_FLAG")
    return value


__all__ = ["FeeReceiver"]
