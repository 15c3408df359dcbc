"""
feereceiver.conversion — swap the receiver's balance of one token into the
settlement token through the configured router.

Sequence (all synchronous; any failure aborts the enclosing call):

  1. validate the path: at least two hops, starts at `token`, ends at the
     settlement token
  2. read the holder's balance of `token`; zero is a StateError
  3. approve the router for exactly that balance
  4. call the router with (balance, min_out, path, recipient=holder, deadline)
  5. take the received amount from the router's own return value

The balance is never re-read after the swap. Anything else sitting in the
holder's settlement-token balance (earlier rounding leftovers, donations) is
not counted as proceeds of this swap.

Deadline: defaults to ``now + deadline_window``. An explicit deadline must lie
within ``[now, now + deadline_window]`` so a delayed execution cannot use a
stale or unbounded one.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence, Tuple

from .errors import ExternalCallFailure, StateError, ValidationError
from .interfaces import Host
from .types import (Address, AddressLike, ConversionResult, require_uint,
                    to_address)

log = logging.getLogger(__name__)

DEFAULT_DEADLINE_WINDOW_SECS = 300


def validate_path(
    token: AddressLike, path: Sequence[AddressLike], settlement_token: AddressLike
) -> Tuple[Address, ...]:
    """Normalize `path` and check it runs from `token` to `settlement_token`."""
    if path is None or isinstance(path, (str, bytes)) or len(path) < 2:
        raise ValidationError(
            "swap path must contain at least two tokens",
            reason="BAD_PATH",
            details={"length": 0 if path is None or isinstance(path, (str, bytes)) else len(path)},
        )
    hops = tuple(to_address(p) for p in path)
    tok = to_address(token)
    settle = to_address(settlement_token)
    if hops[0] != tok:
        raise ValidationError(
            "swap path must start with the token being converted",
            reason="BAD_PATH",
            details={"token": tok, "path_first": hops[0]},
        )
    if hops[-1] != settle:
        raise ValidationError(
            "swap path must end with the settlement token",
            reason="BAD_PATH",
            details={"settlement_token": settle, "path_last": hops[-1]},
        )
    return hops


def _coerce_amounts(raw: Any, hops: int) -> Tuple[int, ...]:
    try:
        amounts = tuple(raw)
    except TypeError as exc:
        raise ExternalCallFailure(
            "router returned a non-sequence result", reason="BAD_SWAP_RESULT"
        ) from exc
    if len(amounts) != hops:
        raise ExternalCallFailure(
            f"router returned {len(amounts)} amounts for a {hops}-token path",
            reason="BAD_SWAP_RESULT",
        )
    for a in amounts:
        if not isinstance(a, int) or isinstance(a, bool) or a < 0:
            raise ExternalCallFailure(
                f"router returned an invalid amount: {a!r}", reason="BAD_SWAP_RESULT"
            )
    return amounts


class ConversionEngine:
    """Validates and executes one swap against the router."""

    def __init__(self, host: Host, *, deadline_window: int = DEFAULT_DEADLINE_WINDOW_SECS) -> None:
        if deadline_window <= 0:
            raise ValidationError("deadline window must be positive", reason="BAD_DEADLINE")
        self._host = host
        self.deadline_window = int(deadline_window)

    def resolve_deadline(self, deadline: Optional[int]) -> int:
        now = int(self._host.now())
        latest = now + self.deadline_window
        if deadline is None:
            return latest
        if not isinstance(deadline, int) or isinstance(deadline, bool) or not now <= deadline <= latest:
            raise ValidationError(
                "deadline must lie between now and now + deadline window",
                reason="BAD_DEADLINE",
                details={"deadline": deadline, "now": now, "latest": latest},
            )
        return deadline

    def convert(
        self,
        *,
        holder: AddressLike,
        token: AddressLike,
        min_out: int,
        path: Sequence[AddressLike],
        settlement_token: AddressLike,
        router: AddressLike,
        deadline: Optional[int] = None,
    ) -> ConversionResult:
        hops = validate_path(token, path, settlement_token)
        min_out = require_uint(min_out, "min_out", reason="BAD_MIN_OUT")
        who = to_address(holder)
        router_addr = to_address(router)
        when = self.resolve_deadline(deadline)

        try:
            ledger = self._host.token(hops[0])
            balance = ledger.balance_of(who)
        except Exception as exc:
            raise ExternalCallFailure(
                f"balance query failed: {exc}", reason="BALANCE_QUERY_FAILED", target=hops[0]
            ) from exc
        if not balance:
            raise StateError(
                "Token balance is zero", reason="ZERO_BALANCE", details={"token": hops[0]}
            )

        try:
            approved = ledger.approve(who, router_addr, balance)
        except Exception as exc:
            raise ExternalCallFailure(
                f"approve failed: {exc}", reason="APPROVE_FAILED", target=hops[0]
            ) from exc
        if approved is False:
            raise ExternalCallFailure("approve returned false", reason="APPROVE_FAILED", target=hops[0])

        try:
            raw = self._host.router(router_addr).swap_exact_tokens_for_tokens(
                who, balance, min_out, list(hops), who, when
            )
        except Exception as exc:
            raise ExternalCallFailure(
                f"swap failed: {exc}", reason="SWAP_FAILED", target=router_addr
            ) from exc

        amounts = _coerce_amounts(raw, len(hops))
        received = amounts[-1]
        if received < min_out:
            raise ExternalCallFailure(
                "router output below minimum",
                reason="INSUFFICIENT_OUTPUT",
                target=router_addr,
                details={"amount_out": received, "min_out": min_out},
            )

        log.debug(
            "converted token=%s amount_in=%d amount_out=%d hops=%d",
            hops[0], balance, received, len(hops),
        )
        return ConversionResult(
            token_in=hops[0],
            token_out=hops[-1],
            amount_in=balance,
            amount_out=received,
            path=hops,
            amounts=amounts,
            deadline=when,
        )


__all__ = ["ConversionEngine", "validate_path", "DEFAULT_DEADLINE_WINDOW_SECS"]
