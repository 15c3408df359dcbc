"""
feereceiver.errors — error taxonomy for the fee receiver.

Every failure surfaces as a typed exception carrying a stable `code` (the error
family), a short machine-checkable `reason` and a human-readable `message`.
Errors are lightweight and serializable so they can be logged or returned by a
CLI without further translation.

Hierarchy
---------
FeeReceiverError (base)
 ├─ AuthorizationError  : non-owner on an owner-only call; stake gate rejected caller
 ├─ ValidationError     : bad input (zero shares, zero address, fee > 100, bad path, index mismatch)
 ├─ StateError          : operation impossible in the current state (no payees, zero balance, duplicate payee)
 └─ ExternalCallFailure : a collaborator (token, router, stake ledger) failed or misbehaved

Every error aborts the whole in-flight operation. Nothing is retried here.
The caller resubmits a corrected call.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional


class FeeReceiverError(Exception):
    """Base class for fee receiver errors."""

    code: str = "FEE_RECEIVER_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        reason: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message = message or self.__class__.__name__
        self.reason = reason or self.code
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "reason": self.reason, "message": self.message}
        if self.details:
            out["details"] = self.details
        return out

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            except (TypeError, ValueError):
                packed = str(self.details)
            return f"{self.reason}: {self.message} [{packed}]"
        return f"{self.reason}: {self.message}"


class AuthorizationError(FeeReceiverError):
    """Caller is not allowed to perform the operation."""

    code = "AUTHORIZATION"


class ValidationError(FeeReceiverError):
    """An argument is malformed or out of range."""

    code = "VALIDATION"


class StateError(FeeReceiverError):
    """The operation is not possible in the current state."""

    code = "STATE"


class ExternalCallFailure(FeeReceiverError):
    """
    A collaborator call failed: the router reverted or under-delivered, or a
    token approve/transfer failed. The collaborator's exception is chained as
    `__cause__` when there is one.
    """

    code = "EXTERNAL_CALL"

    def __init__(
        self,
        message: str = "external call failed",
        *,
        reason: Optional[str] = None,
        target: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if target is not None:
            d.setdefault("target", target)
        super().__init__(message, reason=reason, details=d)


def error_to_dict(err: BaseException) -> Dict[str, Any]:
    """Map any exception to a JSON-safe dict (non-domain errors get code 'INTERNAL')."""
    if isinstance(err, FeeReceiverError):
        return err.to_dict()
    return {"code": "INTERNAL", "reason": type(err).__name__, "message": str(err)}


__all__ = [
    "FeeReceiverError",
    "AuthorizationError",
    "ValidationError",
    "StateError",
    "ExternalCallFailure",
    "error_to_dict",
]
