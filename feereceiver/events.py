"""
feereceiver.events — structured event records and an append-only event log.

`Event` is a compact, immutable record: a name, an argument mapping and the
sequence number it was appended at. Argument values are snapshots. Tuples are
used for sequences so a recorded event can never alias live ledger state.

`EventLog` is the sink the receiver emits into. It supports marking a
position and truncating back to it. The receiver uses that to drop events
emitted by a call that is later rolled back.

Event names emitted by the receiver
-----------------------------------
- ConvertAndTransfer   {caller, token_in, settlement_token, amount_in, amount_out,
                        payees, trigger_cut, payouts, retained}
- PayeeAdded           {account, shares}
- PayeeRemoved         {account, shares}
- ConfigChanged        {field, old, new}
- OwnershipTransferred {previous, new}
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, tuple):
        return tuple(_freeze(v) for v in value)
    if isinstance(value, dict):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    return value


def _jsonable(value: Any) -> Any:
    if isinstance(value, (tuple, list)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return value


@dataclass(frozen=True)
class Event:
    name: str
    args: Mapping[str, Any]
    seq: int = 0

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("event name must not be empty")
        object.__setattr__(self, "args", _freeze(dict(self.args)))

    def to_dict(self) -> Dict[str, Any]:
        return {"seq": self.seq, "name": self.name, "args": _jsonable(self.args)}


class EventLog:
    """Append-only list of events with mark/truncate for rollback."""

    def __init__(self) -> None:
        self._events: List[Event] = []

    def emit(self, name: str, args: Optional[Mapping[str, Any]] = None) -> Event:
        ev = Event(name=name, args=dict(args or {}), seq=len(self._events))
        self._events.append(ev)
        return ev

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    def named(self, name: str) -> Tuple[Event, ...]:
        return tuple(e for e in self._events if e.name == name)

    def last(self, name: Optional[str] = None) -> Optional[Event]:
        for ev in reversed(self._events):
            if name is None or ev.name == name:
                return ev
        return None

    def mark(self) -> int:
        return len(self._events)

    def truncate(self, marker: int) -> None:
        if marker < 0 or marker > len(self._events):
            raise ValueError(f"invalid event log marker {marker}")
        del self._events[marker:]

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(tuple(self._events))


__all__ = ["Event", "EventLog"]
