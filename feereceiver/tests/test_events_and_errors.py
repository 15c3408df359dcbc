import json

import pytest

from feereceiver.errors import (AuthorizationError, ExternalCallFailure,
                                FeeReceiverError, StateError, ValidationError,
                                error_to_dict)
from feereceiver.events import Event, EventLog


def test_event_args_are_frozen_snapshots():
    live = ["0x" + "aa" * 20]
    ev = Event("ConvertAndTransfer", {"payees": live, "meta": {"k": [1, 2]}})
    live.append("0x" + "bb" * 20)
    assert ev.args["payees"] == ("0x" + "aa" * 20,)
    assert ev.args["meta"]["k"] == (1, 2)
    with pytest.raises(TypeError):
        ev.args["payees"] = ()  # type: ignore[index]


def test_event_requires_name():
    with pytest.raises(ValueError):
        Event("", {})


def test_log_mark_and_truncate():
    log = EventLog()
    log.emit("A", {"x": 1})
    m = log.mark()
    log.emit("B")
    log.emit("A", {"x": 2})
    assert [e.seq for e in log] == [0, 1, 2]
    assert log.last("A").args["x"] == 2
    assert len(log.named("A")) == 2

    log.truncate(m)
    assert len(log) == 1
    assert log.last().name == "A"
    with pytest.raises(ValueError):
        log.truncate(5)


def test_log_to_list_is_json_serializable():
    log = EventLog()
    log.emit("PayeeAdded", {"account": "0x" + "aa" * 20, "shares": 3, "pairs": (("a", 1),)})
    text = json.dumps(log.to_list())
    assert json.loads(text)[0]["args"]["pairs"] == [["a", 1]]


@pytest.mark.parametrize(
    "cls,code",
    [
        (AuthorizationError, "AUTHORIZATION"),
        (ValidationError, "VALIDATION"),
        (StateError, "STATE"),
        (ExternalCallFailure, "EXTERNAL_CALL"),
    ],
)
def test_error_codes_and_defaults(cls, code):
    err = cls("boom")
    assert isinstance(err, FeeReceiverError)
    assert err.code == code
    assert err.reason == code
    assert err.to_dict() == {"code": code, "reason": code, "message": "boom"}


def test_error_details_and_str():
    err = ValidationError("bad fee", reason="FEE_TOO_HIGH", details={"fee": 101})
    assert str(err) == 'FEE_TOO_HIGH: bad fee [{"fee":101}]'
    assert err.to_dict()["details"] == {"fee": 101}


def test_external_call_failure_target():
    err = ExternalCallFailure("swap failed", reason="SWAP_FAILED", target="0xrouter")
    assert err.details == {"target": "0xrouter"}


def test_error_to_dict_for_foreign_exceptions():
    assert error_to_dict(KeyError("k"))["code"] == "INTERNAL"
    assert error_to_dict(StateError("x", reason="NO_PAYEES"))["reason"] == "NO_PAYEES"
