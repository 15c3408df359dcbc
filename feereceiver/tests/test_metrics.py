import pytest

from feereceiver import metrics
from feereceiver.devnet import build_scenario
from feereceiver.errors import ExternalCallFailure


def _value(name, labels=None):
    return metrics.REGISTRY.get_sample_value(name, labels or {}) or 0.0


def test_success_updates_counters():
    sc = build_scenario(shares=(10, 1, 5, 3))
    ok_before = _value("feereceiver_distributions_total", {"result": "ok"})
    paid_before = _value("feereceiver_settlement_distributed_total")
    trigger_before = _value("feereceiver_trigger_paid_total")
    transfers_before = _value("feereceiver_payout_transfers_total")
    latency_before = _value("feereceiver_distribution_seconds_count")

    report = sc.receiver.convert_and_transfer(sc.chain.account("trigger"), sc.fee_token.address, 0, sc.path(2))

    assert _value("feereceiver_distributions_total", {"result": "ok"}) == ok_before + 1
    assert _value("feereceiver_settlement_distributed_total") == paid_before + report.plan.distributed
    assert _value("feereceiver_trigger_paid_total") == trigger_before + 226
    assert _value("feereceiver_payout_transfers_total") == transfers_before + 4
    assert _value("feereceiver_distribution_seconds_count") == latency_before + 1


def test_failure_counted_by_code_and_reason():
    sc = build_scenario()
    labels = {"code": "EXTERNAL_CALL", "reason": "SWAP_FAILED"}
    before = _value("feereceiver_failures_total", labels)
    failed_before = _value("feereceiver_distributions_total", {"result": "failed"})

    with pytest.raises(ExternalCallFailure):
        sc.receiver.convert_and_transfer(sc.chain.account("trigger"), sc.fee_token.address, 10**9, sc.path(2))

    assert _value("feereceiver_failures_total", labels) == before + 1
    assert _value("feereceiver_distributions_total", {"result": "failed"}) == failed_before + 1


def test_non_domain_errors_are_internal():
    before = _value("feereceiver_failures_total", {"code": "INTERNAL", "reason": "KeyError"})
    metrics.record_failure(KeyError("x"))
    assert _value("feereceiver_failures_total", {"code": "INTERNAL", "reason": "KeyError"}) == before + 1


def test_render_latest_exposes_metric_names():
    body = metrics.render_latest().decode("utf-8")
    assert "feereceiver_distributions_total" in body
    assert "feereceiver_distribution_seconds_bucket" in body
