import json

from typer.testing import CliRunner

from feereceiver.cli.main import app

runner = CliRunner()

P1 = "0x" + "aa" * 20
P2 = "0x" + "bb" * 20


def test_split_preview():
    res = runner.invoke(app, ["split", "22665", "--fee", "1", "--payee", f"{P1}:3", "--payee", f"{P2}:1"])
    assert res.exit_code == 0, res.output
    plan = json.loads(res.stdout)
    assert plan["trigger_cut"] == 226
    assert plan["payouts"] == [
        {"address": P1, "amount": 22439 * 3 // 4},
        {"address": P2, "amount": 22439 // 4},
    ]


def test_split_without_payees_fails():
    res = runner.invoke(app, ["split", "100"])
    assert res.exit_code == 1


def test_simulate_three_hop_four_payees():
    res = runner.invoke(app, ["simulate", "--payees", "4", "--hops", "3"])
    assert res.exit_code == 0, res.output
    out = json.loads(res.stdout)
    assert out["report"]["conversion"]["amount_out"] == 20723
    assert [p["amount"] for p in out["report"]["plan"]["payouts"]] == [5129] * 4
    assert out["events"][-1]["name"] == "ConvertAndTransfer"
    assert out["balances"]["payee0"] == 5129


def test_config_from_env():
    env = {
        "FEERECEIVER_ADDRESS": "0x" + "05" * 20,
        "FEERECEIVER_OWNER": "0x" + "01" * 20,
        "FEERECEIVER_SETTLEMENT_TOKEN": "0x" + "02" * 20,
        "FEERECEIVER_ROUTER": "0x" + "03" * 20,
        "FEERECEIVER_PAYEES": f"{P1}:1",
        "FEERECEIVER_CONFIG_FILE": "",
    }
    res = runner.invoke(app, ["config"], env=env)
    assert res.exit_code == 0, res.output
    out = json.loads(res.stdout)
    assert out["receiver"]["router"] == "0x" + "03" * 20
    assert out["payees"] == [{"address": P1, "shares": 1}]


def test_config_invalid_exits_nonzero(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("receiver:\n  trigger_fee_percent: 1\n", encoding="utf-8")
    res = runner.invoke(app, ["config", "--file", str(path)], env={"FEERECEIVER_OWNER": ""})
    assert res.exit_code == 1


def test_bad_log_level():
    res = runner.invoke(app, ["--log-level", "LOUD", "split", "1", "--payee", f"{P1}:1"])
    assert res.exit_code != 0


def test_split_rejects_negative_shares():
    res = runner.invoke(app, ["split", "100", "--payee", f"{P1}:10", "--payee", f"{P2}:-5"])
    assert res.exit_code == 1
    assert "BAD_SHARES" in res.output


def _base_env(**extra):
    env = {
        "FEERECEIVER_ADDRESS": "0x" + "05" * 20,
        "FEERECEIVER_OWNER": "0x" + "01" * 20,
        "FEERECEIVER_SETTLEMENT_TOKEN": "0x" + "02" * 20,
        "FEERECEIVER_ROUTER": "0x" + "03" * 20,
        "FEERECEIVER_CONFIG_FILE": "",
    }
    env.update(extra)
    return env


def test_config_rejects_non_positive_shares():
    res = runner.invoke(app, ["config"], env=_base_env(FEERECEIVER_PAYEES=f"{P1}:0,{P2}:-3"))
    assert res.exit_code == 1
    assert "ZERO_SHARES" in res.output


def test_config_missing_file(tmp_path):
    res = runner.invoke(app, ["config", "--file", str(tmp_path / "nope.yaml")], env=_base_env())
    assert res.exit_code == 1
    assert "BAD_CONFIG" in res.output


def test_config_bad_share_literal(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text("payees:\n  - {address: '" + P1 + "', shares: abc}\n", encoding="utf-8")
    res = runner.invoke(app, ["config", "--file", str(path)], env=_base_env())
    assert res.exit_code == 1
    assert "BAD_CONFIG" in res.output
