from __future__ import annotations

"""
feereceiver.cli.main
--------------------

Operator commands for the fee receiver.

Examples
--------
# Print the resolved configuration (file at $FEERECEIVER_CONFIG_FILE + env)
python -m feereceiver.cli config

# Preview how 22665 settlement units would be split with a 1% trigger fee
python -m feereceiver.cli split 22665 --fee 1 --payee 0xaa..:3 --payee 0xbb..:1

# Run one convert-and-transfer on an in-memory devnet and print the report
python -m feereceiver.cli simulate --payees 4 --hops 3
"""

import json
import logging
from typing import List, Optional

import typer

from .. import config as cfgmod
from ..devnet import build_scenario
from ..distribution import plan_distribution
from ..errors import FeeReceiverError, error_to_dict

app = typer.Typer(
    name="feereceiver",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect configuration, preview splits and simulate fee distribution.",
)

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _fail(err: FeeReceiverError) -> None:
    typer.echo(json.dumps({"error": error_to_dict(err)}, indent=2, sort_keys=True), err=True)
    raise typer.Exit(1)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level (DEBUG|INFO|WARNING|ERROR)."),
) -> None:
    # logging is left unconfigured unless asked for
    if log_level is None:
        return
    level = log_level.upper()
    if level not in _LEVELS:
        raise typer.BadParameter(f"expected one of {', '.join(_LEVELS)}", param_hint="--log-level")
    logging.basicConfig(level=getattr(logging, level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command("config")
def show_config(
    file: Optional[str] = typer.Option(None, "--file", help="JSON/YAML config file (overrides $FEERECEIVER_CONFIG_FILE)."),
) -> None:
    """Print the resolved, validated configuration as JSON."""
    try:
        if file:
            cfg = cfgmod.from_env(base=cfgmod.from_file(file)).validate()
        else:
            cfg = cfgmod.load()
    except FeeReceiverError as e:
        _fail(e)
        return
    typer.echo(cfgmod.pretty(cfg))


@app.command("split")
def split(
    amount: int = typer.Argument(..., min=0, help="Settlement token units to distribute."),
    fee: int = typer.Option(0, "--fee", min=0, max=100, help="Trigger fee percent paid to the caller."),
    payee: Optional[List[str]] = typer.Option(None, "--payee", help="ADDRESS:SHARES (repeatable)."),
) -> None:
    """Preview a distribution plan without touching any balances."""
    try:
        payees = cfgmod.parse_payees(",".join(payee or []))
        plan = plan_distribution(amount, fee, payees)
    except FeeReceiverError as e:
        _fail(e)
        return
    typer.echo(json.dumps(plan.to_dict(), indent=2, sort_keys=True))


@app.command("simulate")
def simulate(
    amount: int = typer.Option(25_000, "--amount", min=1, help="Fee tokens held by the receiver."),
    liquidity: int = typer.Option(250_000, "--liquidity", min=1, help="Reserves of each side of every pool."),
    fee: int = typer.Option(1, "--fee", min=0, max=100, help="Trigger fee percent."),
    payees: int = typer.Option(1, "--payees", min=1, max=64, help="Number of equal-share payees."),
    hops: int = typer.Option(2, "--hops", min=2, max=3, help="Tokens in the swap path (2 or 3)."),
) -> None:
    """Build a devnet, run one convert-and-transfer and print the report and events."""
    sc = build_scenario(shares=[1] * payees, trigger_fee=fee, fee_amount=amount, liquidity=liquidity)
    caller = sc.chain.account("trigger")
    try:
        report = sc.receiver.convert_and_transfer(caller, sc.fee_token.address, 0, sc.path(hops))
    except FeeReceiverError as e:
        _fail(e)
        return
    out = {
        "report": report.to_dict(),
        "events": sc.receiver.events.to_list(),
        "balances": sc.balances(),
    }
    typer.echo(json.dumps(out, indent=2, sort_keys=True))


if __name__ == "__main__":
    app()
