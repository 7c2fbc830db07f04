from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
import yaml

from tradeline.cli.workspace import Workspace, configure_logging, open_workspace, parse_role_pairs
from tradeline.config import initialize_workspace, load_trade_definition
from tradeline.constants import (
    EXIT_INTERNAL_ERROR,
    EXIT_REJECTED,
    EXIT_SUCCESS,
    ROLE_PLATFORM,
    STATE_SETTLED,
)
from tradeline.core.continuation import new_nonce
from tradeline.core.errors import RecordFormatError, TransitionError
from tradeline.core.signing import open_message, spend_message
from tradeline.core.transitions import get_rule
from tradeline.plugins import run_finality_hooks
from tradeline.report import lineage_to_dict, render_markdown, write_reports


def _version_callback(value: bool) -> None:
    if value:
        from tradeline import __version__

        typer.echo(f"tradeline {__version__}")
        raise typer.Exit()


app = typer.Typer(add_completion=False, help="Bilateral trade lifecycle on a single-spend record chain")


@app.callback(invoke_without_command=True)
def _main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Print version and exit."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log ledger activity at INFO."),
) -> None:
    if verbose:
        configure_logging("INFO")


def _fail(message: str) -> typer.Exit:
    typer.echo(f"ERROR: {message}", err=True)
    return typer.Exit(EXIT_INTERNAL_ERROR)


def _workspace(project_root: Path) -> Workspace:
    try:
        workspace = open_workspace(project_root.resolve())
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        raise _fail(str(exc)) from exc
    if not logging.getLogger().handlers:
        configure_logging(workspace.config.log_level)
    return workspace


@app.command()
def init(project_root: Path = typer.Argument(Path("."), help="Project root to initialize")) -> None:
    """Create the tradeline state directory and starter config."""
    try:
        paths = initialize_workspace(project_root.resolve())
    except OSError as exc:
        raise _fail(str(exc)) from exc
    typer.echo(f"Initialized tradeline workspace at {paths.state}")
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def keygen(
    name: str = typer.Argument(..., help="Key name, e.g. alice or platform"),
    project_root: Path = typer.Option(Path("."), "--project-root", help="Project root"),
) -> None:
    """Generate an Ed25519 signing key in the workspace keystore."""
    workspace = _workspace(project_root)
    try:
        signer = workspace.keystore.create(name)
    except (FileExistsError, ValueError) as exc:
        raise _fail(str(exc)) from exc
    typer.echo(signer.public_key)
    raise typer.Exit(EXIT_SUCCESS)


@app.command("open")
def open_trade(
    trade_file: Path = typer.Argument(..., help="Trade definition (*.trade.yaml)"),
    platform_key: str = typer.Option(..., "--platform-key", help="Keystore key that signs as platform"),
    project_root: Path = typer.Option(Path("."), "--project-root", help="Project root"),
) -> None:
    """Author the genesis output of a trade in state PROPOSED."""
    workspace = _workspace(project_root)
    try:
        definition = load_trade_definition(trade_file)
        record = definition.to_record(workspace.keystore)
        signer = workspace.keystore.load(platform_key)
        nonce = new_nonce()
        signature = signer.sign(open_message(record, nonce))
        output = workspace.ledger.open_trade(record, {ROLE_PLATFORM: signature}, nonce)
    except TransitionError as exc:
        typer.echo(f"REJECTED: {exc.rejection.code}: {exc.rejection.message}", err=True)
        raise typer.Exit(EXIT_REJECTED) from exc
    except (FileNotFoundError, ValueError, yaml.YAMLError) as exc:
        raise _fail(str(exc)) from exc
    typer.echo(f"Opened trade {definition.name}")
    typer.echo(f"trade_id: {output.trade_id}")
    typer.echo(f"output_id: {output.output_id}")
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def sign(
    output_id: str = typer.Argument(..., help="Output being spent"),
    transition: str = typer.Argument(..., help="propose | approve | execute | settle"),
    key: str = typer.Option(..., "--key", help="Keystore key to sign with"),
    project_root: Path = typer.Option(Path("."), "--project-root", help="Project root"),
) -> None:
    """Print a hex signature authorizing TRANSITION on OUTPUT_ID."""
    workspace = _workspace(project_root)
    try:
        get_rule(transition)
        signer = workspace.keystore.load(key)
    except TransitionError as exc:
        raise _fail(exc.rejection.message) from exc
    except (FileNotFoundError, ValueError) as exc:
        raise _fail(str(exc)) from exc
    typer.echo(signer.sign(spend_message(output_id, transition)).hex())
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def apply(
    output_id: str = typer.Argument(..., help="Output being spent"),
    transition: str = typer.Argument(..., help="propose | approve | execute | settle"),
    sig: list[str] | None = typer.Option(None, "--sig", help="role=hexsignature (repeatable)"),
    sign_with: list[str] | None = typer.Option(
        None, "--sign-with", help="role=keyname, sign locally from the keystore (repeatable)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    project_root: Path = typer.Option(Path("."), "--project-root", help="Project root"),
) -> None:
    """Spend OUTPUT_ID with TRANSITION and create its successor output."""
    workspace = _workspace(project_root)
    try:
        signatures = {role: bytes.fromhex(value) for role, value in parse_role_pairs(sig, option="--sig").items()}
        for role, key_name in parse_role_pairs(sign_with, option="--sign-with").items():
            if role in signatures:
                raise ValueError(f"Role {role!r} given by both --sig and --sign-with")
            signer = workspace.keystore.load(key_name)
            signatures[role] = signer.sign(spend_message(output_id, transition))
    except (FileNotFoundError, ValueError) as exc:
        raise _fail(str(exc)) from exc

    try:
        result = workspace.ledger.try_apply(output_id, transition, signatures)
    except RecordFormatError as exc:
        raise _fail(str(exc)) from exc

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, sort_keys=True))
    rejection = result.rejection
    if rejection is not None:
        if not as_json:
            typer.echo(f"REJECTED: {rejection.code}: {rejection.message}", err=True)
        raise typer.Exit(EXIT_REJECTED)
    output = result.output
    if output is None:
        raise _fail(f"Ledger accepted {transition} on {output_id} without a successor")

    if not as_json:
        typer.echo(f"state: {output.record.state}")
        typer.echo(f"output_id: {output.output_id}")
    if output.record.state == STATE_SETTLED and workspace.config.run_finality_hooks:
        run_finality_hooks(output)
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def verify(
    output_id: str = typer.Argument(..., help="Output to check"),
    trader_a: str = typer.Option(..., "--trader-a", help="Expected trader A public key"),
    trader_b: str = typer.Option(..., "--trader-b", help="Expected trader B public key"),
    amount: int = typer.Option(..., "--amount", help="Expected amount"),
    asset: str = typer.Option(..., "--asset", help="Expected asset descriptor"),
    state: str = typer.Option(..., "--state", help="Expected state"),
    platform: str | None = typer.Option(None, "--platform", help="Expected platform public key"),
    project_root: Path = typer.Option(Path("."), "--project-root", help="Project root"),
) -> None:
    """Succeed only if OUTPUT_ID is current and holds exactly these values."""
    workspace = _workspace(project_root)
    try:
        mismatches = workspace.ledger.verify(
            output_id,
            trader_a=trader_a,
            trader_b=trader_b,
            amount=amount,
            asset_descriptor=asset,
            state=state.upper(),
            platform=platform,
        )
    except (KeyError, RecordFormatError) as exc:
        raise _fail(str(exc)) from exc
    if mismatches:
        typer.echo(f"MISMATCH: {', '.join(mismatches)}", err=True)
        raise typer.Exit(EXIT_REJECTED)
    typer.echo("VERIFIED")
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def show(
    output_id: str = typer.Argument(..., help="Output to display"),
    as_json: bool = typer.Option(False, "--json", help="Print as JSON"),
    project_root: Path = typer.Option(Path("."), "--project-root", help="Project root"),
) -> None:
    """Print one stored output."""
    workspace = _workspace(project_root)
    try:
        output = workspace.ledger.get(output_id)
    except (KeyError, RecordFormatError) as exc:
        raise _fail(str(exc)) from exc
    spent = workspace.ledger.is_spent(output_id)
    if as_json:
        typer.echo(json.dumps({**output.to_dict(), "spent": spent}, indent=2, sort_keys=True))
        raise typer.Exit(EXIT_SUCCESS)
    record = output.record
    typer.echo(f"output_id: {output.output_id}")
    typer.echo(f"trade_id: {output.trade_id}")
    typer.echo(f"sequence: {output.sequence}")
    if output.nonce is not None:
        typer.echo(f"nonce: {output.nonce}")
    typer.echo(f"state: {record.state}")
    typer.echo(f"amount: {record.amount}")
    typer.echo(f"asset_descriptor: {record.asset_descriptor}")
    typer.echo(f"trader_a: {record.trader_a}")
    typer.echo(f"trader_b: {record.trader_b}")
    typer.echo(f"platform: {record.platform}")
    typer.echo(f"spent: {'yes' if spent else 'no'}")
    raise typer.Exit(EXIT_SUCCESS)


@app.command()
def history(
    trade_id: str = typer.Argument(..., help="Trade id (the genesis output id)"),
    as_json: bool = typer.Option(False, "--json", help="Print as JSON"),
    write_report: bool = typer.Option(False, "--write-report", help="Write JSON and Markdown reports"),
    project_root: Path = typer.Option(Path("."), "--project-root", help="Project root"),
) -> None:
    """Print every snapshot of a trade from genesis to its current output."""
    workspace = _workspace(project_root)
    try:
        lineage = workspace.ledger.lineage(trade_id)
    except (KeyError, RecordFormatError) as exc:
        raise _fail(str(exc)) from exc

    if as_json:
        typer.echo(json.dumps(lineage_to_dict(lineage), indent=2, sort_keys=True))
    else:
        typer.echo(render_markdown(lineage))
    if write_report:
        json_path = workspace.paths.reports / f"{trade_id}.json"
        md_path = workspace.paths.reports / f"{trade_id}.md"
        write_reports(lineage, json_path=json_path, md_path=md_path)
        typer.echo(f"Report: {md_path}", err=True)
    raise typer.Exit(EXIT_SUCCESS)
