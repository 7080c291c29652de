"""
xUDT transfer CLI - query balances, build transfers and top-ups, submit signed transactions.

Built transactions are unsigned: they are written as node JSON for an
external signer, and the signed result can be sent back with `submit`.
"""

from __future__ import annotations

import asyncio
import json
import sys
from decimal import Decimal, InvalidOperation
from functools import partial
from pathlib import Path
from typing import Any

import httpx
import typer
from loguru import logger

from xudt_transfer.address import script_from_address
from xudt_transfer.amount import format_token_amount, to_minimal_units
from xudt_transfer.backends.base import CellIndexBackend
from xudt_transfer.backends.ckb_rpc import CkbRpcBackend
from xudt_transfer.config import (
    Settings,
    get_default_cell_deps,
    get_settings,
    get_xudt_type_script,
)
from xudt_transfer.constants import NetworkType
from xudt_transfer.errors import XudtTransferError
from xudt_transfer.models import TransferReceiver, TransferResult
from xudt_transfer.planner import TopUpPlanner, read_address_file
from xudt_transfer.tx_builder import XudtTransferBuilder

app = typer.Typer(
    name="xudt-transfer",
    help="xUDT balance and transfer tool for CKB",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def load_settings(**overrides: Any) -> Settings:
    """Environment settings with CLI options (when given) taking precedence."""
    settings = get_settings()
    update = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=update)


def create_backend(settings: Settings) -> CellIndexBackend:
    return CkbRpcBackend(rpc_url=settings.get_rpc_url(), timeout=settings.rpc_timeout)


def parse_receiver(value: str, decimals: int) -> TransferReceiver:
    """Parse ADDRESS:AMOUNT (amount in token units)."""
    address, sep, amount = value.rpartition(":")
    if not sep or not address:
        raise typer.BadParameter(f"Expected ADDRESS:AMOUNT, got {value!r}")
    try:
        units = to_minimal_units(Decimal(amount), decimals)
    except InvalidOperation:
        raise typer.BadParameter(f"Invalid amount {amount!r}")
    return TransferReceiver(to_address=address, transfer_amount=units)


def write_transaction(result: TransferResult, output_file: Path | None) -> None:
    tx_json = json.dumps(result.transaction.to_rpc(), indent=2)
    if output_file is None:
        typer.echo(tx_json)
        return
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(tx_json + "\n")
    logger.info(f"Unsigned transaction written to {output_file}")


def _require(value: str, name: str, env: str) -> str:
    if not value:
        logger.error(f"{name} required. Use the option or the {env} env var")
        raise typer.Exit(1)
    return value


def _collect_addresses(addresses: list[str] | None, address_file: Path | None) -> list[str]:
    collected = list(addresses or [])
    if address_file:
        if not address_file.exists():
            logger.error(f"Address file not found: {address_file}")
            raise typer.Exit(1)
        collected.extend(read_address_file(address_file))
    if not collected:
        logger.error("No addresses given. Use --address or --address-file")
        raise typer.Exit(1)
    return collected


def _run(coro: Any) -> Any:
    """Run a command coroutine, turning expected failures into exit code 1."""
    try:
        return asyncio.run(coro)
    except XudtTransferError as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise typer.Exit(1)
    except (ValueError, httpx.HTTPError) as e:
        logger.error(f"Request failed: {e}")
        raise typer.Exit(1)


@app.command()
def balance(
    addresses: list[str] | None = typer.Option(
        None, "--address", "-a", help="Address to query (repeatable)"
    ),
    address_file: Path | None = typer.Option(
        None, "--address-file", "-f", help="File with one address per line"
    ),
    xudt_args: str | None = typer.Option(None, "--xudt-args", help="xUDT type script args"),
    network: NetworkType | None = typer.Option(None, "--network", "-n", help="CKB network"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", help="CKB node RPC URL"),
    decimals: int | None = typer.Option(None, "--decimals", help="Token decimals"),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Log level"),
) -> None:
    """Show xUDT balances of one or more addresses."""
    settings = load_settings(
        xudt_type_args=xudt_args,
        network=network,
        ckb_rpc_url=rpc_url,
        token_decimals=decimals,
        log_level=log_level,
    )
    setup_logging(settings.log_level)
    _require(settings.xudt_type_args, "xUDT type args", "XUDT_TYPE_ARGS")
    all_addresses = _collect_addresses(addresses, address_file)

    _run(_show_balances(settings, all_addresses))


async def _show_balances(settings: Settings, addresses: list[str]) -> None:
    backend = create_backend(settings)
    planner = TopUpPlanner(
        backend=backend,
        xudt_type=get_xudt_type_script(settings.network, settings.xudt_type_args),
        decimals=settings.token_decimals,
        address_decoder=partial(script_from_address, network=settings.network),
    )
    try:
        balances = await planner.get_balances(addresses)
        for index, (address, units) in enumerate(zip(addresses, balances), 1):
            shown = format_token_amount(units, settings.token_decimals)
            typer.echo(f"Address {index} {address} balance: {shown}")
    finally:
        await backend.close()


@app.command()
def transfer(
    receivers: list[str] = typer.Option(
        ..., "--receiver", "-r", help="ADDRESS:AMOUNT in token units (repeatable)"
    ),
    from_address: str | None = typer.Option(None, "--from-address", help="Sender address"),
    xudt_args: str | None = typer.Option(None, "--xudt-args", help="xUDT type script args"),
    network: NetworkType | None = typer.Option(None, "--network", "-n", help="CKB network"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", help="CKB node RPC URL"),
    decimals: int | None = typer.Option(None, "--decimals", help="Token decimals"),
    output_file: Path | None = typer.Option(
        None, "--output", "-o", help="Write unsigned transaction JSON here"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Log level"),
) -> None:
    """Build an unsigned xUDT transfer to one or more receivers."""
    settings = load_settings(
        sender_address=from_address,
        xudt_type_args=xudt_args,
        network=network,
        ckb_rpc_url=rpc_url,
        token_decimals=decimals,
        log_level=log_level,
    )
    setup_logging(settings.log_level)
    _require(settings.sender_address, "Sender address", "SENDER_ADDRESS")
    _require(settings.xudt_type_args, "xUDT type args", "XUDT_TYPE_ARGS")

    try:
        parsed = [parse_receiver(value, settings.token_decimals) for value in receivers]
    except XudtTransferError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    result = _run(_build_transfer(settings, parsed))
    write_transaction(result, output_file)


@app.command("top-up")
def top_up(
    address_file: Path = typer.Option(
        ..., "--address-file", "-f", help="File with one address per line"
    ),
    target: str = typer.Option("100", "--target", "-t", help="Target balance in token units"),
    from_address: str | None = typer.Option(None, "--from-address", help="Sender address"),
    xudt_args: str | None = typer.Option(None, "--xudt-args", help="xUDT type script args"),
    network: NetworkType | None = typer.Option(None, "--network", "-n", help="CKB network"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", help="CKB node RPC URL"),
    decimals: int | None = typer.Option(None, "--decimals", help="Token decimals"),
    output_file: Path | None = typer.Option(
        None, "--output", "-o", help="Write unsigned transaction JSON here"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Log level"),
) -> None:
    """Top every listed address up to a target balance in one transaction."""
    settings = load_settings(
        sender_address=from_address,
        xudt_type_args=xudt_args,
        network=network,
        ckb_rpc_url=rpc_url,
        token_decimals=decimals,
        log_level=log_level,
    )
    setup_logging(settings.log_level)
    _require(settings.sender_address, "Sender address", "SENDER_ADDRESS")
    _require(settings.xudt_type_args, "xUDT type args", "XUDT_TYPE_ARGS")
    addresses = _collect_addresses(None, address_file)

    try:
        target_amount = Decimal(target)
    except InvalidOperation:
        logger.error(f"Invalid target amount: {target}")
        raise typer.Exit(1)

    result = _run(_top_up(settings, addresses, target_amount))
    if result is None:
        typer.echo("No transfer needed.")
        return
    write_transaction(result, output_file)


def _create_builder(settings: Settings, backend: CellIndexBackend) -> XudtTransferBuilder:
    decoder = partial(script_from_address, network=settings.network)
    return XudtTransferBuilder(
        backend=backend,
        xudt_type=get_xudt_type_script(settings.network, settings.xudt_type_args),
        sender_lock=decoder(settings.sender_address),
        config=settings.assembler_config(),
        cell_deps=get_default_cell_deps(settings.network),
        address_decoder=decoder,
    )


async def _build_transfer(settings: Settings, receivers: list[TransferReceiver]) -> TransferResult:
    backend = create_backend(settings)
    try:
        builder = _create_builder(settings, backend)
        return await builder.build(receivers)
    finally:
        await backend.close()


async def _top_up(
    settings: Settings, addresses: list[str], target_amount: Decimal
) -> TransferResult | None:
    backend = create_backend(settings)
    try:
        planner = TopUpPlanner(
            backend=backend,
            xudt_type=get_xudt_type_script(settings.network, settings.xudt_type_args),
            decimals=settings.token_decimals,
            address_decoder=partial(script_from_address, network=settings.network),
        )
        receivers = await planner.plan(addresses, target_amount)
        if not receivers:
            return None
        builder = _create_builder(settings, backend)
        return await builder.build(receivers)
    finally:
        await backend.close()


@app.command()
def submit(
    tx_file: Path = typer.Option(..., "--tx-file", help="Signed transaction JSON"),
    network: NetworkType | None = typer.Option(None, "--network", "-n", help="CKB network"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", help="CKB node RPC URL"),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Log level"),
) -> None:
    """Submit an externally signed transaction."""
    settings = load_settings(network=network, ckb_rpc_url=rpc_url, log_level=log_level)
    setup_logging(settings.log_level)

    if not tx_file.exists():
        logger.error(f"Transaction file not found: {tx_file}")
        raise typer.Exit(1)
    try:
        signed_tx = json.loads(tx_file.read_text())
    except json.JSONDecodeError as e:
        logger.error(f"Invalid transaction JSON: {e}")
        raise typer.Exit(1)

    tx_hash = _run(_submit(settings, signed_tx))
    typer.echo(f"xUDT transfer submitted. Transaction hash: {tx_hash}")


async def _submit(settings: Settings, signed_tx: dict[str, Any]) -> str:
    backend = create_backend(settings)
    try:
        return await backend.send_transaction(signed_tx)
    finally:
        await backend.close()


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
