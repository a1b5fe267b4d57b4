"""
soltx CLI - decode Solana transactions and estimate fees
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from .. import __version__
from ..config import SOLANA_NETWORKS, get_network_config
from ..decoder import DecodedTransaction, get_decoder
from ..errors import DecodeError, SoltxError
from ..fees import FeeBreakdown, FeeEstimator, TransactionDetails, fee_from_transaction
from .config import Config
from .utils import (
    format_output,
    format_sol,
    handle_config_error,
    handle_decode_error,
    handle_lookup_error,
    setup_logging,
    truncate_string,
)

logger = logging.getLogger("soltx")

CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])

FORMAT_CHOICES = click.Choice(['table', 'json', 'csv'])

STATUS_COLORS = {
    'healthy': 'green',
    'unhealthy': 'red',
}

@click.group(context_settings=CONTEXT_SETTINGS)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.option('--no-color', is_flag=True, help='Disable colored output')
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, debug, config, no_color):
    """soltx - Solana transaction decoder and fee estimator"""
    setup_logging(debug)

    config_obj = Config(config)
    color = not no_color and config_obj.get('color', True)
    console = Console(color_system="auto" if color else None)

    ctx.ensure_object(dict)
    ctx.obj['console'] = console
    ctx.obj['config'] = config_obj
    ctx.obj['debug'] = debug

    logger.debug("CLI initialized")

def _positive_float(value: Any) -> float:
    number = float(value)
    if number <= 0:
        raise ValueError(f"expected a positive number, got {value!r}")
    return number

def _positive_int(value: Any) -> int:
    if isinstance(value, bool) or not float(value).is_integer():
        raise ValueError(f"expected a whole number, got {value!r}")
    number = int(float(value))
    if number <= 0:
        raise ValueError(f"expected a positive whole number, got {value!r}")
    return number

# Settings the estimator is built from
CONFIG_VALIDATORS = {
    'timeout': _positive_float,
    'min_priority_fee': _positive_int,
}

def _build_estimator(config: Config) -> FeeEstimator:
    settings = {}
    for key, validate in CONFIG_VALIDATORS.items():
        value = config.get(key)
        try:
            settings[key] = validate(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid '{key}' in {config.config_path}: {e}") from e
    return FeeEstimator(
        timeout=settings['timeout'],
        min_priority_fee_lamports=settings['min_priority_fee'],
    )

def _run_with_estimator(ctx, action):
    """Run an async action against a fresh estimator and close its sessions afterwards"""
    try:
        estimator = _build_estimator(ctx.obj['config'])
    except ValueError as e:
        handle_config_error(e, ctx.obj['console'])
        ctx.exit(1)

    async def runner():
        try:
            return await action(estimator)
        finally:
            await estimator.close()
    return asyncio.run(runner())

def _decode_or_exit(ctx, transaction: str) -> DecodedTransaction:
    try:
        return get_decoder().decode_base64(transaction)
    except DecodeError as e:
        handle_decode_error(e, ctx.obj['console'])
        ctx.exit(1)

def _output_format(ctx, format: Optional[str]) -> str:
    return format or ctx.obj['config'].get('format', 'table')

def _fee_table(title: str, fee: FeeBreakdown) -> Table:
    table = Table(title=title)
    table.add_column("Component", style="cyan")
    table.add_column("Amount", style="green")
    table.add_row("Base fee", format_sol(fee.base_fee_lamports))
    table.add_row("Priority fee", format_sol(fee.priority_fee_lamports))
    table.add_row("Total fee", format_sol(fee.total_fee_lamports))
    if fee.compute_unit_price is not None:
        table.add_row("Compute unit price", f"{fee.compute_unit_price:,} micro-lamports")
    if fee.compute_unit_limit is not None:
        table.add_row("Compute unit limit", f"{fee.compute_unit_limit:,} units")
    if fee.network_status is not None:
        color = STATUS_COLORS.get(fee.network_status, 'white')
        table.add_row("Network status", f"[{color}]{fee.network_status}[/{color}]")
    if fee.last_updated is not None:
        table.add_row("Last updated", fee.last_updated.isoformat())
    return table

def _display_transaction(console: Console, decoded: DecodedTransaction, fee: FeeBreakdown):
    """Display a decoded transaction as tables"""
    version = f" (v{decoded.version})" if decoded.version != "legacy" else ""
    header = decoded.header
    console.print(Panel(
        f"Format: [bold]{decoded.format.value}{version}[/bold]\n"
        f"Size: {len(decoded.raw)} bytes\n"
        f"Signatures: {len(decoded.signatures)} "
        f"({sum(1 for s in decoded.signatures if s.is_empty)} empty)\n"
        f"Header: {header.num_required_signatures} required, "
        f"{header.num_readonly_signed} readonly signed, "
        f"{header.num_readonly_unsigned} readonly unsigned\n"
        f"Recent blockhash: {decoded.blockhash}",
        title="Transaction",
        expand=False,
    ))

    accounts_table = Table(title="Accounts")
    accounts_table.add_column("#", style="dim")
    accounts_table.add_column("Address", style="cyan", no_wrap=True)
    for index, address in enumerate(decoded.accounts):
        accounts_table.add_row(str(index), address)
    console.print(accounts_table)

    instructions_table = Table(title="Instructions")
    instructions_table.add_column("#", style="dim")
    instructions_table.add_column("Program", style="cyan")
    instructions_table.add_column("Type", style="green")
    instructions_table.add_column("Accounts")
    instructions_table.add_column("Details")
    for instruction in decoded.instructions:
        payload = instruction.decoded_payload
        details = ", ".join(
            f"{k}={v}" for k, v in payload.to_dict().items() if k != "type"
        ) if payload is not None else truncate_string(instruction.raw_payload.hex(), 32)
        instructions_table.add_row(
            str(instruction.index),
            truncate_string(instruction.program_address, 16),
            instruction.program_type,
            ", ".join(str(i) for i in instruction.account_indexes),
            details,
        )
    console.print(instructions_table)

    summary_table = Table(title="Summary")
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Count", style="green")
    for metric, count in decoded.summary().items():
        summary_table.add_row(metric.replace('_', ' ').capitalize(), str(count))
    console.print(summary_table)

    console.print(_fee_table("Transaction Fee", fee))

@cli.command()
@click.argument('transaction')
@click.option('--format', type=FORMAT_CHOICES, help='Output format')
@click.option('--output', type=click.Path(), help='Save output to file')
@click.pass_context
def decode(ctx, transaction, format, output):
    """Decode a base64-encoded transaction"""
    console = ctx.obj['console']
    decoded = _decode_or_exit(ctx, transaction)
    fee = fee_from_transaction(decoded)

    output_format = _output_format(ctx, format)
    if output_format == 'table' and not output:
        _display_transaction(console, decoded, fee)
    else:
        result = decoded.to_dict()
        result['fee'] = fee.to_dict()
        format_output(result, 'json' if output_format == 'table' else output_format, output, console)

@cli.command()
@click.option('--network', help='Network name (mainnet, testnet, devnet)')
@click.option('--format', type=FORMAT_CHOICES, help='Output format')
@click.option('--output', type=click.Path(), help='Save output to file')
@click.pass_context
def fee(ctx, network, format, output):
    """Show the current network fee estimate"""
    console = ctx.obj['console']
    config = ctx.obj['config']
    network_config = get_network_config(network or config.network)

    with console.status(f"[bold green]Sampling fees on {network_config.name}..."):
        result = _run_with_estimator(ctx, lambda e: e.get_network_fee(network_config))

    output_format = _output_format(ctx, format)
    if output_format == 'table':
        console.print(_fee_table(f"{network_config.name} Fee Estimate", result))
    else:
        format_output(result.to_dict(), output_format, output, console)

@cli.command()
@click.argument('amount', type=click.FloatRange(min=0))
@click.option('--network', help='Network name (mainnet, testnet, devnet)')
@click.option('--format', type=FORMAT_CHOICES, help='Output format')
@click.pass_context
def estimate(ctx, amount, network, format):
    """Estimate the total cost of sending AMOUNT SOL"""
    console = ctx.obj['console']
    config = ctx.obj['config']
    network_config = get_network_config(network or config.network)

    with console.status("[bold green]Estimating transfer cost..."):
        result = _run_with_estimator(
            ctx, lambda e: e.estimate_transfer_total(amount, network_config)
        )

    output_format = _output_format(ctx, format)
    if output_format == 'table':
        table = Table(title=f"Transfer Estimate ({network_config.name})")
        table.add_column("Item", style="cyan")
        table.add_column("SOL", style="green")
        table.add_row("Amount", f"{amount:.9f}")
        table.add_row("Fee", f"{result['fee']:.9f}")
        table.add_row("Total", f"[bold]{result['total_cost']:.9f}[/bold]")
        console.print(table)
    else:
        format_output({"amount": amount, **result}, output_format, None, console)

@cli.command()
@click.argument('transaction')
@click.option('--network', help='Network name (mainnet, testnet, devnet)')
@click.option('--format', type=FORMAT_CHOICES, help='Output format')
@click.pass_context
def analyze(ctx, transaction, network, format):
    """Compare a transaction's fee with the current network estimate"""
    console = ctx.obj['console']
    config = ctx.obj['config']
    decoded = _decode_or_exit(ctx, transaction)
    transaction_fee = fee_from_transaction(decoded)
    network_config = get_network_config(network or config.network)

    with console.status(f"[bold green]Sampling fees on {network_config.name}..."):
        network_fee = _run_with_estimator(ctx, lambda e: e.get_network_fee(network_config))

    result: Dict[str, Any] = {
        "summary": decoded.summary(),
        "transaction_fee": transaction_fee.to_dict(),
        "network_fee": network_fee.to_dict(),
        "priority_fee_difference_lamports": (
            transaction_fee.priority_fee_lamports - network_fee.priority_fee_lamports
        ),
    }

    output_format = _output_format(ctx, format)
    if output_format != 'table':
        format_output(result, output_format, None, console)
        return

    console.print(_fee_table("Transaction Fee", transaction_fee))
    console.print(_fee_table(f"{network_config.name} Fee Estimate", network_fee))
    difference = result["priority_fee_difference_lamports"]
    if network_fee.network_status != 'healthy':
        console.print("[yellow]Network estimate unavailable; comparison uses the base fee only[/yellow]")
    elif difference > 0:
        console.print(f"[yellow]Priority fee is {format_sol(difference)} above the network average[/yellow]")
    elif difference < 0:
        console.print(f"[yellow]Priority fee is {format_sol(-difference)} below the network average[/yellow]")
    else:
        console.print("[green]Priority fee matches the network average[/green]")

def _display_details(console: Console, details: TransactionDetails):
    """Display an on-chain transaction and its fees as tables"""
    color = {'success': 'green', 'failed': 'red'}.get(details.status, 'yellow')
    lines = [
        f"Signature: {details.signature}",
        f"Status: [{color}]{details.status}[/{color}]",
        f"Slot: {details.slot if details.slot is not None else 'N/A'}",
        f"Block time: {details.block_time.isoformat() if details.block_time else 'N/A'}",
    ]
    if details.error is not None:
        lines.append(f"Error: {escape(str(details.error))}")
    if details.compute_units_consumed is not None:
        lines.append(f"Compute units consumed: {details.compute_units_consumed:,}")
    console.print(Panel("\n".join(lines), title="Transaction", expand=False))

    if details.expected_fee is not None:
        console.print(_fee_table("Fee From Compute Budget", details.expected_fee))

    table = Table(title="Fee Charged")
    table.add_column("Item", style="cyan")
    table.add_column("Amount", style="green")
    if details.fee_paid_lamports is None:
        table.add_row("Fee paid", "N/A")
    else:
        table.add_row("Fee paid", format_sol(details.fee_paid_lamports))
    difference = details.fee_difference_lamports
    if difference is not None:
        table.add_row("Difference", f"{difference:+,} lamports")
    console.print(table)

@cli.command()
@click.argument('signature')
@click.option('--network', help='Network name (mainnet, testnet, devnet)')
@click.option('--format', type=FORMAT_CHOICES, help='Output format')
@click.option('--output', type=click.Path(), help='Save output to file')
@click.pass_context
def tx(ctx, signature, network, format, output):
    """Look up a confirmed transaction and the fee it was charged"""
    console = ctx.obj['console']
    config = ctx.obj['config']
    network_config = get_network_config(network or config.network)

    try:
        with console.status(f"[bold green]Fetching transaction from {network_config.name}..."):
            details = _run_with_estimator(
                ctx, lambda e: e.get_transaction_details(signature, network_config)
            )
    except DecodeError as e:
        handle_decode_error(e, console)
        ctx.exit(1)
    except (ValueError, SoltxError) as e:
        handle_lookup_error(e, console)
        ctx.exit(1)

    output_format = _output_format(ctx, format)
    if output_format == 'table' and not output:
        _display_details(console, details)
    else:
        format_output(details.to_dict(), 'json' if output_format == 'table' else output_format, output, console)

@cli.command()
@click.option('--network', help='Network name (mainnet, testnet, devnet)')
@click.option('--all', 'all_networks', is_flag=True, help='Check every preset network')
@click.pass_context
def status(ctx, network, all_networks):
    """Check RPC connectivity of a network"""
    console = ctx.obj['console']
    config = ctx.obj['config']
    if all_networks:
        networks = list(SOLANA_NETWORKS.values())
    else:
        networks = [get_network_config(network or config.network)]

    async def check(estimator: FeeEstimator):
        return await asyncio.gather(*(estimator.get_network_status(n) for n in networks))

    with console.status("[bold green]Checking network status..."):
        results = _run_with_estimator(ctx, check)

    table = Table(title="Network Status")
    table.add_column("Network", style="cyan")
    table.add_column("RPC URL")
    table.add_column("Status")
    for network_config, state in zip(networks, results):
        color = STATUS_COLORS.get(state, 'white')
        table.add_row(network_config.name, network_config.rpc_url, f"[{color}]{state.upper()}[/{color}]")
    console.print(table)

@cli.command()
@click.option('--key', help='Configuration key to get')
@click.pass_context
def config(ctx, key):
    """Get or list configuration values"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    if key:
        value = config.get(key)
        if value is not None:
            console.print(f"{key}: {value}")
        else:
            console.print(f"[yellow]Configuration key '{key}' not found[/yellow]")
        return

    table = Table(title="Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for k, v in config.get_all().items():
        table.add_row(k, str(v))
    console.print(table)

@cli.command()
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_config(ctx, key, value):
    """Set a configuration value"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    # Convert string value to appropriate type
    if value.lower() == 'true':
        typed_value = True
    elif value.lower() == 'false':
        typed_value = False
    elif value.isdigit():
        typed_value = int(value)
    elif value.replace('.', '', 1).isdigit():
        typed_value = float(value)
    else:
        typed_value = value

    validate = CONFIG_VALIDATORS.get(key)
    if validate is not None:
        try:
            typed_value = validate(typed_value)
        except (TypeError, ValueError) as e:
            handle_config_error(ValueError(f"Invalid value for '{key}': {e}"), console)
            ctx.exit(1)

    config.set(key, typed_value)
    console.print(f"[green]Configuration updated: {key} = {typed_value}[/green]")

@cli.command()
@click.option('--yes', is_flag=True, help='Skip confirmation')
@click.pass_context
def reset_config(ctx, yes):
    """Reset configuration to defaults"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    if yes or Confirm.ask("Are you sure you want to reset all configuration to defaults?"):
        config.reset()
        console.print("[green]Configuration reset to defaults[/green]")
    else:
        console.print("[yellow]Reset cancelled[/yellow]")

if __name__ == '__main__':
    cli()
