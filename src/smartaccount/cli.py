"""
CLI entry point for the smart account SDK.

Usage:
    smartaccount pda OWNER
    smartaccount state OWNER --network devnet
    smartaccount idl --onchain
    smartaccount compose native-transfer --owner OWNER --delegate DELEGATE \
        --recipient RECIPIENT --sol 0.5 -o tx.json
"""

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from smartaccount.config import NETWORKS, SmartAccountConfig, load_env, rpc_url_for
from smartaccount.constants import TokenProgram
from smartaccount.errors import SmartAccountError

console = Console()

OPERATIONS = [
    "initialize",
    "add-delegate",
    "remove-delegate",
    "pause",
    "unpause",
    "native-transfer",
    "token-transfer",
    "custom",
]


def _config(args: argparse.Namespace) -> SmartAccountConfig:
    """Environment config, overridden by command-line flags."""
    load_env()
    config = SmartAccountConfig.from_env()
    if getattr(args, "network", None):
        config = replace(config, rpc_url=rpc_url_for(args.network))
    if getattr(args, "rpc_url", None):
        config = replace(config, rpc_url=args.rpc_url)
    if getattr(args, "program_id", None):
        config = replace(config, program_id=args.program_id)
    return config


def _client(args: argparse.Namespace, user: str):
    from smartaccount.analysis import IDLParser
    from smartaccount.core.composer import SmartAccountClient
    from smartaccount.core.rpc import SolanaRpcClient

    config = _config(args)
    idl = IDLParser().parse_file(args.idl) if getattr(args, "idl", None) else None
    client = SmartAccountClient(
        SolanaRpcClient.from_config(config),
        user,
        program_id=config.program_id,
        idl=idl,
    )
    return client, config


def show_pda(args: argparse.Namespace) -> int:
    """Print the smart account address of an owner."""
    try:
        client, _ = _client(args, args.owner)
        address, bump = client.find_smart_account_address(args.owner)
    except (SmartAccountError, ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    console.print()
    console.print(Panel(
        f"[bold cyan]{address}[/bold cyan]\n\n"
        f"[dim]Owner: {args.owner}[/dim]\n"
        f"[dim]Bump: {bump}[/dim]\n"
        f"[dim]Program: {client.program_id}[/dim]",
        title="[bold]Smart Account Address[/bold]",
    ))
    return 0


def show_state(args: argparse.Namespace) -> int:
    """Fetch and display a smart account."""
    if not args.owner and not args.address:
        console.print("[red]Error: pass an OWNER or --address[/red]")
        return 1

    async def _run():
        client, _ = _client(args, args.owner or args.address)
        if args.address:
            return await client.get_state(args.address)
        return await client.get_state_for_owner(args.owner)

    try:
        state = asyncio.run(_run())
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    status = "[red]PAUSED[/red]" if state.paused else "[green]ACTIVE[/green]"
    console.print()
    console.print(Panel(
        f"[bold]{state.address}[/bold]\n\n"
        f"Owner: {state.owner}\n"
        f"Status: {status}",
        title="[bold]Smart Account[/bold]",
    ))

    if state.delegates:
        table = Table(title="Delegates")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Delegate", style="cyan")
        for i, delegate in enumerate(state.delegates):
            table.add_row(str(i + 1), str(delegate))
        console.print(table)
    else:
        console.print("[dim]No delegates[/dim]")

    if args.output:
        with open(args.output, "w") as f:
            json.dump(state.to_dict(), f, indent=2)
        console.print(f"\n[dim]State exported to: {args.output}[/dim]")
    return 0


def show_idl(args: argparse.Namespace) -> int:
    """Summarize the program IDL (bundled, from a file, or from chain)."""
    from smartaccount.analysis import IDLParser, fetch_idl
    from smartaccount.core.pda import to_pubkey
    from smartaccount.core.rpc import SolanaRpcClient

    try:
        if args.onchain:
            config = _config(args)
            rpc = SolanaRpcClient.from_config(config)
            schema = asyncio.run(fetch_idl(rpc, to_pubkey(config.program_id)))
        elif args.file:
            schema = IDLParser().parse_file(args.file)
        else:
            schema = IDLParser().load_bundled()
    except Exception as e:
        console.print(f"[red]Error loading IDL: {e}[/red]")
        return 1

    console.print()
    console.print(Panel(schema.summary(), title="[bold]Program IDL[/bold]"))

    for ix in schema.instructions:
        table = Table(title=f"{ix.name} [dim]({ix.discriminator.hex()})[/dim]")
        table.add_column("Account", style="cyan")
        table.add_column("Signer", justify="center")
        table.add_column("Writable", justify="center")
        for acc in ix.accounts:
            table.add_row(
                acc.name,
                "✓" if acc.is_signer else "",
                "✓" if acc.is_writable else "",
            )
        console.print(table)

    if schema.errors:
        table = Table(title="Errors")
        table.add_column("Code", justify="right")
        table.add_column("Name", style="yellow")
        table.add_column("Message", style="dim")
        for err in schema.errors:
            table.add_row(str(err.code), err.name, err.message or "")
        console.print(table)
    return 0


def parse_account_arg(value: str) -> dict:
    """Parse PUBKEY[:s][:w] into an account entry."""
    parts = value.split(":")
    flags = set(parts[1:])
    unknown = flags - {"s", "w"}
    if unknown:
        raise argparse.ArgumentTypeError(f"Unknown account flags: {', '.join(sorted(unknown))}")
    return {"pubkey": parts[0], "is_signer": "s" in flags, "is_writable": "w" in flags}


def _amount(args: argparse.Namespace) -> int:
    from smartaccount.units import sol_to_lamports

    if args.sol is not None:
        return sol_to_lamports(args.sol)
    if args.amount is None:
        raise SmartAccountError("--amount (or --sol) is required")
    return args.amount


def _require(args: argparse.Namespace, *names: str):
    missing = [f"--{n.replace('_', '-')}" for n in names if getattr(args, n) is None]
    if missing:
        raise SmartAccountError(f"{args.operation} requires {', '.join(missing)}")


def compose_transaction(args: argparse.Namespace) -> int:
    """Compose an unsigned transaction and print it."""
    op = args.operation
    user = args.owner or args.user
    if user is None:
        console.print("[red]Error: pass --owner or --user[/red]")
        return 1

    try:
        client, _ = _client(args, user)
        owner = args.owner

        if op == "initialize":
            tx = client.initialize(owner)
        elif op == "add-delegate":
            _require(args, "delegate")
            tx = client.add_delegate(args.delegate, owner)
        elif op == "remove-delegate":
            _require(args, "delegate")
            tx = client.remove_delegate(args.delegate, owner)
        elif op == "pause":
            tx = client.pause(owner)
        elif op == "unpause":
            tx = client.unpause(owner)
        elif op == "native-transfer":
            _require(args, "owner", "delegate", "recipient")
            tx = client.execute_native_transfer(owner, args.delegate, args.recipient, _amount(args))
        elif op == "token-transfer":
            _require(args, "owner", "delegate", "source", "destination")
            token_program = TokenProgram.TOKEN_2022 if args.token_2022 else TokenProgram.TOKEN
            tx = client.execute_token_transfer(
                owner, args.delegate, args.source, args.destination, _amount(args), token_program
            )
        else:
            _require(args, "owner", "delegate", "target", "data")
            try:
                data = bytes.fromhex(args.data)
            except ValueError as e:
                raise SmartAccountError(f"--data must be hex: {e}")
            tx = client.execute_custom(owner, args.delegate, args.target, data, args.account or [])
    except (SmartAccountError, ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    ix = tx.instructions[0]
    console.print()
    console.print(Panel(
        f"[bold cyan]{op}[/bold cyan]\n\n"
        f"[dim]Program: {ix.program_id}[/dim]\n"
        f"[dim]Data: {bytes(ix.data).hex()}[/dim]",
        title="[bold]Unsigned Transaction[/bold]",
        subtitle="fee payer and blockhash not set",
    ))

    table = Table(title="Accounts")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Pubkey", style="cyan")
    table.add_column("Signer", justify="center")
    table.add_column("Writable", justify="center")
    for i, meta in enumerate(ix.accounts):
        table.add_row(
            str(i),
            str(meta.pubkey),
            "✓" if meta.is_signer else "",
            "✓" if meta.is_writable else "",
        )
    console.print(table)

    if args.output:
        with open(args.output, "w") as f:
            json.dump(tx.to_dict(), f, indent=2)
        console.print(f"\n[dim]Transaction exported to: {args.output}[/dim]")
    return 0


def _add_connection_args(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--network", "-n",
        type=str,
        choices=sorted(NETWORKS),
        help="Network (default: SMART_ACCOUNT_NETWORK or devnet)"
    )
    parser.add_argument("--rpc-url", type=str, help="RPC endpoint (overrides --network)")
    parser.add_argument("--program-id", type=str, help="Smart account program id")


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="smartaccount",
        description="Compose unsigned smart account transactions",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # pda command
    pda_parser = subparsers.add_parser("pda", help="Derive a smart account address")
    pda_parser.add_argument("owner", type=str, help="Owner public key")
    pda_parser.add_argument("--program-id", type=str, help="Smart account program id")

    # state command
    state_parser = subparsers.add_parser("state", help="Fetch smart account state")
    state_parser.add_argument("owner", type=str, nargs="?", help="Owner public key")
    state_parser.add_argument("--address", "-a", type=str, help="Smart account address")
    state_parser.add_argument("--output", "-o", type=str, help="Output file for JSON state")
    _add_connection_args(state_parser)

    # idl command
    idl_parser = subparsers.add_parser("idl", help="Show the program IDL")
    idl_parser.add_argument("--file", "-f", type=str, help="IDL JSON file")
    idl_parser.add_argument("--onchain", action="store_true", help="Fetch the IDL published on chain")
    _add_connection_args(idl_parser)

    # compose command
    compose_parser = subparsers.add_parser("compose", help="Compose an unsigned transaction")
    compose_parser.add_argument("operation", choices=OPERATIONS, help="Operation to compose")
    compose_parser.add_argument("--user", "-u", type=str, help="Default owner when --owner is not given")
    compose_parser.add_argument("--owner", type=str, help="Smart account owner")
    compose_parser.add_argument("--delegate", type=str, help="Delegate public key")
    compose_parser.add_argument("--recipient", type=str, help="Native transfer recipient")
    compose_parser.add_argument("--from", dest="source", type=str, help="Source token account")
    compose_parser.add_argument("--to", dest="destination", type=str, help="Destination token account")
    compose_parser.add_argument("--amount", type=int, help="Amount in base units")
    compose_parser.add_argument("--sol", type=str, help="Native transfer amount in SOL")
    compose_parser.add_argument("--token-2022", action="store_true", help="Use the Token-2022 program")
    compose_parser.add_argument("--target", type=str, help="Target program for custom")
    compose_parser.add_argument("--data", type=str, help="Hex instruction data for custom")
    compose_parser.add_argument(
        "--account",
        type=parse_account_arg,
        action="append",
        help="Extra account for custom, PUBKEY[:s][:w] (repeatable)"
    )
    compose_parser.add_argument("--idl", type=str, help="IDL JSON file (default: bundled)")
    compose_parser.add_argument("--program-id", type=str, help="Smart account program id")
    compose_parser.add_argument("--output", "-o", type=str, help="Output file for JSON transaction")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "pda":
        return show_pda(args)
    elif args.command == "state":
        return show_state(args)
    elif args.command == "idl":
        return show_idl(args)
    elif args.command == "compose":
        return compose_transaction(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
