"""
StealthPay - Command Line Interface
=====================================
CLI per identità, pagamenti privati e scan.

Security Level: MEDIUM
Last Updated: 2026-10-18
Version: 1.0.0

Commands:
- identity: Generazione chiavi
- address: Derivazione one-time address
- send: Derive + encrypt + register
- scan: Ricerca transfer posseduti
- claim: Decifratura + spend scalar
- stats: Statistiche registry

Il registry è persistito su SQLite (settings.db_path o --db).
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Internal imports
from stealth_pay.config import StealthSettings, override_settings
from stealth_pay.errors import StealthPayException
from stealth_pay.logging_setup import setup_logging
from stealth_pay.services.privacy_service import PrivacyService
from stealth_pay.storage.registry import InMemoryTransferRegistry
from stealth_pay.version import get_version_string


# ============================================================================
# CLI APP
# ============================================================================

app = typer.Typer(
    name="stealthpay",
    help="StealthPay - Stealth payment CLI",
    add_completion=False
)

console = Console()


# ============================================================================
# GLOBAL STATE
# ============================================================================

class CLIState:
    """Global CLI state"""
    settings: Optional[StealthSettings] = None
    service: Optional[PrivacyService] = None


state = CLIState()


def get_service() -> PrivacyService:
    """Service lazy: creato solo dai comandi che toccano il registry."""
    if state.service is None:
        if state.settings is None:
            state.settings = override_settings(registry_backend="sqlite")
        state.service = PrivacyService(settings=state.settings)
    return state.service


def _offline_service() -> PrivacyService:
    """Service senza storage per i comandi puramente crittografici."""
    return PrivacyService(
        registry=InMemoryTransferRegistry(),
        settings=state.settings or override_settings()
    )


def _close_service() -> None:
    if state.service is not None:
        state.service.close()
        state.service = None


def _emit_json(data) -> None:
    typer.echo(json.dumps(data, indent=2))


def _fail(message: str, error: StealthPayException) -> None:
    console.print(f"[red]{message}: {error.message}[/red]")
    if error.details:
        console.print(f"[dim]{error.code} {error.details}[/dim]")
    raise typer.Exit(1)


def _parse_amount(text: str):
    """Amount come numero JSON: '42' -> int, '0.1' -> float."""
    try:
        value = json.loads(text)
    except ValueError:
        raise typer.BadParameter(f"Not a number: {text}")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise typer.BadParameter(f"Not a number: {text}")
    return value


# ============================================================================
# IDENTITY COMMANDS
# ============================================================================

identity_app = typer.Typer(help="Identity (key material) commands")
app.add_typer(identity_app, name="identity")


@identity_app.command("new")
def identity_new(
    as_json: bool = typer.Option(False, "--json", help="Output JSON")
):
    """Generate a new spending + viewing identity"""
    try:
        keys = _offline_service().create_identity()
    except StealthPayException as e:
        _fail("Error generating identity", e)

    if as_json:
        _emit_json(keys)
        return

    console.print(Panel.fit(
        f"[green]✅ Identity generated[/green]\n\n"
        f"Meta-address: [cyan]{keys['meta_address']}[/cyan]\n\n"
        f"Spending public: [cyan]{keys['spending_public']}[/cyan]\n"
        f"Viewing public:  [cyan]{keys['viewing_public']}[/cyan]\n\n"
        f"[yellow]Spending private: {keys['spending_private']}[/yellow]\n"
        f"[yellow]Viewing private:  {keys['viewing_private']}[/yellow]\n\n"
        f"[red]⚠️  Store the private keys safely. They are not saved anywhere.[/red]",
        title="StealthPay Identity",
        border_style="green"
    ))


# ============================================================================
# ADDRESS COMMANDS
# ============================================================================

address_app = typer.Typer(help="One-time address commands")
app.add_typer(address_app, name="address")


@address_app.command("derive")
def address_derive(
    meta_address: str = typer.Argument(..., help="Recipient meta-address"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON")
):
    """Derive a fresh one-time address for a meta-address"""
    try:
        stealth = _offline_service().derive_address(meta_address)
    except StealthPayException as e:
        _fail("Error deriving address", e)

    if as_json:
        _emit_json(stealth)
        return

    table = Table(title="One-Time Address", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Address", stealth["address"])
    table.add_row("Ephemeral key", stealth["ephemeral_public_key"])
    table.add_row("View tag", str(stealth["view_tag"]))
    console.print(table)


# ============================================================================
# TRANSFER COMMANDS
# ============================================================================

@app.command("send")
def send(
    meta_address: str = typer.Argument(..., help="Recipient meta-address"),
    amount: str = typer.Argument(..., help="Amount (JSON number, e.g. 0.1)"),
    memo: Optional[str] = typer.Option(None, "--memo", "-m", help="Encrypted memo"),
    sender_hint: Optional[str] = typer.Option(None, "--hint", help="Plaintext sender hint"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON")
):
    """Send a private transfer (derive + encrypt + register)"""
    value = _parse_amount(amount)

    try:
        record = get_service().send(meta_address, value, memo=memo, sender_hint=sender_hint)
    except StealthPayException as e:
        _fail("Error sending transfer", e)
    finally:
        _close_service()

    if as_json:
        _emit_json(record)
        return

    console.print(Panel.fit(
        f"[green]✅ Private transfer registered[/green]\n\n"
        f"ID: [cyan]{record['id']}[/cyan]\n"
        f"Stealth address: [cyan]{record['stealth_address']}[/cyan]\n"
        f"View tag: [cyan]{record['view_tag']}[/cyan]",
        title="StealthPay Transfer",
        border_style="green"
    ))


@app.command("scan")
def scan(
    viewing_private: str = typer.Option(..., "--viewing-private", help="Viewing private key"),
    spending_public: str = typer.Option(..., "--spending-public", help="Spending public key"),
    since: Optional[float] = typer.Option(None, "--since", help="Minimum timestamp (inclusive)"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON")
):
    """Scan the registry for transfers addressed to you"""
    if since is not None and since.is_integer():
        since = int(since)

    try:
        found = get_service().scan(viewing_private, spending_public, since_timestamp=since)
    except StealthPayException as e:
        _fail("Error scanning", e)
    finally:
        _close_service()

    if as_json:
        _emit_json(found)
        return

    if not found:
        console.print("[yellow]No transfers found.[/yellow]")
        return

    console.print(f"[green]Found {len(found)} transfer(s)![/green]\n")

    table = Table(title="Private Transfers")
    table.add_column("ID", style="cyan")
    table.add_column("Stealth Address", style="green")
    table.add_column("Timestamp", justify="right", style="yellow")

    for record in found:
        table.add_row(
            record["id"],
            record["stealth_address"][:32] + "...",
            str(record["timestamp"])
        )

    console.print(table)


@app.command("claim")
def claim(
    transfer_id: str = typer.Argument(..., help="Transfer id"),
    viewing_private: str = typer.Option(..., "--viewing-private", help="Viewing private key"),
    spending_private: str = typer.Option(..., "--spending-private", help="Spending private key"),
    as_json: bool = typer.Option(False, "--json", help="Output JSON")
):
    """Decrypt an owned transfer and derive its spend scalar"""
    try:
        result = get_service().claim(transfer_id, viewing_private, spending_private)
    except StealthPayException as e:
        _fail("Error claiming transfer", e)
    finally:
        _close_service()

    if as_json:
        _emit_json(result)
        return

    memo_line = f"Memo: [cyan]{result['memo']}[/cyan]\n" if "memo" in result else ""
    if "memo_error" in result:
        memo_line = f"[red]Memo unreadable: {result['memo_error']['error']}[/red]\n"
    console.print(Panel.fit(
        f"[green]✅ Transfer claimed[/green]\n\n"
        f"Amount: [cyan]{result['amount']}[/cyan]\n"
        f"{memo_line}"
        f"[yellow]Spend scalar: {result['spend_scalar']}[/yellow]",
        title="StealthPay Claim",
        border_style="green"
    ))


@app.command("stats")
def stats(
    as_json: bool = typer.Option(False, "--json", help="Output JSON")
):
    """Show registry statistics"""
    try:
        data = get_service().get_stats()
    except StealthPayException as e:
        _fail("Error reading stats", e)
    finally:
        _close_service()

    if as_json:
        _emit_json(data)
        return

    table = Table(title="Registry Statistics", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Private transfers", str(data["total_private_transfers"]))
    table.add_row("Total volume", "hidden (encrypted)")
    table.add_row("Payload cipher", data["payload_cipher"])
    table.add_row("Backend", data["registry_backend"])
    console.print(table)


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

@app.callback()
def main(
    db: Optional[Path] = typer.Option(
        None,
        "--db",
        help="SQLite registry path (default: data_dir/transfers.db)"
    ),
    encoding: Optional[str] = typer.Option(
        None,
        "--encoding",
        "-e",
        help="Wire encoding for keys and records (hex/base64)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Verbose output"
    )
):
    """
    StealthPay - Stealth payment CLI

    Genera identità, invia transfer privati e trova quelli a te destinati.
    """
    overrides = {"registry_backend": "sqlite"}
    if db is not None:
        overrides["db_path"] = db
    if encoding is not None:
        overrides["wire_encoding"] = encoding

    try:
        state.settings = override_settings(**overrides)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1)

    state.service = None

    setup_logging(
        log_level="DEBUG" if verbose else state.settings.log_level,
        log_to_file=state.settings.log_to_file,
        log_dir=state.settings.log_dir,
        log_format=state.settings.log_format,
        enable_console=verbose,
    )

    if verbose:
        console.print(f"[dim]{get_version_string()} - registry {state.settings.db_path}[/dim]")


if __name__ == "__main__":
    app()


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "app",
]
