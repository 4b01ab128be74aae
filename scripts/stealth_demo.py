#!/usr/bin/env python3
"""
StealthPay - Stealth Payment Demo
===================================
Demo end-to-end: identity, pagamento, scan, claim.

Usage:
    python scripts/stealth_demo.py
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stealth_pay.config import get_development_config
from stealth_pay.crypto.ed25519 import public_from_scalar
from stealth_pay.services.privacy_service import PrivacyService
from stealth_pay.storage.registry import InMemoryTransferRegistry

console = Console()


def main():
    """Run stealth payment demo"""

    console.print(Panel.fit(
        "[cyan]StealthPay - Stealth Payment Demo[/cyan]\n\n"
        "Unlinkable payments with encrypted amounts",
        border_style="cyan"
    ))

    service = PrivacyService(
        registry=InMemoryTransferRegistry(),
        settings=get_development_config(),
    )

    # ========================================================================
    # STEP 1: Receiver publishes meta-address
    # ========================================================================

    console.print("\n[yellow]Step 1: Receiver creates identity[/yellow]")

    receiver = service.create_identity()
    bystander = service.create_identity()

    table = Table(title="Receiver Identity")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Spending Public", receiver["spending_public"][:16] + "...")
    table.add_row("Viewing Public", receiver["viewing_public"][:16] + "...")
    table.add_row("Meta-address", receiver["meta_address"][:32] + "...")
    console.print(table)

    console.print("[dim]Only the meta-address is shared publicly[/dim]")

    # ========================================================================
    # STEP 2: Senders publish transfers
    # ========================================================================

    console.print("\n[yellow]Step 2: Senders publish transfers[/yellow]")

    service.send(bystander["meta_address"], 5, memo="rent")
    sent = service.send(receiver["meta_address"], 0.1, memo="coffee", sender_hint="alice")
    service.send(bystander["meta_address"], 7)

    console.print(f"[green]✅ Transfer published[/green] [cyan]{sent['id']}[/cyan]")
    console.print(f"[cyan]One-time address: {sent['stealth_address'][:32]}...[/cyan]")
    console.print(f"[cyan]View tag: {sent['view_tag']}[/cyan]")
    console.print("[dim]Amount and memo are encrypted, the registry sees only ciphertext[/dim]")

    # ========================================================================
    # STEP 3: Receiver scans the registry
    # ========================================================================

    console.print("\n[yellow]Step 3: Receiver scans the registry[/yellow]")

    found = service.scan(receiver["viewing_private"], receiver["spending_public"])
    console.print(f"[green]✅ {len(found)} of {service.get_stats()['total_private_transfers']} transfers are mine[/green]")

    # ========================================================================
    # STEP 4: Claim
    # ========================================================================

    for record in found:
        console.print("\n[yellow]Step 4: Claiming transfer[/yellow]")

        claimed = service.claim(record, receiver["viewing_private"], receiver["spending_private"])
        spend_public = public_from_scalar(bytes.fromhex(claimed["spend_scalar"])).hex()

        console.print(f"[green]✅ Amount: {claimed['amount']}  Memo: {claimed.get('memo')}[/green]")
        console.print(f"[cyan]Spend key matches one-time address: {spend_public == record['stealth_address']}[/cyan]")

    # ========================================================================
    # STEP 5: Privacy demonstration
    # ========================================================================

    console.print("\n[yellow]Step 5: Privacy demonstration[/yellow]")

    theirs = service.scan(bystander["viewing_private"], bystander["spending_public"])
    if sent["id"] not in {r["id"] for r in theirs}:
        console.print("[green]✅ Other identity cannot detect the payment[/green]")

    console.print("\n" + "=" * 60)
    console.print("[green]Stealth Payment Demo Complete![/green]")

    service.close()


if __name__ == "__main__":
    main()
