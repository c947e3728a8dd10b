# src/proposalkit/cli.py
"""
proposalkit Command Line Interface (CLI).

Terminal tools built on `typer` and `rich` for looking at saved proposal
documents without starting the editor or the API.

Features
--------
- **Inspect**: the block outline with each block's visibility and the
  evaluation context conditions read from.
- **Pricing**: the line items and totals of the first pricing table, plus the
  amount due of every payment block.
- **Check**: the signature completion gate; exits with status 1 when the
  document cannot be submitted, so it can guard scripts and CI jobs.

Usage
-----
    $ proposalkit inspect artifacts/documents/q3-proposal.json
    $ proposalkit pricing artifacts/documents/q3-proposal.json
    $ proposalkit check artifacts/documents/q3-proposal.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from proposalkit.core.contracts.blocks import PaymentBlock
from proposalkit.core.contracts.document import Document
from proposalkit.core.errors import PersistenceError
from proposalkit.core.evaluation.context import context_as_dict
from proposalkit.core.persistence import read_document
from proposalkit.core.pricing import first_pricing_block, format_money, payment_amount_due
from proposalkit.core.session import evaluate
from proposalkit.core.store import describe

load_dotenv()

app = typer.Typer(
    help="proposalkit: inspect, price and gate proposal documents.",
    rich_markup_mode="markdown",
)
console = Console()

DocumentFile = Annotated[
    Path,
    typer.Argument(
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="Path to a document JSON file.",
    ),
]


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #


def _load(path: Path) -> Document:
    """Read ``path`` or exit with status 2 and a readable message."""
    try:
        return read_document(path)
    except PersistenceError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(code=2) from e


def _banner(title: str, document: Document, style: str) -> None:
    console.print(
        Panel.fit(
            f"[bold {style}]{title}[/bold {style}]\n"
            f"{document.title} [dim]({len(document.blocks)} blocks)[/dim]",
            border_style=style,
        )
    )


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


@app.command()  # type: ignore[misc]
def inspect(file: DocumentFile) -> None:
    """
    Show the block outline of a document with computed visibility.

    Hidden blocks are dimmed; a `?` marks blocks that carry a condition.
    """
    document = _load(file)
    result = evaluate(document.blocks)
    _banner("Document", document, "cyan")

    table = Table(show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("id")
    table.add_column("type", style="cyan")
    table.add_column("content")
    table.add_column("visible", justify="center")
    for i, block in enumerate(document.blocks, start=1):
        visible = result.visibility[block.id]
        mark = "✅" if visible else "—"
        if block.visibility is not None:
            mark += " ?"
        style = None if visible else "dim"
        table.add_row(str(i), block.id, block.type, describe(block), mark, style=style)
    console.print(table)

    context = context_as_dict(result.context)
    if context:
        console.print("\n[bold dim]Evaluation context:[/bold dim]")
        for key, value in context.items():
            console.print(f" [dim]{key}[/dim] = {value}")
    else:
        console.print("\n[dim]No pricing table: conditions on pricing fields are false.[/dim]")


@app.command()  # type: ignore[misc]
def pricing(
    file: DocumentFile,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the totals as JSON instead of a table."),
    ] = False,
) -> None:
    """
    Show the items and totals of the document's first pricing table.
    """
    document = _load(file)
    block = first_pricing_block(document.blocks)
    if block is None:
        console.print("[yellow]This document has no pricing table.[/yellow]")
        raise typer.Exit(code=1)

    summary = evaluate(document.blocks).pricing
    assert summary is not None
    data = block.data
    money = data.currency

    if as_json:
        console.print_json(json.dumps(summary.dump_json_dict()))
        return

    _banner(data.title, document, "green")
    table = Table()
    table.add_column("item")
    table.add_column("qty", justify="right")
    table.add_column("unit", justify="right")
    table.add_column("total", justify="right")
    for item in data.items:
        included = item.counts_towards_total
        name = item.name + (" [dim](optional)[/dim]" if item.is_optional else "")
        table.add_row(
            name,
            str(item.quantity),
            format_money(item.unit_price, money),
            format_money(item.line_total, money) if included else "[dim]not selected[/dim]",
            style=None if included else "dim",
        )
    console.print(table)

    console.print(f" Subtotal: {format_money(summary.subtotal, money)}")
    if summary.discount:
        console.print(f" Discount: -{format_money(summary.discount, money)}")
    if summary.tax:
        console.print(f" {data.tax_label} ({data.tax_rate}%): {format_money(summary.tax, money)}")
    console.print(f" [bold]Total: {format_money(summary.total, money)}[/bold]")

    for payment in (b for b in document.blocks if isinstance(b, PaymentBlock)):
        due = payment_amount_due(payment.data, document.blocks)
        console.print(
            f" [magenta]Payment[/magenta] {payment.data.description}: "
            f"{format_money(due, payment.data.currency)} ({payment.data.timing})"
        )


@app.command()  # type: ignore[misc]
def check(file: DocumentFile) -> None:
    """
    Run the signature completion gate.

    Exits with status 1 when a visible required signature is missing.
    """
    document = _load(file)
    submission = evaluate(document.blocks).submission
    if submission.ok:
        console.print("[bold green]✅ Ready to submit.[/bold green]")
        return

    roles = ", ".join(submission.missing_roles)
    console.print(f"[bold red]❌ Missing required signatures:[/bold red] {roles}")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
