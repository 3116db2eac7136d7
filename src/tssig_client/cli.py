"""TSSig client CLI: signed timestamps from the command line.

Usage:
    tssig-client --endpoint <url> sign <digest-hex>
    tssig-client --endpoint <url> stamp <file> [--algorithm sha256] [--no-save]
    tssig-client info <file.sts.json>
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .client import TimestampClient
from .errors import RetryableError, TimestampClientError
from .models import (
    DEFAULT_MAX_RESPONSE_BYTES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TOTAL_TIMEOUT,
    ClientConfig,
    HashAlgorithm,
)
from .timestamp import load_sts_file, timestamp_file

console = Console()
logger = logging.getLogger("tssig_client.cli")


def log_retry(error: RetryableError, delay: float) -> None:
    """Retry observer that reports each retry through the CLI logger."""
    logger.warning("Attempt failed (%s), retrying in %.2fs", error, delay)


def _make_client(ctx: click.Context) -> TimestampClient:
    endpoint = ctx.obj["endpoint"]
    if not endpoint:
        console.print("[red]No endpoint configured. Pass --endpoint or set TSSIG_ENDPOINT.[/]")
        sys.exit(1)
    config = ClientConfig(
        endpoint=endpoint,
        total_timeout=ctx.obj["total_timeout"],
        per_request_timeout=ctx.obj["request_timeout"],
        max_response_bytes=ctx.obj["max_response_bytes"],
    )
    return TimestampClient(config=config, notify=log_retry)


@click.group()
@click.option(
    "--endpoint",
    envvar="TSSIG_ENDPOINT",
    default=None,
    help="Signing service URL (env: TSSIG_ENDPOINT)",
)
@click.option(
    "--total-timeout",
    envvar="TSSIG_TOTAL_TIMEOUT",
    type=click.FloatRange(min=0),
    default=DEFAULT_TOTAL_TIMEOUT,
    show_default=True,
    help="Seconds to keep retrying, 0 for no limit",
)
@click.option(
    "--request-timeout",
    envvar="TSSIG_REQUEST_TIMEOUT",
    type=click.FloatRange(min=0, min_open=True),
    default=DEFAULT_REQUEST_TIMEOUT,
    show_default=True,
    help="Seconds allowed for a single request",
)
@click.option(
    "--max-response-bytes",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_RESPONSE_BYTES,
    show_default=True,
    help="Largest response body accepted",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose logging")
@click.pass_context
def main(
    ctx: click.Context,
    endpoint: Optional[str],
    total_timeout: float,
    request_timeout: float,
    max_response_bytes: int,
    verbose: bool,
) -> None:
    """TSSig client: signed timestamps for message digests."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj.update(
        endpoint=endpoint,
        total_timeout=total_timeout,
        request_timeout=request_timeout,
        max_response_bytes=max_response_bytes,
    )


# ---------------------------------------------------------------------------
# Sign
# ---------------------------------------------------------------------------


@main.command()
@click.argument("digest_hex")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the signed timestamp JSON to this file",
)
@click.pass_context
def sign(ctx: click.Context, digest_hex: str, output: Optional[str]) -> None:
    """Sign a hex-encoded digest and print the signed timestamp."""
    try:
        digest = bytes.fromhex(digest_hex)
    except ValueError:
        console.print(f"[red]Not a hex digest: {digest_hex}[/]")
        sys.exit(1)

    with _make_client(ctx) as client:
        with console.status(f"[bold]Requesting signed timestamp from {client.config.endpoint}...[/]"):
            try:
                sts = client.sign(digest)
            except TimestampClientError as exc:
                console.print(f"[red]Signing failed: {escape(str(exc))}[/]")
                sys.exit(1)

    sts_json = sts.model_dump_json(indent=2)
    if output:
        Path(output).write_text(sts_json, encoding="utf-8")
        console.print(f"[green]Signed timestamp saved to {output}[/]")
    else:
        console.print_json(sts_json)


# ---------------------------------------------------------------------------
# Stamp
# ---------------------------------------------------------------------------


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--algorithm",
    default=HashAlgorithm.SHA256.value,
    type=click.Choice([a.value for a in HashAlgorithm]),
    help="Hash algorithm (default: sha256)",
)
@click.option(
    "--no-save",
    is_flag=True,
    default=False,
    help="Do not save <file>.sts.json alongside the file",
)
@click.pass_context
def stamp(ctx: click.Context, file: str, algorithm: str, no_save: bool) -> None:
    """Timestamp a file.

    Hashes the file, has the digest signed by the service, and saves the
    signed timestamp as <file>.sts.json.
    """
    with _make_client(ctx) as client:
        with console.status(f"[bold]Requesting signed timestamp from {client.config.endpoint}...[/]"):
            try:
                result = timestamp_file(
                    file,
                    client,
                    algorithm=HashAlgorithm(algorithm),
                    save=not no_save,
                )
            except TimestampClientError as exc:
                console.print(
                    Panel(
                        f"[bold red]Timestamp failed[/]\n\n{escape(str(exc))}",
                        title="TSSig",
                        border_style="red",
                    )
                )
                sys.exit(1)

    console.print(
        Panel(
            f"[bold green]Timestamp issued[/]\n\n"
            f"  File:       {result.file_path}\n"
            f"  Hash:       {result.file_hash[:32]}...\n"
            f"  Algorithm:  {result.hash_algorithm.value}\n"
            f"  Service:    {result.endpoint}\n"
            f"  Token:      {result.sts_path or '(not saved)'}",
            title="TSSig",
            border_style="green",
        )
    )


# ---------------------------------------------------------------------------
# Info
# ---------------------------------------------------------------------------


@main.command()
@click.argument("sts_file", type=click.Path(exists=True, dir_okay=False))
def info(sts_file: str) -> None:
    """Show the fields of a saved signed timestamp."""
    try:
        sts = load_sts_file(sts_file)
    except TimestampClientError as exc:
        console.print(f"[red]Failed to load signed timestamp: {escape(str(exc))}[/]")
        sys.exit(1)

    table = Table(title=f"Signed Timestamp: {sts_file}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    for name, value in sts.model_dump().items():
        table.add_row(name, escape(str(value)))

    console.print(table)


if __name__ == "__main__":
    main()
