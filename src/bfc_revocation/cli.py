"""
Command-line interface for BFC revocation checks.

Usage:
    bfc-status credential.json --cascade mypackage.cascade:Backend
    bfc-status --url https://example.com/credentials/123 --extract-only
    cat credential.jwt | bfc-status - --cascade mypackage.cascade:Backend
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
import httpx
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from bfc_revocation.cascade import load_cascade_backend
from bfc_revocation.checker import RevocationChecker
from bfc_revocation.config import NETWORKS, APIConfig, StatusCheckOptions
from bfc_revocation.credential_status import CredentialStatus, extract_credential_status
from bfc_revocation.errors import RevocationCheckError
from bfc_revocation.identifier import resolve_status_id
from bfc_revocation.progress import ProgressEvent


console = Console()
err_console = Console(stderr=True)


def format_result(
    status: CredentialStatus,
    address: str,
    revocation_index: str,
    revoked: bool | None,
) -> None:
    """Format and print a revocation check result."""
    if revoked is None:
        verdict = "[dim]Not checked[/]"
        panel_style = "blue"
    elif revoked:
        verdict = "[bold red]REVOKED[/]"
        panel_style = "red"
    else:
        verdict = "[bold green]NOT REVOKED[/]"
        panel_style = "green"

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Field", style="dim")
    table.add_column("Value")

    table.add_row("Revocation", verdict)
    table.add_row("Status ID", status.id)
    table.add_row("Status Type", status.type)
    if status.status_publisher:
        table.add_row("Publisher", status.status_publisher)
    table.add_row("Publisher Address", address)
    table.add_row("Revocation Index", revocation_index)

    console.print(Panel(table, title="Credential Status", border_style=panel_style))


def print_progress(event: ProgressEvent) -> None:
    """Progress sink printing stage transitions to stderr."""
    metrics = ", ".join(f"{k}={v}" for k, v in event.additional_metrics.items())
    suffix = f" ({metrics})" if metrics else ""
    err_console.print(f"[dim]{event.step}[/] {event.status.value}{suffix}")


def load_credential(source: str) -> str | dict[str, Any]:
    """Load a credential from file, URL, or stdin.

    The content may be a JSON-LD credential or a compact JWT.

    Args:
        source: File path, URL, or "-" for stdin.

    Returns:
        Parsed credential JSON, or the JWT string.
    """
    if source == "-":
        content = sys.stdin.read()
    elif source.startswith("http://") or source.startswith("https://"):
        with httpx.Client(timeout=30.0) as client:
            response = client.get(
                source,
                headers={"Accept": "application/vc+ld+json, application/vc+jwt, application/json"},
            )
            response.raise_for_status()
            content = response.text
    else:
        path = Path(source)
        if not path.exists():
            raise click.ClickException(f"File not found: {source}")
        content = path.read_text()

    content = content.strip()
    if content.startswith("{") or content.startswith('"'):
        return json.loads(content)
    return content


@click.command()
@click.argument("source", required=True)
@click.option("--infura-key", envvar="INFURA_API_KEY", help="Infura API key")
@click.option("--moralis-key", envvar="MORALIS_API_KEY", help="Moralis API key")
@click.option("--alchemy-key", envvar="ALCHEMY_API_KEY", help="Alchemy API key")
@click.option("--blobscan-url", envvar="BLOBSCAN_URL", help="Blobscan API base URL")
@click.option(
    "--network",
    envvar="BFC_NETWORK",
    type=click.Choice(sorted(NETWORKS)),
    default="mainnet",
    show_default=True,
    help="Ethereum network the publisher posts to",
)
@click.option(
    "--cascade",
    "cascade_spec",
    envvar="BFC_CASCADE_BACKEND",
    help="Bloom filter cascade backend as module:attribute",
)
@click.option(
    "--timeout",
    type=float,
    default=30.0,
    help="HTTP request timeout in seconds",
)
@click.option(
    "--deadline",
    type=float,
    default=None,
    help="Overall blob retrieval deadline in seconds",
)
@click.option(
    "--race",
    is_flag=True,
    help="Query providers concurrently instead of one after another",
)
@click.option(
    "--strict-id",
    is_flag=True,
    help="Reject status ids with more than one address segment",
)
@click.option(
    "--extract-only",
    is_flag=True,
    help="Only extract and resolve the credential status, no network access",
)
@click.option(
    "--json-output",
    is_flag=True,
    help="Output result as JSON",
)
@click.option("-v", "--verbose", is_flag=True, help="Log progress and provider activity")
@click.version_option()
def main(
    source: str,
    infura_key: str | None,
    moralis_key: str | None,
    alchemy_key: str | None,
    blobscan_url: str | None,
    network: str,
    cascade_spec: str | None,
    timeout: float,
    deadline: float | None,
    race: bool,
    strict_id: bool,
    extract_only: bool,
    json_output: bool,
    verbose: bool,
) -> None:
    """Check whether a Verifiable Credential has been revoked.

    SOURCE can be:
    - A file path holding a JSON-LD credential or a compact JWT
    - A URL (e.g., https://example.com/credentials/123)
    - "-" to read from stdin

    Examples:

        bfc-status credential.json --cascade mypackage.cascade:Backend

        bfc-status credential.jwt --extract-only

        cat credential.json | bfc-status - --blobscan-url https://api.blobscan.com
    """
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )

    try:
        credential = load_credential(source)
        status = extract_credential_status(credential)
        address, revocation_index = resolve_status_id(status.id, strict=strict_id)

        revoked: bool | None = None
        if not extract_only:
            if not cascade_spec:
                raise click.UsageError(
                    "A cascade backend is required (--cascade or BFC_CASCADE_BACKEND)"
                )
            api_config = APIConfig(
                infura_api_key=infura_key,
                moralis_api_key=moralis_key,
                alchemy_api_key=alchemy_key,
                blob_scan_url=blobscan_url,
                network=network,
                timeout=timeout,
                deadline=deadline,
                fallback="race" if race else "sequential",
                strict_status_id=strict_id,
            )
            checker = RevocationChecker(api_config, load_cascade_backend(cascade_spec))
            options = StatusCheckOptions(event_sink=print_progress if verbose else None)
            revoked = asyncio.run(checker.is_revoked(credential, options))

        if json_output:
            console.print_json(data={
                "credential_status": status.to_dict(),
                "address": address,
                "revocation_index": revocation_index,
                "revoked": revoked,
            })
        else:
            format_result(status, address, revocation_index, revoked)

        sys.exit(1 if revoked else 0)

    except click.ClickException as e:
        _fail(e.format_message(), json_output)

    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON: {e}", json_output)

    except httpx.HTTPError as e:
        _fail(f"HTTP error: {e}", json_output)

    except RevocationCheckError as e:
        _fail(f"{type(e).__name__}: {e}", json_output)

    except (ImportError, ValueError) as e:
        _fail(str(e), json_output)


def _fail(message: str, json_output: bool) -> None:
    if json_output:
        console.print_json(data={"error": message})
    else:
        console.print(f"[red]Error:[/] {message}")
    sys.exit(2)


if __name__ == "__main__":
    main()
