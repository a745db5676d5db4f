"""BCRA fetch CLI - cache warm job and inspection.

Usage:
    bcra-fetch refresh [OPTIONS]
    bcra-fetch snapshot [OPTIONS]
    bcra-fetch series VARIABLE_ID [--from DATE] [--to DATE] [--limit N]

Consistent exit codes (0=success, 1=error, 2=circuit open).
"""

# Load .env file before any other imports
from dotenv import load_dotenv

load_dotenv()

import asyncio
import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from bcra_fetch import __version__
from bcra_fetch.config import get_settings
from bcra_fetch.core.errors import ErrorKind, FetchError
from bcra_fetch.observability import get_logger, setup_logging
from bcra_fetch.pipeline import BCRAService
from bcra_fetch.sources.models import BCRAResponse

# Create CLI app
app = typer.Typer(
    name="bcra-fetch",
    help="BCRA statistics fetch and cache CLI",
    add_completion=False,
)

console = Console()

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CIRCUIT_OPEN = 2


def _configure_logging(quiet: bool, verbose: bool, json_logs: bool) -> None:
    settings = get_settings()
    level = "DEBUG" if verbose else settings.log_level
    setup_logging(
        level=level,
        json_format=json_logs or settings.log_json,
        quiet=quiet,
        force=True,
    )
    if verbose:
        settings.log_config_summary(get_logger(__name__))


def _exit_code_for(error: FetchError) -> int:
    return EXIT_CIRCUIT_OPEN if error.kind == ErrorKind.CIRCUIT_OPEN else EXIT_ERROR


def _print_variables(response: BCRAResponse, title: str) -> None:
    table = Table(title=title)
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Fecha")
    table.add_column("Valor", justify="right", style="green")
    table.add_column("Descripción", overflow="fold")

    for variable in response.results:
        table.add_row(
            str(variable.id_variable) if variable.id_variable is not None else "-",
            variable.fecha,
            f"{variable.valor:,.2f}",
            variable.descripcion or "",
        )

    console.print(table)


@app.command()
def refresh(
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Minimal output")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
    json_logs: Annotated[bool, typer.Option("--json-logs", help="Emit JSON log lines")] = False,
) -> None:
    """Refetch the primary snapshot and persist it to the durable store.

    Intended for a scheduled job (e.g. cron at the checkpoint hours).

    Examples:
        bcra-fetch refresh
        bcra-fetch refresh --quiet --json-logs
    """
    _configure_logging(quiet, verbose, json_logs)

    async def _run():
        async with BCRAService.from_settings() as service:
            return await service.refresh_primary()

    report = asyncio.run(_run())

    if not quiet:
        console.print_json(json.dumps(report.to_dict(), default=str))

    if report.success:
        if not report.persisted and not quiet:
            console.print("[yellow]Durable store not updated (Redis not configured?)[/yellow]")
        raise typer.Exit(code=EXIT_OK)

    code = EXIT_CIRCUIT_OPEN if report.error_kind == ErrorKind.CIRCUIT_OPEN.value else EXIT_ERROR
    raise typer.Exit(code=code)


@app.command()
def snapshot(
    variable: Annotated[
        Optional[list[int]],
        typer.Option("--variable", "-i", help="Only show these variable IDs"),
    ] = None,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Minimal output")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
) -> None:
    """Print the current value of every published indicator.

    Examples:
        bcra-fetch snapshot
        bcra-fetch snapshot -i 1 -i 4 -i 27
    """
    _configure_logging(quiet, verbose, json_logs=False)

    async def _run():
        async with BCRAService.from_settings() as service:
            return await service.fetch_primary()

    try:
        response = asyncio.run(_run())
    except FetchError as e:
        console.print(f"[red]{e.kind.value}: {e}[/red]")
        raise typer.Exit(code=_exit_code_for(e))

    if variable:
        wanted = set(variable)
        response = response.model_copy(
            update={"results": [v for v in response.results if v.id_variable in wanted]}
        )

    _print_variables(response, "BCRA - Principales variables")


@app.command()
def series(
    variable_id: Annotated[int, typer.Argument(help="BCRA variable ID")],
    from_date: Annotated[
        Optional[str], typer.Option("--from", help="Start date (YYYY-MM-DD)")
    ] = None,
    to_date: Annotated[Optional[str], typer.Option("--to", help="End date (YYYY-MM-DD)")] = None,
    offset: Annotated[int, typer.Option("--offset", help="Pagination offset")] = 0,
    limit: Annotated[int, typer.Option("--limit", help="Page size (max 3000)")] = 1000,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Minimal output")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
) -> None:
    """Print the time series of one variable.

    Examples:
        bcra-fetch series 27 --from 2025-01-01 --to 2025-03-31
    """
    _configure_logging(quiet, verbose, json_logs=False)

    async def _run():
        async with BCRAService.from_settings() as service:
            return await service.fetch_series(
                variable_id, from_date=from_date, to_date=to_date, offset=offset, limit=limit
            )

    try:
        response = asyncio.run(_run())
    except FetchError as e:
        console.print(f"[red]{e.kind.value}: {e}[/red]")
        raise typer.Exit(code=_exit_code_for(e))

    _print_variables(response, f"BCRA - Variable {variable_id}")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"bcra-fetch v{__version__}")


if __name__ == "__main__":
    app()
