"""
addrspec CLI - Check addresses and inspect the diagnosis catalog.

Usage:
    addrspec --help                     Show all commands
    addrspec check ADDRESS...           Grade one or more addresses
    addrspec check --json ADDRESS...    One JSON object per line
    addrspec catalog                    List categories and diagnoses
    addrspec verify-catalog PATH        Check a catalog file
"""

import json
from pathlib import Path

import typer

app = typer.Typer(
    name="addrspec",
    help="addrspec CLI - RFC 5321 / RFC 5322 email address validation",
    no_args_is_help=True,
)


# --- Printer helpers ---


def _print_success(message: str) -> None:
    """Print a success message."""
    typer.echo(f"  ✅ {message}")


def _print_warning(message: str) -> None:
    """Print a warning message."""
    typer.echo(f"  ⚠️ {message}")


def _print_error(message: str) -> None:
    """Print an error message to stderr."""
    typer.echo(f"❌ {message}", err=True)


@app.command()
def check(
    addresses: list[str] = typer.Argument(..., help="Addresses to check"),
    as_json: bool = typer.Option(False, "--json", "-j", help="Print one JSON object per address"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="List every diagnosis raised"),
):
    """Grade addresses against RFC 5321 and RFC 5322."""
    from addrspec.core.logging import setup_logging
    from addrspec.validation.engine import evaluate

    setup_logging()

    any_invalid = False
    for address in addresses:
        outcome = evaluate(address)
        any_invalid = any_invalid or not outcome.is_valid

        if as_json:
            row = {
                "address": address,
                "diagnosis": outcome.diagnosis.id,
                "category": outcome.category.id,
                "valid": outcome.is_valid,
                "local_part": outcome.local_part,
                "domain": outcome.domain,
                "literal": outcome.literal,
            }
            if verbose:
                row["diagnoses"] = [d.id for d in outcome.diagnoses]
            typer.echo(json.dumps(row))
            continue

        typer.echo(f"\n{address}")
        if not outcome.is_valid:
            _print_error(f"{outcome.diagnosis.id} ({outcome.category.id})")
        elif outcome.diagnosis.id == "ISEMAIL_VALID":
            _print_success(outcome.diagnosis.id)
        else:
            _print_warning(f"{outcome.diagnosis.id} ({outcome.category.id})")
        typer.echo(f"  {outcome.diagnosis.description}")
        typer.echo(f"  local part: {outcome.local_part}")
        typer.echo(f"  domain: {outcome.domain}")
        if outcome.literal is not None:
            typer.echo(f"  literal: {outcome.literal}")
        if verbose:
            for diagnosis in outcome.diagnoses:
                typer.echo(f"    - {diagnosis.id} [{diagnosis.value}]")

    if any_invalid:
        raise typer.Exit(1)


@app.command()
def catalog(
    category: str | None = typer.Option(
        None, "--category", "-c", help="Only list diagnoses of this category (e.g. ERR)"
    ),
):
    """List categories and diagnoses."""
    from addrspec.validation.catalog import get_catalog

    loaded = get_catalog()

    if category is None:
        typer.echo("Categories:")
        for cat in loaded.categories:
            typer.echo(f"  {cat.value:>4}  {cat.id}")
        typer.echo("\nDiagnoses:")
        diagnoses = loaded.diagnoses
    else:
        try:
            wanted = loaded.category(category.upper())
        except KeyError:
            _print_error(f"Unknown category: {category}")
            raise typer.Exit(1) from None
        diagnoses = [d for d in loaded.diagnoses if d.category.id == wanted.id]

    for diagnosis in diagnoses:
        typer.echo(f"  {diagnosis.value:>4}  {diagnosis.id}  {diagnosis.smtp.value}")


@app.command("verify-catalog")
def verify_catalog(
    path: Path = typer.Argument(..., help="Catalog YAML file"),
):
    """Load a catalog file and check its integrity."""
    from addrspec.core.errors import CatalogError
    from addrspec.validation.catalog import load_catalog

    try:
        loaded = load_catalog(path)
    except CatalogError as e:
        _print_error(str(e))
        raise typer.Exit(1) from None

    _print_success(
        f"{len(loaded.categories)} categories, {len(loaded)} diagnoses, "
        f"{len(loaded.smtp_infos)} SMTP replies, {len(loaded.references)} references"
    )


if __name__ == "__main__":
    app()
