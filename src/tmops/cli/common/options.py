"""Common CLI options for the CLI."""

import typer

ProfileOpt = typer.Option(
    None,
    "--profile",
    "-p",
    help="tmops profile (from ~/.tmopscfg)",
)

PathOpt = typer.Option(
    "/",
    "--path",
    help="Organizational path of the container (e.g. acme/sub/)",
)

ServerNameOpt = typer.Option(
    None,
    "--server-name",
    help="Regex on database server name used to pick the target server",
)

PropertyOpt = typer.Option(
    [],
    "--property",
    help="Server property selector (key=value). This is reusable.",
    show_default=False,
)

UseOrOpt = typer.Option(
    False,
    "--or",
    help="Use OR instead of AND between server selectors",
)

PurgeOpt = typer.Option(
    False,
    "--purge",
    help="Also drop the physical database (irreversible)",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Show what would be deleted, but do nothing",
)

YesOpt = typer.Option(False, "--yes", help="Skip confirmation prompt")
