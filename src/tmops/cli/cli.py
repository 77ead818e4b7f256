"""CLI application for TM server container operations."""

import typer

from tmops.cli.commands.containers import containers_app
from tmops.cli.commands.servers import servers_app

app = typer.Typer(
    help="tmops - TM server container management",
    no_args_is_help=True,
)

app.add_typer(servers_app, name="servers", help="Inspect registered database servers.")
app.add_typer(
    containers_app, name="containers", help="Create / check / delete TM containers."
)


if __name__ == "__main__":
    app()
