"""Commands for inspecting database servers registered with the TM server."""

import typer

from tmops.cli.common.context import TMAppContext, build_tm_context
from tmops.cli.common.exits import exit_from_exc, warn_exit
from tmops.cli.common.options import ProfileOpt
from tmops.cli.common.output import out
from tmops.core.errors import TMOpsError

servers_app = typer.Typer(
    help="Database server operations.",
    no_args_is_help=False,
    invoke_without_command=True,
)


@servers_app.callback()
def _init(ctx: typer.Context, profile: str | None = ProfileOpt):
    """Initialize TM server context."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)
    ctx.obj = build_tm_context(profile)


@servers_app.command("list")
def servers_list(ctx: typer.Context):
    """List database servers registered with the TM server."""
    appctx: TMAppContext = ctx.obj

    try:
        with out.status("Loading database servers..."):
            servers = appctx.manager.list_servers(appctx.session)
    except TMOpsError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    if not servers:
        warn_exit("No database servers registered.", code=0)

    out.header("Database servers")
    out.info(f"Servers: {len(servers)}")
    out.servers_table(servers)


@servers_app.command("show")
def servers_show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Friendly name of the database server"),
):
    """Show one database server and the containers it hosts."""
    appctx: TMAppContext = ctx.obj

    try:
        with out.status("Loading database server..."):
            containers = appctx.manager.list_containers(appctx.session, name)
    except TMOpsError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.header(f"Database server {name}")
    if not containers:
        warn_exit("No containers hosted on this server.", code=0)
    out.containers_table(containers, title=f"Containers on {name}")
