"""Commands for managing TM containers."""

from __future__ import annotations

import typer

from tmops.cli.common.context import TMAppContext, build_tm_context
from tmops.cli.common.exits import die, exit_from_exc, ok_exit, warn_exit
from tmops.cli.common.options import (
    DryRunOpt,
    PathOpt,
    ProfileOpt,
    PropertyOpt,
    PurgeOpt,
    ServerNameOpt,
    UseOrOpt,
    YesOpt,
)
from tmops.cli.common.output import out
from tmops.core.containers import ContainerManager
from tmops.core.errors import TMOpsError
from tmops.core.selectors import build_server_selector
from tmops.core.tm import full_container_path

containers_app = typer.Typer(
    help="TM container operations.",
    no_args_is_help=False,
    invoke_without_command=True,
)


@containers_app.callback()
def _init(ctx: typer.Context, profile: str | None = ProfileOpt):
    """Initialize TM server context."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)
    ctx.obj = build_tm_context(profile)


@containers_app.command("list")
def containers_list(
    ctx: typer.Context,
    server: str = typer.Option(..., "--server", help="Database server name"),
):
    """List containers hosted on a database server."""
    appctx: TMAppContext = ctx.obj

    try:
        with out.status("Loading containers..."):
            containers = appctx.manager.list_containers(appctx.session, server)
    except TMOpsError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    if not containers:
        warn_exit("No containers found.", code=0)

    out.header("Containers")
    out.info(f"Server: {server} | Containers: {len(containers)}")
    out.containers_table(containers)


@containers_app.command("create")
def containers_create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Friendly container name"),
    path: str = PathOpt,
    server_name: str | None = ServerNameOpt,
    prop: list[str] = PropertyOpt,
    use_or: bool = UseOrOpt,
):
    """
    Create a container with duplicate check and post-create verification.

    The physical database is named `<NAME>DB`.
    """
    appctx: TMAppContext = ctx.obj

    try:
        selector = build_server_selector(name=server_name, properties=prop, use_or=use_or)
    except ValueError as e:
        die(str(e), code=2)

    manager = ContainerManager(server_selector=selector)
    try:
        with out.status("Creating container..."):
            descriptor = manager.create_advanced(appctx.session, path, name)
    except TMOpsError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.success(f"Container created: {descriptor.full_path}")
    out.containers_table([descriptor], title="Created container")


@containers_app.command("create-simple")
def containers_create_simple(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Friendly container name"),
    server: str = typer.Option(..., "--server", help="Database server name"),
    database: str = typer.Option(..., "--database", help="Physical database name"),
    path: str = PathOpt,
):
    """Create a container on a named database server without extra checks."""
    appctx: TMAppContext = ctx.obj

    try:
        with out.status("Creating container..."):
            descriptor = appctx.manager.create_simple(
                appctx.session,
                server,
                database,
                name,
                organization_path=path,
            )
    except ValueError as exc:
        die(str(exc), code=2)
    except TMOpsError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.success(f"Container created: {descriptor.full_path}")
    out.containers_table([descriptor], title="Created container")


@containers_app.command("exists")
def containers_exists(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Friendly container name"),
    path: str = PathOpt,
):
    """Check whether a container exists (exit code 1 if it does not)."""
    appctx: TMAppContext = ctx.obj
    full_path = full_container_path(path, name)

    try:
        with out.status("Resolving container..."):
            found = appctx.manager.exists(appctx.session, path, name)
    except TMOpsError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    if not found:
        warn_exit(f"Container '{full_path}' does not exist.", code=1)
    ok_exit(f"Container '{full_path}' exists.")


@containers_app.command("delete")
def containers_delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Friendly container name"),
    path: str = PathOpt,
    purge: bool = PurgeOpt,
    dry_run: bool = DryRunOpt,
    yes: bool = YesOpt,
):
    """
    Delete a container.

    By default the container is only unregistered and its physical database is
    kept, so it can be registered again. `--purge` drops the database too.
    """
    appctx: TMAppContext = ctx.obj

    try:
        with out.status("Building deletion plan..."):
            plan = appctx.manager.plan_delete(appctx.session, path, name, purge)
    except TMOpsError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.header("Deletion plan")
    out.kv(
        {
            "Container": plan.full_path,
            "Database": plan.database_name,
            "Server": plan.server,
            "Physical data": "PURGE (irreversible)" if purge else "keep",
        }
    )

    if dry_run:
        out.delete_results_table([plan], title="Delete (dry-run)")
        warn_exit("DRY RUN: no changes will be made.", code=0)

    if purge and not yes:
        if not out.confirm(
            f"Permanently drop database '{plan.database_name}'? This cannot be undone."
        ):
            ok_exit("Cancelled.")

    try:
        with out.status("Deleting container..."):
            result = appctx.manager.delete(appctx.session, path, name, purge)
    except TMOpsError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.delete_results_table([result])
    out.success(f"Container deleted: {result.full_path}")
