import dataclasses
import sys
from pathlib import Path
from typing import Any

import click
import yaml
from click import Context

from informix_gateway.config.logging import configure_logging
from informix_gateway.config.settings import load_settings
from informix_gateway.service import catalog
from informix_gateway.service.facade import ServiceFacade
from informix_gateway.service.factory import create_service
from informix_gateway.service.statement_guard import ensure_read_statement, ensure_write_statement


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-q", "--quiet", is_flag=True, help="Disable all console logging")
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML settings file. Without it, settings are read from INFORMIX_* environment variables.",
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Also write logs to a monthly file in this directory.",
)
@click.pass_context
def igw(ctx: Context, verbose: bool, quiet: bool, config_file: Path | None, log_dir: Path | None) -> None:
    if verbose and quiet:
        click.echo("Arguments --quiet and --verbose can not be used together", file=sys.stderr)
        exit(1)

    configure_logging(verbose=verbose, quiet=quiet, log_dir=log_dir)

    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file


def _service(ctx: Context) -> ServiceFacade:
    if "service" not in ctx.obj:
        ctx.obj["service"] = create_service(load_settings(ctx.obj.get("config_file")))
        ctx.call_on_close(ctx.obj["service"].shutdown)
    return ctx.obj["service"]


def _echo_yaml(content: Any) -> None:
    if dataclasses.is_dataclass(content):
        content = dataclasses.asdict(content)
    click.echo(yaml.safe_dump(content, sort_keys=False, allow_unicode=True), nl=False)


@igw.command()
@click.argument("sql", type=click.STRING)
@click.option("--no-cache", is_flag=True, help="Bypass the query cache")
@click.pass_context
def query(ctx: Context, sql: str, no_cache: bool) -> None:
    """Run a SELECT statement and print the rows."""
    ensure_read_statement(sql)
    result = _service(ctx).query(sql, use_cache=not no_cache)
    _echo_yaml({"row_count": len(result.data), "from_cache": result.from_cache, "data": result.data})


@igw.command(name="query-one")
@click.argument("sql", type=click.STRING)
@click.pass_context
def query_one(ctx: Context, sql: str) -> None:
    """Run a SELECT statement and print its first row."""
    ensure_read_statement(sql)
    _echo_yaml(_service(ctx).query_one(sql))


@igw.command()
@click.argument("sql", type=click.STRING)
@click.pass_context
def execute(ctx: Context, sql: str) -> None:
    """Run an INSERT, UPDATE or DELETE statement."""
    decision = ensure_write_statement(sql)
    outcome = _service(ctx).execute(sql)
    _echo_yaml({"operation": decision.verb, **dataclasses.asdict(outcome)})


@igw.command()
@click.pass_context
def health(ctx: Context) -> None:
    """Check that the database can be reached through the bridge."""
    report = _service(ctx).health_check()
    _echo_yaml(report)
    if not report.healthy:
        ctx.exit(1)


@igw.command()
@click.pass_context
def stats(ctx: Context) -> None:
    """Display the service configuration and cache size."""
    _echo_yaml(_service(ctx).stats())


@igw.command()
@click.pass_context
def tables(ctx: Context) -> None:
    """List the user tables of the database."""
    table_names = catalog.list_tables(_service(ctx))
    _echo_yaml({"count": len(table_names), "tables": table_names})


@igw.command()
@click.argument("table", type=click.STRING)
@click.pass_context
def columns(ctx: Context, table: str) -> None:
    """List the columns of TABLE."""
    _echo_yaml({"table": table, "columns": catalog.table_columns(_service(ctx), table)})


@igw.command()
@click.argument("table", type=click.STRING)
@click.option("-l", "--limit", type=click.INT, default=catalog.DEFAULT_PAGE_SIZE, show_default=True)
@click.option("-o", "--offset", type=click.INT, default=0, show_default=True)
@click.pass_context
def rows(ctx: Context, table: str, limit: int, offset: int) -> None:
    """Print a page of rows from TABLE."""
    result = catalog.table_rows(_service(ctx), table, limit=limit, offset=offset)
    _echo_yaml(
        {
            "table": table,
            "limit": limit,
            "offset": offset,
            "row_count": len(result.data),
            "from_cache": result.from_cache,
            "data": result.data,
        }
    )
