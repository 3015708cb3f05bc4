import asyncio
import sys

import click

from lunash import __version__
from lunash.lunash_config import load_settings
from lunash.lunash_errors import LunashError
from lunash.lunash_logging import configure_logging, get_logger
from lunash.lunash_resolver import resolve_script
from lunash.lunash_runtime import RuntimeHost

log = get_logger(__name__)


def _fail(ctx: click.Context, message: str):
    click.echo(f"Error: {message}", err=True)
    ctx.exit(1)


@click.group()
@click.version_option(__version__, prog_name="lunash")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging (DEBUG level).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """lunash - run Lua scripts with host capabilities."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command(
    "run",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.argument("name")
@click.argument("script_args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx: click.Context, name: str, script_args: tuple):
    """Run the script NAME.lunash.lua.

    Looked up in the current directory, then the user scripts directory, then
    each directory of LUA_SCRIPT_PATH. SCRIPT_ARGS reach the script through
    the global `arg` table along with the rest of the command line.
    """
    verbose = (ctx.obj or {}).get("verbose", False)
    try:
        settings = load_settings()
        configure_logging("DEBUG" if verbose else settings.log_level)
        script = resolve_script(name, settings=settings)
    except LunashError as e:
        _fail(ctx, f"{e.kind}: {e}")

    log.info("running %s", script.path)
    result = asyncio.run(RuntimeHost(settings).run(script, sys.argv))
    if result.status == 'error':
        _fail(ctx, result.format_error())


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
