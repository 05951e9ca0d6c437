"""Command-line interface for corpus-query."""

from __future__ import annotations

import os
from pathlib import Path

import click

from corpus_query import __version__
from corpus_query.config import Config, load_config
from corpus_query.exceptions import ConfigError
from corpus_query.utils.output import (
    error,
    set_color,
    set_verbosity,
    warning,
)


class Context:
    """Shared context for all commands."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: bool = False
        self.debug: bool = False
        self.quiet: bool = False

    def require_config(self) -> Config:
        if self.config is None:
            self.config = Config()
        return self.config


pass_context = click.make_pass_decorator(Context, ensure=True)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False, path_type=Path),
    help="Path to config file (default: ~/.config/corpus-query/config.toml)",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable colored output",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug output (implies --verbose)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Suppress non-error output",
)
@click.version_option(version=__version__, prog_name="corpus-query")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Path | None,
    no_color: bool,
    verbose: bool,
    debug: bool,
    quiet: bool,
) -> None:
    """corpus-query: Build, classify and share corpus searches.

    Translates token patterns (CQL) and metadata filters between the
    search views of a corpus search front-end, encodes complete searches
    into shareable URLs and follows running hit totals on a BlackLab
    Server.

    Configuration is loaded from ~/.config/corpus-query/config.toml by default.
    Use --config to specify an alternative configuration file.

    Examples:

        # Which view shows this pattern?
        corpus-query classify '[lemma="cat"][lemma="dog"]'

        # Show help for a specific command
        corpus-query decode-url --help
    """
    ctx.ensure_object(Context)
    app_ctx = ctx.obj
    app_ctx.verbose = verbose or debug
    app_ctx.debug = debug
    app_ctx.quiet = quiet

    set_verbosity(verbose=verbose, debug=debug)

    # Configure color output: disabled by --no-color, NO_COLOR env, or config
    disable_color = no_color or os.environ.get("NO_COLOR") is not None
    if disable_color:
        set_color(False)

    try:
        loaded_config, warnings = load_config(config)
    except ConfigError as e:
        error(str(e))
        ctx.exit(1)
        return

    app_ctx.config = loaded_config
    if not disable_color and not loaded_config.colored_output:
        set_color(False)

    if not quiet:
        for warn in warnings:
            warning(warn)


@cli.command("help")
@click.argument("command", required=False, nargs=-1)
@click.pass_context
def help_cmd(ctx: click.Context, command: tuple[str, ...]) -> None:
    """Show help for a command."""
    group = cli
    for name in command:
        cmd = group.get_command(ctx, name)
        if cmd is None:
            error(f"Unknown command: {name}")
            ctx.exit(1)
            return
        if isinstance(cmd, click.Group):
            group = cmd
        else:
            click.echo(cmd.get_help(ctx))
            return
    click.echo(group.get_help(ctx))


def register_commands() -> None:
    """Register all commands from the commands package."""
    from corpus_query.commands import discover_commands

    for command in discover_commands():
        cli.add_command(command)


# Register commands on import
register_commands()
