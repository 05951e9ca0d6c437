"""Initialize configuration file for corpus-query."""

from __future__ import annotations

from importlib import resources
from pathlib import Path

import click

from corpus_query.cli import Context, pass_context
from corpus_query.config import get_default_config_path
from corpus_query.utils.output import error, info, success


def _load_example_config() -> str:
    """Load the example configuration from package data."""
    return resources.files("corpus_query").joinpath("config.example.toml").read_text()


@click.command("init-config")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    default=False,
    help="Overwrite existing config file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output path for config file (default: ~/.config/corpus-query/config.toml)",
)
@pass_context
def cli(ctx: Context, force: bool, output: Path | None) -> None:
    """Create a new configuration file with default settings.

    Creates a configuration file at the default location
    (~/.config/corpus-query/config.toml) or at a custom path
    specified with --output.

    The generated file declares an example corpus (annotations and
    metadata fields); replace them with the ones of your corpus.

    Examples:

    \b
      # Create config at default location
      corpus-query init-config

    \b
      # Overwrite existing config
      corpus-query init-config --force
    """
    config_path = output if output is not None else get_default_config_path()
    config_path = config_path.expanduser().resolve()

    if config_path.exists() and not force:
        error(
            f"Config file already exists: {config_path}",
            hint="Use --force to overwrite",
        )
        raise SystemExit(1)

    config_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        config_path.write_text(_load_example_config())
    except OSError as e:
        error(f"Failed to write config file: {e}")
        raise SystemExit(1) from e

    success(f"Created config file: {config_path}")
    info("Edit this file to describe your corpus and backend.")
