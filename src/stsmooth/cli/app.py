"""
stsmooth Command Line Interface.

Main entry point for the stsmooth CLI application.
"""

import sys
from pathlib import Path
from typing import Optional

import click

from stsmooth import __version__
from stsmooth.cli.utils import setup_logging, load_config
from stsmooth.cli.commands import run as run_command
from stsmooth.cli.commands import select as select_command

# Create main CLI group
@click.group()
@click.version_option(version=__version__, prog_name="stsmooth")
@click.option(
    "-v", "--verbose",
    count=True,
    help="Increase verbosity (use -vv for debug output)"
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    help="Suppress non-error output"
)
@click.pass_context
def cli(ctx: click.Context, verbose: int, quiet: bool) -> None:
    """
    stsmooth: Kernel smoothing of spatio-temporal point data.

    Estimates a continuous spatial field for every time step from sparse
    point observations, with a Gaussian kernel whose bandwidth is chosen
    by leave-one-out cross-validation.

    \b
    Commands:
      run       Smooth an observation table onto a grid
      select    Select the bandwidth only
      config    Manage configuration
      info      Show system and package information

    Use 'stsmooth COMMAND --help' for command-specific help.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)

    # Store global options
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    # Setup logging based on verbosity
    if quiet:
        setup_logging("ERROR")
    else:
        log_level = "DEBUG" if verbose > 1 else "INFO" if verbose else "WARNING"
        setup_logging(log_level)


@cli.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Show system and package information."""
    import platform

    click.echo("\nstsmooth System Information")
    click.echo("=" * 40)

    # Package info
    click.echo(f"stsmooth Version: {__version__}")
    click.echo(f"Python Version: {platform.python_version()}")
    click.echo(f"Platform: {platform.system()} {platform.release()}")

    click.echo("\nDependencies:")

    deps = [
        ("numpy", "NumPy"),
        ("scipy", "SciPy"),
        ("pandas", "pandas"),
        ("pydantic", "Pydantic"),
        ("click", "Click"),
        ("tqdm", "tqdm"),
        ("yaml", "PyYAML"),
        ("pyarrow", "PyArrow (parquet)"),
    ]

    for module, name in deps:
        try:
            m = __import__(module)
            version = getattr(m, "__version__", "installed")
            click.echo(f"  {name}: {version}")
        except ImportError:
            click.echo(f"  {name}: not installed")


@cli.command()
@click.option(
    "--format",
    type=click.Choice(["yaml", "json", "toml"]),
    default="yaml",
    help="Configuration format"
)
@click.option(
    "-o", "--output",
    type=click.Path(),
    default=None,
    help="Output file path"
)
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite an existing file"
)
@click.pass_context
def init(ctx: click.Context, format: str, output: Optional[str], force: bool) -> None:
    """Initialize a new configuration file."""
    from stsmooth.config import Config

    # Create default config
    config = Config()

    # Determine output path
    if output is None:
        output = f"stsmooth.{format}"

    output_path = Path(output)
    if output_path.exists() and not force:
        raise click.ClickException(f"File already exists: {output_path} (use --force)")

    # Export config
    if format == "yaml":
        config.to_yaml(output_path)
    elif format == "json":
        output_path.write_text(config.model_dump_json(indent=2))
    elif format == "toml":
        config.to_toml(output_path)

    click.echo(f"Created configuration file: {output_path}")


@cli.group()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Manage configuration settings."""
    pass


@config.command("show")
@click.option(
    "-c", "--config-file",
    type=click.Path(exists=True),
    default=None,
    help="Configuration file path"
)
@click.pass_context
def config_show(ctx: click.Context, config_file: Optional[str]) -> None:
    """Show current configuration."""
    config = load_config(config_file)

    click.echo("\nCurrent Configuration:")
    click.echo("=" * 40)

    # Show as YAML-like format
    def show_dict(d, indent=0):
        for key, value in d.items():
            prefix = "  " * indent
            if isinstance(value, dict):
                click.echo(f"{prefix}{key}:")
                show_dict(value, indent + 1)
            else:
                click.echo(f"{prefix}{key}: {value}")

    show_dict(config.model_dump(mode="json"))


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True))
@click.pass_context
def config_validate(ctx: click.Context, config_file: str) -> None:
    """Validate a configuration file."""
    load_config(config_file)
    click.echo(f"Configuration is valid: {config_file}")


# Add commands from commands module
cli.add_command(run_command)
cli.add_command(select_command)


def main() -> int:
    """Main entry point for CLI."""
    return cli(obj={})


if __name__ == "__main__":
    sys.exit(main())
