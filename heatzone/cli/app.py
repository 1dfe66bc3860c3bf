"""Main CLI application entry point."""
import logging

import click
from rich.logging import RichHandler

from heatzone import __version__
from heatzone.config import Config, config


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(exists=True), default=None,
              help="Path to a config.yaml (default: bundled config)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """heatzone - LST and NDVI zonal time-series analysis."""
    ctx.ensure_object(dict)
    cfg = Config(config_path) if config_path else config
    ctx.obj["config"] = cfg

    logging.basicConfig(
        level=logging.DEBUG if verbose else cfg.log_level,
        format=cfg.log_format,
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=verbose, show_path=False)],
    )


# Import command modules
from heatzone.cli import analyze, regions, scenes

# Register commands
cli.add_command(scenes.search)
cli.add_command(scenes.composite)
cli.add_command(analyze.analyze)
cli.add_command(regions.list_regions)


if __name__ == "__main__":
    cli()
