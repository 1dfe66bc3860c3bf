"""Region file inspection command."""
import click
from rich.table import Table

from heatzone.cli.common import console, fail, get_config, load_regions
from heatzone.errors import HeatzoneError
from heatzone.utils.geometry import area_sqkm


@click.command(name="regions")
@click.option("--regions", "regions_path", required=True, type=click.Path(exists=True),
              help="GeoJSON of land-cover zones")
@click.option("--name-field", default="name", help="Zone name attribute in the regions file")
@click.pass_context
def list_regions(ctx, regions_path, name_field):
    """List zones in a regions file and check them against the configured zone names."""
    cfg = get_config(ctx)
    try:
        registry = load_regions(regions_path, name_field)
    except HeatzoneError as e:
        fail(e)

    table = Table(title="Regions")
    table.add_column("Zone")
    table.add_column("Area (sq km)", justify="right")
    table.add_column("Configured")

    for region in registry:
        table.add_row(
            region.name,
            f"{area_sqkm(region.geometry, region.crs):.2f}",
            "[green]yes[/green]" if region.name in cfg.region_names else "[dim]no[/dim]",
        )
    console.print(table)

    missing = [name for name in cfg.region_names if name not in registry]
    if missing:
        console.print(f"[yellow]Configured zones missing from file: {', '.join(missing)}[/yellow]")
