"""Full LST/NDVI study command."""
from pathlib import Path

import click

from heatzone.cli.common import (
    console,
    fail,
    get_archive_client,
    get_config,
    load_regions,
    load_study_area,
    print_series_table,
)
from heatzone.errors import HeatzoneError
from heatzone.export import write_composite_geotiff, write_json, write_series_csv
from heatzone.pipeline import StudyPipeline


@click.command(name="analyze")
@click.option("--geojson", required=True, type=click.Path(exists=True), help="Study area GeoJSON")
@click.option("--regions", "regions_path", required=True, type=click.Path(exists=True),
              help="GeoJSON of land-cover zones")
@click.option("--name-field", default="name", help="Zone name attribute in the regions file")
@click.option("--region", "region_names", multiple=True,
              help="Zone to analyze (repeatable; default: zones listed in config)")
@click.option("--output", default="./results", help="Directory for CSV/JSON/GeoTIFF output")
@click.option("--no-composites", is_flag=True, help="Skip writing composite GeoTIFFs")
@click.option("--archive-url", default=None, help="STAC API root (default: from config)")
@click.pass_context
def analyze(ctx, geojson, regions_path, name_field, region_names, output, no_composites, archive_url):
    """Mean LST/NDVI and their spatial correlation per date, for every zone."""
    cfg = get_config(ctx)

    try:
        study_area = load_study_area(geojson)
        registry = load_regions(regions_path, name_field)
        wanted = list(region_names) or [n for n in cfg.region_names if n in registry]
        regions = registry.select(wanted) if wanted else registry

        console.print(f"[bold]Study area:[/bold] {study_area.name}")
        console.print(f"[bold]Zones:[/bold] {', '.join(r.name for r in regions) or 'none'}")
        console.print(f"[bold]Date Range:[/bold] {cfg.start_date.date()} to {cfg.end_date.date()}")

        pipeline = StudyPipeline(archive=get_archive_client(cfg, archive_url), cfg=cfg)
        with console.status("Running analysis..."):
            result = pipeline.run(study_area, regions)
    except HeatzoneError as e:
        fail(e)

    console.print(f"[bold]Scenes analyzed:[/bold] {result.scene_count}")
    if result.scene_count == 0:
        console.print("[yellow]No scenes matched the filter; series are empty.[/yellow]")

    for name, analysis in result.regions.items():
        print_series_table(
            f"{name}: mean at {cfg.mean_scale:g} / correlation at {cfg.correlation_scale:g}",
            list(analysis.means.values()) + [analysis.correlation],
        )

    output_dir = Path(output)
    csv_path = write_series_csv(list(result.series()), output_dir / f"{study_area.name}_series.csv")
    json_path = write_json(result.to_dict(), output_dir / f"{study_area.name}_analysis.json")
    console.print(f"[green]Series saved:[/green] {csv_path}")
    console.print(f"[green]Summary saved:[/green] {json_path}")

    if not no_composites:
        for band, raster in result.composites.items():
            if raster.data.size == 0:
                continue
            path = write_composite_geotiff(
                raster, output_dir / f"{study_area.name}_{band}_median.tif", nodata=cfg.export_nodata
            )
            console.print(f"[green]Composite saved:[/green] {path}")
