"""Scene search and composite commands."""
from pathlib import Path

import click
from rich.table import Table
from shapely.geometry import shape

from heatzone.cli.common import (
    console,
    fail,
    get_archive_client,
    get_config,
    load_study_area,
)
from heatzone.errors import HeatzoneError
from heatzone.export import write_composite_geotiff
from heatzone.pipeline import StudyPipeline
from heatzone.processing.composite import build_composites
from heatzone.utils.dates import parse_date
from heatzone.utils.geometry import calculate_coverage


@click.command(name="search")
@click.option("--geojson", required=True, type=click.Path(exists=True), help="Study area GeoJSON")
@click.option("--start-date", default=None, help="Start date (YYYY-MM-DD, inclusive)")
@click.option("--end-date", default=None, help="End date (YYYY-MM-DD, exclusive)")
@click.option("--max-cloud", type=float, default=None, help="Cloud cover threshold (%)")
@click.option("--archive-url", default=None, help="STAC API root (default: from config)")
@click.pass_context
def search(ctx, geojson, start_date, end_date, max_cloud, archive_url):
    """List archive scenes over a study area and whether they pass the cloud filter."""
    cfg = get_config(ctx)
    max_cloud = cfg.max_cloud_cover if max_cloud is None else max_cloud

    try:
        study_area = load_study_area(geojson)
        client = get_archive_client(cfg, archive_url)
        start = parse_date(start_date) if start_date else cfg.start_date
        end = parse_date(end_date) if end_date else cfg.end_date
        console.print(f"[bold]Study area:[/bold] {study_area.name}")
        console.print(f"[bold]Date Range:[/bold] {start.date()} to {end.date()}")
        items = client.search(study_area, start, end)
    except HeatzoneError as e:
        fail(e)

    if not items:
        console.print("[yellow]No scenes found.[/yellow]")
        return

    table = Table(title=f"Scenes ({cfg.archive_source})")
    table.add_column("Date")
    table.add_column("Scene ID")
    table.add_column("Cloud %", justify="right")
    table.add_column("Coverage %", justify="right")
    table.add_column("Selected")

    area_wgs84 = study_area.to_crs("EPSG:4326").geometry
    selected = 0
    for item in items:
        props = item["properties"]
        cloud = props.get("eo:cloud_cover")
        coverage = calculate_coverage(shape(item["geometry"]), area_wgs84) if item.get("geometry") else None
        ok = cloud is not None and cloud < max_cloud
        selected += ok
        table.add_row(
            props["datetime"][:10],
            item["id"],
            "-" if cloud is None else f"{cloud:.1f}",
            "-" if coverage is None else f"{coverage:.1f}",
            "[green]yes[/green]" if ok else "[dim]no[/dim]",
        )

    console.print(table)
    console.print(f"[green]{selected} of {len(items)} scenes below {max_cloud}% cloud cover[/green]")


@click.command(name="composite")
@click.option("--geojson", required=True, type=click.Path(exists=True), help="Study area GeoJSON")
@click.option("--output", default="./composites", help="Directory for GeoTIFF output")
@click.option("--band", "bands", multiple=True, help="Band to composite (repeatable; default from config)")
@click.option("--true-color", is_flag=True, help="Also composite the true-colour bands")
@click.option("--archive-url", default=None, help="STAC API root (default: from config)")
@click.pass_context
def composite(ctx, geojson, output, bands, true_color, archive_url):
    """Build median composites over the study period and write GeoTIFFs."""
    cfg = get_config(ctx)
    bands = list(bands) or cfg.composite_bands
    if true_color:
        bands += [b for b in cfg.true_color_bands if b not in bands]

    try:
        study_area = load_study_area(geojson)
        pipeline = StudyPipeline(archive=get_archive_client(cfg, archive_url), cfg=cfg)
        with console.status("Loading scenes..."):
            raw = pipeline.fetch(study_area)
        derived = pipeline.prepare(raw, study_area)
        composites = build_composites(derived, study_area, bands)
    except HeatzoneError as e:
        fail(e)

    console.print(f"[bold]Scenes used:[/bold] {len(derived)}")
    if not composites:
        console.print("[yellow]No scenes matched; nothing to composite.[/yellow]")
        return

    output_dir = Path(output)
    for band, raster in composites.items():
        if raster.data.size == 0:
            console.print(f"[yellow]{band}: study area outside scene coverage, skipped[/yellow]")
            continue
        path = write_composite_geotiff(
            raster, output_dir / f"{study_area.name}_{band}_median.tif", nodata=cfg.export_nodata
        )
        stats = raster.stats()
        if not stats["valid_pixels"]:
            console.print(f"[yellow]{band}[/yellow] -> {path} [dim](no valid pixels)[/dim]")
            continue
        console.print(
            f"[green]{band}[/green] -> {path} "
            f"[dim](min {stats['min']:.2f}, max {stats['max']:.2f}, mean {stats['mean']:.2f})[/dim]"
        )
