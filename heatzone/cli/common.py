"""Shared utilities for CLI commands."""
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from heatzone.api.archive import StacArchiveClient
from heatzone.models.region import Region, RegionRegistry
from heatzone.utils.geometry import load_geojson, normalize_region_name

# Global console for consistent output
console = Console()


def get_config(ctx):
    """Config selected by the top-level --config option."""
    return ctx.obj["config"]


def get_archive_client(cfg, base_url=None):
    """Get initialized archive client."""
    bands = [cfg.band_map["nir"], cfg.band_map["red"], cfg.band_map["thermal"]]
    bands += [b for b in cfg.true_color_bands if b not in bands]
    return StacArchiveClient(base_url=base_url, bands=bands, cfg=cfg)


def load_study_area(geojson_path):
    """Union of every feature in a GeoJSON as one Region named after the file."""
    gdf = load_geojson(geojson_path)
    name = normalize_region_name(Path(geojson_path).stem)
    return Region(name, gdf.geometry.union_all(), gdf.crs.to_string())


def load_regions(geojson_path, name_field, names=None):
    """Region registry from a GeoJSON, optionally restricted to ``names``."""
    registry = RegionRegistry.from_geojson(geojson_path, name_field=name_field)
    if names:
        registry = registry.select([normalize_region_name(n) for n in names])
    return registry


def fail(error):
    """Print a library error and abort the command."""
    console.print(f"[red]Error: {error}[/red]")
    raise click.Abort()


def print_series_table(title, series_list, limit=10):
    """Print the first entries of several aligned time series side by side."""
    table = Table(title=title)
    table.add_column("Date")
    for series in series_list:
        table.add_column(series.name, justify="right")

    if series_list:
        rows = list(zip(*[s.entries for s in series_list]))
        for row in rows[:limit]:
            cells = [row[0].timestamp.strftime("%Y-%m-%d")]
            cells += ["-" if e.value is None else f"{e.value:.3f}" for e in row]
            table.add_row(*cells)
        if len(rows) > limit:
            table.caption = f"... and {len(rows) - limit} more dates"

    console.print(table)
