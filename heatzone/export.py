"""Writers for time series and composite rasters."""
import json
import logging
from pathlib import Path

import numpy as np
import pandas as pd
import rasterio

from heatzone.config import config

logger = logging.getLogger(__name__)


def series_frame(series_list):
    """
    Long-format DataFrame of several time series.

    Columns: region, statistic, bands, scale, timestamp, scene_id, value.
    No-data entries are kept with a missing value.
    """
    records = []
    for series in series_list:
        records.extend(series.to_records())
    columns = ["region", "statistic", "bands", "scale", "timestamp", "scene_id", "value"]
    df = pd.DataFrame.from_records(records, columns=columns)
    if not df.empty:
        df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    return df


def write_series_csv(series_list, output_path):
    """Write time series to a CSV file and return its path."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    series_frame(series_list).to_csv(output_path, index=False)
    logger.info("Saved series to %s", output_path)
    return output_path


def write_json(payload, output_path):
    """Write a JSON document (e.g. ``AnalysisResult.to_dict()``)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(payload, f, indent=2)
    logger.info("Saved %s", output_path)
    return output_path


def write_composite_geotiff(composite, output_path, nodata=None):
    """
    Write a composite raster as a single-band float32 GeoTIFF.

    NaN pixels are written as the export no-data value.
    """
    nodata = config.export_nodata if nodata is None else nodata
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    height, width = composite.shape
    profile = {
        "driver": "GTiff",
        "height": height,
        "width": width,
        "count": 1,
        "dtype": "float32",
        "crs": composite.crs,
        "transform": composite.transform,
        "nodata": nodata,
        "compress": "lzw",
    }
    data = np.where(np.isfinite(composite.data), composite.data, nodata).astype("float32")

    with rasterio.open(output_path, "w", **profile) as dst:
        dst.write(data, 1)
        dst.update_tags(band=composite.band, region=composite.region or "", scenes=composite.scene_count)

    logger.info("Saved composite %s to %s", composite.band, output_path)
    return output_path
