"""heatzone - LST and NDVI zonal time-series analysis for multispectral scene archives."""

__version__ = "1.0.0"

try:
    from heatzone.config import config
    __all__ = ["config", "__version__"]
except ImportError:
    # Config might not be available during installation
    __all__ = ["__version__"]
