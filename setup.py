from setuptools import setup, find_packages

setup(
    name="heatzone",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    package_data={"heatzone": ["config.yaml"]},
    install_requires=[
        "click>=8.0",
        "requests>=2.25",
        "geopandas>=1.0",
        "python-dotenv>=1.0",
        "rich>=13.0",
        "shapely>=2.0",
        "python-dateutil>=2.8",
        "tenacity>=8.2.0",
        "pyyaml>=6.0",
        "numpy>=1.24",
        "pandas>=1.5",
        "rasterio>=1.3",
        "affine>=2.3,<3",
        "pyproj>=3.4",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "heatzone=heatzone.cli.app:cli",
        ],
    },
    python_requires=">=3.9",
)
