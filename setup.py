"""Setup script for rack_reader package."""

from setuptools import setup, find_packages

setup(
    name="rack_reader",
    version="1.0.0",
    description="DataMatrix rack scanner with adaptive tiling and grid inference",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pillow>=9.1.0",
        "pylibdmtx>=0.1.10",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov",
            "numpy>=1.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "rack-reader=rack_reader.pipeline.scan_pipeline:main",
        ],
    },
)
