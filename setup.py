"""
apisurface setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="apisurface",
    version="1.0.0",
    description="apisurface — declared Dropbox API surface with codec, validator and generators",
    packages=find_packages(include=["apisurface", "apisurface.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "apisurface=apisurface.cli:main",
        ],
    },
    install_requires=[
        "pydantic>=2.5",
        "networkx>=3.2",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
)
