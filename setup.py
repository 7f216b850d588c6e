"""
Setup script for tiny-probe.
"""

from setuptools import setup, find_packages

setup(
    name="tiny-probe",
    version="0.1.0",
    description="Bloom filters and reservoir sampling for streams",
    packages=find_packages(include=["tiny_probe", "tiny_probe.*"]),
    package_data={"tiny_probe": ["py.typed"]},
    python_requires=">=3.8",
)
