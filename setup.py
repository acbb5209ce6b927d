# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

import os
import re

from setuptools import find_packages, setup


def read_version():
    path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "nnspect", "__init__.py")
    with open(path, encoding="utf-8") as f:
        match = re.search(r'^__version__ = "([^"]+)"', f.read(), re.MULTILINE)
    if match is None:
        raise RuntimeError("Unable to find __version__ in nnspect/__init__.py")
    return match.group(1)


setup(
    name="nnspect",
    version=read_version(),
    description="Compute and inspect every tensor of a convolutional image model",
    author="Wahyu Ardiansyah",
    license="Apache-2.0",
    python_requires=">=3.9",
    packages=find_packages(include=["nnspect", "nnspect.*"]),
    install_requires=[
        "numpy>=1.21",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "hypothesis>=6.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "nnspect=nnspect.cli:main",
        ],
    },
)
