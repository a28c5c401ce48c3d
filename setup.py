# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

import os
import re

from setuptools import find_packages, setup


def read_version():
    here = os.path.abspath(os.path.dirname(__file__))
    with open(os.path.join(here, "mxbind", "__init__.py"), encoding="utf-8") as f:
        match = re.search(r'^__version__ = "([^"]+)"', f.read(), re.M)
    if match is None:
        raise RuntimeError("Unable to find __version__ in mxbind/__init__.py")
    return match.group(1)


setup(
    name="mxbind",
    version=read_version(),
    description="Python bindings for the MXNet symbolic-graph C API",
    author="Wahyu Ardiansyah",
    license="Apache-2.0",
    packages=find_packages(include=["mxbind", "mxbind.*"]),
    python_requires=">=3.10",
    install_requires=["numpy>=1.21"],
    extras_require={"dev": ["pytest>=7.0"]},
)
