# Copyright Contributors to the Vigrad project.
# SPDX-License-Identifier: Apache-2.0

import os
import sys

from setuptools import find_packages, setup

PROJECT_PATH = os.path.dirname(os.path.abspath(__file__))

# Find vigrad version.
for line in open(os.path.join(PROJECT_PATH, "vigrad", "__init__.py")):
    if line.startswith("version_prefix = "):
        version = line.strip().split()[2][1:-1]

# READ README.md for long description on PyPi.
try:
    long_description = open("README.md", encoding="utf-8").read()
except Exception as e:
    sys.stderr.write("Failed to read README.md: {}\n".format(e))
    sys.stderr.flush()
    long_description = ""

setup(
    name="vigrad",
    version=version,
    description="Hybrid likelihood-ratio / path-wise ELBO gradient estimation for probabilistic programs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["vigrad", "vigrad.*"]),
    install_requires=[
        # numpy is seeded alongside torch and random
        "numpy>=1.7",
        "torch>=1.13.0",
        "tqdm>=4.36",
        "typing_extensions",
    ],
    extras_require={
        "test": [
            "pytest>=5.0",
            "pytest-cov",
        ],
        "dev": [
            "flake8",
            "isort",
            "pytest>=5.0",
            "pytest-xdist",
        ],
    },
    python_requires=">=3.8",
    keywords="machine learning statistics probabilistic programming variational inference pytorch",
    license="Apache 2.0",
    classifiers=[
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS :: MacOS X",
        "Programming Language :: Python :: 3",
    ],
)
