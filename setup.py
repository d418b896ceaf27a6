#!/usr/bin/env python3
"""
Setup script for Stowage.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""


setup(
    name="stowage",
    version="0.1.0",
    description="Pluggable async blob storage with named adapters, fallback, and operation events",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Stowage Contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "s3": [
            "aiobotocore>=2.5.0",
        ],
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: AsyncIO",
        "Topic :: System :: Filesystems",
        "Topic :: Software Development :: Libraries",
    ],
    keywords="storage blob s3 async adapters fallback",
)
