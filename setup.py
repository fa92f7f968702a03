# setup.py
from setuptools import setup, find_packages

setup(
    name="taxmap",
    version="0.1.0",
    description="Taxonomic trees with dependent abundance datasets: filtering, rollups and group comparisons",
    author="taxmap Contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy>=1.17",
        "pandas>=1.1",
        "scipy>=1.7",
        "flatten-dict",
    ],
    extras_require={
        "test": ["pytest>=6"],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
    ],
)
