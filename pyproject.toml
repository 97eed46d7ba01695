[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "seqmap"
version = "0.1.0"
description = "Bit-parallel edit distance alignment, minimizer sketching and mapping filters for sequence mapping"
requires-python = ">=3.10"
dependencies = [
    "sortedcontainers",
]
keywords = [
    "bioinformatics",
    "alignment",
    "edit-distance",
    "myers",
    "hirschberg",
    "minimizer",
    "sketch",
    "cigar",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["seqmap"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
