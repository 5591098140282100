[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xcspchr"
version = "0.1.0"
description = "Convert XCSP3 constraint satisfaction instances into CHR++ programs"
requires-python = ">=3.10"
dependencies = []
keywords = ["xcsp3", "chr", "constraint-programming", "code-generation", "csp"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xcspchr = "xcspchr.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["xcspchr"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
