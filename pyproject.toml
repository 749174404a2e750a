[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chvalues"
version = "0.1.0"
description = "Client-side representations of column values and column types for a columnar SQL database"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "columnar", "sql", "values", "types"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Front-Ends",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["chvalues"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
