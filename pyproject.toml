[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "klogcore"
version = "0.1.0"
description = "Building blocks for leveled, structured text logging: severities, headers, key/value serialization, verbosity and object references."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "structured-logging", "verbosity", "vmodule", "key-value"]
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
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["klogcore"]

[tool.pytest.ini_options]
addopts = "-ra"
