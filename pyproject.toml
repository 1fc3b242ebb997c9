[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ps2hw"
version = "0.1.0"
description = "Register-level models of PlayStation 2 hardware blocks: GS, GIF, IPU, SIF, SIO, timers, vector units and a cycle scheduler"
requires-python = ">=3.10"
dependencies = []
keywords = ["emulator", "playstation2", "gs", "gif", "ipu", "hardware-model"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ps2hw"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
