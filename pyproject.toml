[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shipbattle"
version = "0.1.0"
description = "Two-player terminal battleship game with direct and relay-server play"
requires-python = ">=3.10"
dependencies = []
keywords = ["battleship", "game", "terminal", "multiplayer", "relay"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Board Games",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
shipbattle = "shipbattle.app:main"
shipbattle-server = "shipbattle.server:main"

[tool.hatch.build.targets.wheel]
packages = ["shipbattle"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
