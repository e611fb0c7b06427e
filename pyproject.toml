[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aurhelper"
version = "12.0.0"
description = "Building blocks for an AUR helper: argument parsing, configuration, command building, PGP key checks, dependency graphs and package search"
requires-python = ">=3.10"
dependencies = []
keywords = ["aur", "pacman", "arch", "package-manager", "makepkg"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Software Distribution",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["aurhelper"]

[tool.pytest.ini_options]
addopts = "-ra"
