"""Building blocks for an AUR helper: argument parsing, configuration, commands, PGP keys, dependency graphs and search."""

__version__ = "12.0.0"