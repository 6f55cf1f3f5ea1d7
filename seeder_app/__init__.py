"""Command-line front end for the CSV seeder."""

from seeder import __version__

__all__ = ["__version__"]
