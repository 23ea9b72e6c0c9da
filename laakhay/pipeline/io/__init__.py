"""Output collaborators."""

from .csv_writer import write_csv, write_pages_csv

__all__ = ["write_csv", "write_pages_csv"]
