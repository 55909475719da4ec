"""Data access for the Post table: raw cursor, query template, fluent client, repository."""

__version__ = "0.1.0"
