"""Retrieval-augmented chat over the Research Handbook on Destructive Leadership."""

__version__ = "0.1.0"
