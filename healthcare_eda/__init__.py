"""Cleaning, loading and exploratory SQL analysis of the healthcare dataset."""

__version__ = "0.1.0"
