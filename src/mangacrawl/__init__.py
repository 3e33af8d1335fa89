"""Polite crawling and page-resolution core for manga catalog sites."""

__version__ = "0.1.0"
